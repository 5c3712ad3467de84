# tests/test_backup.py
import logging
import sqlite3
import zlib
from datetime import datetime
from pathlib import Path
import pytest
from sqlalchemy import text
from booklet.exceptions import (
    BackupFileNotFound, CorruptedBackup, DatabaseNotFound, InvalidBackupFile
)
from booklet.sa.database import Database
from booklet.sa.repositories.book import BookRepository
from booklet.services.backup import REQUIRED_TABLES, BackupManager


@pytest.fixture
def manager(database):
    return BackupManager(database, extension=".zip")


def _titles(database):
    with database.get_db() as session:
        return sorted(book.title for book in BookRepository(session).list_books())


def test_backup_and_restore(tmp_path, database, manager, engine, dune, make_book):
    """Test restoring brings back exactly the rows present at backup time"""
    engine.complete(engine.start_tracking(dune.id).id, rating=5)
    backup_path = manager.backup(tmp_path / "library.zip")
    assert backup_path.exists()

    make_book("Emma", "Jane Austen", 474)
    engine.remove_from_completed(engine.list_completed()[0].id)
    assert _titles(database) == ["Dune", "Emma"]

    manager.restore(backup_path)

    assert _titles(database) == ["Dune"]
    completed = engine.list_completed()
    assert len(completed) == 1
    assert completed[0].rating == 5
    assert completed[0].book.title == "Dune"


def test_backup_into_directory(tmp_path, manager, dune):
    """Test a directory destination gets a timestamped file name"""
    target_dir = tmp_path / "backups"
    target_dir.mkdir()
    path = manager.backup(target_dir)
    assert path.parent == target_dir
    assert path.name.startswith("booklet_backup_")
    assert path.suffix == ".zip"
    assert not list(target_dir.glob("*.part"))


def test_backup_is_zlib_of_database(tmp_path, database, manager, dune):
    """Test the artifact decompresses to the live database bytes"""
    path = manager.backup(tmp_path / "library.zip")
    assert zlib.decompress(path.read_bytes()) == database.db_path.read_bytes()


def test_verify(tmp_path, manager, dune):
    tables = manager.verify(manager.backup(tmp_path / "library.zip"))
    assert set(REQUIRED_TABLES) <= set(tables)


def test_backup_without_database(tmp_path):
    """Test backing up before the database file exists"""
    db = Database(db_path=tmp_path / "never_created.db")
    with pytest.raises(DatabaseNotFound, match="Database file not found."):
        BackupManager(db, extension=".zip").backup(tmp_path / "out.zip")
    assert not (tmp_path / "out.zip").exists()


def test_restore_missing_file(tmp_path, manager):
    with pytest.raises(BackupFileNotFound, match="Backup file not found."):
        manager.restore(tmp_path / "missing.zip")


def test_restore_wrong_extension(tmp_path, database, manager, dune):
    """Test a file without the backup extension is refused before it is read"""
    path = manager.backup(tmp_path / "library.zip")
    renamed = path.rename(tmp_path / "library.db")
    with pytest.raises(InvalidBackupFile, match="Selected file is not a valid backup."):
        manager.restore(renamed)
    assert _titles(database) == ["Dune"]


def test_restore_arbitrary_bytes(tmp_path, database, manager, dune):
    """Test random bytes are rejected and the live library is untouched"""
    path = tmp_path / "random.zip"
    path.write_bytes(b"\x00\x01 definitely not a backup \xff" * 50)
    with pytest.raises(InvalidBackupFile):
        manager.restore(path)
    assert _titles(database) == ["Dune"]


def test_restore_compressed_non_database(tmp_path, database, manager, dune):
    """Test a valid zlib stream that is not a database is rejected"""
    path = tmp_path / "text.zip"
    path.write_bytes(zlib.compress(b"hello, this is just text\n" * 200))
    with pytest.raises(CorruptedBackup, match="Backup file is corrupted or invalid."):
        manager.restore(path)
    assert _titles(database) == ["Dune"]


def test_restore_database_without_booklet_tables(tmp_path, database, manager, dune):
    """Test a SQLite file of some other application is rejected"""
    other_db = tmp_path / "other.db"
    conn = sqlite3.connect(other_db)
    conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)")
    conn.commit()
    conn.close()

    path = tmp_path / "other.zip"
    path.write_bytes(zlib.compress(other_db.read_bytes()))
    with pytest.raises(CorruptedBackup):
        manager.restore(path)
    assert _titles(database) == ["Dune"]


def test_restore_empty_stream(tmp_path, database, manager, dune):
    path = tmp_path / "empty.zip"
    path.write_bytes(zlib.compress(b""))
    with pytest.raises(CorruptedBackup):
        manager.restore(path)
    assert _titles(database) == ["Dune"]


def test_restore_truncated_backup(tmp_path, database, manager, dune):
    path = manager.backup(tmp_path / "library.zip")
    data = path.read_bytes()
    path.write_bytes(data[:len(data) // 2])
    with pytest.raises(InvalidBackupFile):
        manager.restore(path)
    assert _titles(database) == ["Dune"]


def test_database_usable_after_restore(tmp_path, database, manager, engine, dune, make_book):
    """Test the reopened database accepts writes"""
    path = manager.backup(tmp_path / "library.zip")
    manager.restore(path)

    emma = make_book("Emma", "Jane Austen", 474)
    assert engine.start_tracking(emma.id).book.title == "Emma"
    assert database.is_open


def _snapshot(database):
    """Every column of every row in the four tables"""
    with database.get_db() as session:
        return {
            table: session.execute(text(f"SELECT * FROM {table} ORDER BY id")).all()
            for table in REQUIRED_TABLES
        }


def test_restore_brings_back_every_row(tmp_path, database, manager, engine, make_book):
    """Test all four tables come back field for field after later changes"""
    dune = make_book(series="Dune", series_number=1, genre="Science Fiction", synopsis="")
    emma = make_book("Emma", "Jane Austen", 474, cover_url="https://example.org/emma.jpg")
    persuasion = make_book("Persuasion", "Jane Austen", 249)
    make_book("Dune Messiah", page_count=256, series="Dune", series_number=2)

    tracking = engine.start_tracking(dune.id)
    engine.update_progress(tracking.id, 120)
    completed = engine.complete(engine.start_tracking(emma.id).id, rating=4, review="Matchmaking")
    engine.update_completed(completed.id, start_date=datetime(2024, 2, 1, 9, 30))
    abandoned = engine.abandon(engine.start_tracking(persuasion.id).id, page_at_abandonment=40, reason="Slow")

    before = _snapshot(database)
    assert all(before[table] for table in REQUIRED_TABLES)
    path = manager.backup(tmp_path / "library.zip")

    with database.get_db() as session:
        BookRepository(session).update_book(dune.id, title="Dune (revised)", genre=None)
    make_book("Northanger Abbey", "Jane Austen", 251)
    engine.update_progress(tracking.id, 300)
    engine.update_completed(completed.id, rating=1, review=None)
    engine.remove_from_abandoned(abandoned.id)
    assert _snapshot(database) != before

    manager.restore(path)

    assert _snapshot(database) == before
    assert engine.check_invariant() == []


def test_restore_survives_undeletable_side_file(tmp_path, database, manager, dune, make_book, monkeypatch, caplog):
    """Test a side file that cannot be removed only warns once the new file is in place"""
    path = manager.backup(tmp_path / "library.zip")
    make_book("Emma", "Jane Austen", 474)

    real_unlink = Path.unlink

    def unlink(self, missing_ok=False):
        if self.name.endswith("-wal"):
            raise PermissionError("locked by another process")
        return real_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", unlink)
    with caplog.at_level(logging.WARNING, logger="booklet.services.backup"):
        manager.restore(path)

    assert _titles(database) == ["Dune"]
    assert database.is_open
    assert "Could not remove" in caplog.text
