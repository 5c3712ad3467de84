# booklet/services/backup.py
"""
Database Backup and Restore

A backup artifact is the live SQLite file run through one zlib stream. Restore
validates the artifact completely (decompresses it and opens it as a database)
before the live database is closed, so a bad file can never leave the
application without a usable database.
"""

import logging
import os
import shutil
import sqlite3
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from booklet.config import Settings, normalize_extension
from booklet.exceptions import (
    BackupFileNotFound, CorruptedBackup, DatabaseNotFound,
    InvalidBackupFile, StorageIOError
)
from booklet.sa.database import Database
from booklet.utils.compression import CompressionError, compress_file, decompress_file

logger = logging.getLogger(__name__)

DB_MEMBER_NAME = "booklet.db"
REQUIRED_TABLES = ("books", "reading_tracker", "completed_books", "abandoned_books")
SIDE_FILE_SUFFIXES = ("-journal", "-wal", "-shm")


class BackupManager:
    """Creates and restores compressed snapshots of the live database file."""

    def __init__(self, db: Database, extension: Optional[str] = None):
        """
        Args:
            db: Handle on the live database; restore closes and reopens it
            extension: Backup file extension (defaults to BOOKLET_BACKUP_EXTENSION or .zip)
        """
        self.db = db
        self.extension = normalize_extension(extension or Settings.from_env().backup_extension)

    def default_backup_name(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"booklet_backup_{timestamp}{self.extension}"

    def backup(self, destination_path: Union[str, Path]) -> Path:
        """Write a compressed snapshot of the live database.

        Args:
            destination_path: Backup file to write, or a directory to write a
                              timestamped backup into

        Returns:
            Path of the backup file

        Raises:
            DatabaseNotFound: If there is no live database file yet
            StorageIOError: If copying or compressing fails
        """
        start_time = time.time()
        if not self.db.exists():
            raise DatabaseNotFound()

        destination = Path(destination_path).expanduser()
        if destination.is_dir():
            destination = destination / self.default_backup_name()
        if destination.suffix.lower() != self.extension:
            logger.warning(f"Backup {destination.name} does not end in {self.extension}; restore will reject it")

        partial = destination.with_name(destination.name + ".part")
        with tempfile.TemporaryDirectory(prefix="booklet_backup_") as temp_dir:
            snapshot = Path(temp_dir) / DB_MEMBER_NAME
            try:
                shutil.copy2(self.db.db_path, snapshot)
                compress_file(snapshot, partial)
                os.replace(partial, destination)
            except (OSError, CompressionError) as e:
                partial.unlink(missing_ok=True)
                logger.error(f"Backup to {destination} failed: {e}")
                raise StorageIOError(f"Could not write backup {destination}: {e}") from e

        logger.info(
            f"Database backup created: {destination} "
            f"({destination.stat().st_size:,} bytes in {time.time() - start_time:.2f}s)"
        )
        return destination

    def verify(self, source_path: Union[str, Path]) -> List[str]:
        """Check a backup without touching the live database.

        Returns:
            Names of the tables in the backed-up database

        Raises:
            BackupFileNotFound, InvalidBackupFile, CorruptedBackup
        """
        source = self._check_source(source_path)
        with tempfile.TemporaryDirectory(prefix="booklet_restore_") as temp_dir:
            _, tables = self._extract(source, Path(temp_dir))
        return tables

    def restore(self, source_path: Union[str, Path]) -> None:
        """Replace the live database with the contents of a backup.

        The backup is decompressed and opened as a database first. Only when
        that succeeds is the live connection closed and the file swapped.

        Raises:
            BackupFileNotFound: If the backup does not exist
            InvalidBackupFile: If the extension is wrong or the payload is not a zlib stream
            CorruptedBackup: If the payload is not a booklet database
            StorageIOError: If the file swap fails (the previous database is kept)
        """
        start_time = time.time()
        source = self._check_source(source_path)

        with tempfile.TemporaryDirectory(prefix="booklet_restore_") as temp_dir:
            extracted, tables = self._extract(source, Path(temp_dir))
            logger.debug(f"Backup {source.name} verified, tables: {', '.join(tables)}")
            self._swap_in(extracted)

        logger.info(f"Database restored from {source} in {time.time() - start_time:.2f}s")

    def _check_source(self, source_path: Union[str, Path]) -> Path:
        source = Path(source_path).expanduser()
        if not source.is_file():
            raise BackupFileNotFound()
        if source.suffix.lower() != self.extension:
            raise InvalidBackupFile()
        return source

    def _extract(self, source: Path, temp_dir: Path):
        extracted = temp_dir / DB_MEMBER_NAME
        try:
            decompress_file(source, extracted)
        except CompressionError as e:
            logger.warning(f"Rejected backup {source}: {e}")
            raise InvalidBackupFile() from e

        if not extracted.is_file() or extracted.stat().st_size == 0:
            raise CorruptedBackup()

        return extracted, self._read_table_catalog(extracted)

    @staticmethod
    def _read_table_catalog(db_file: Path) -> List[str]:
        """Open a database file read-only and list its tables.

        Raises:
            CorruptedBackup: If the file is not a readable SQLite database or
                             lacks one of the booklet tables
        """
        try:
            conn = sqlite3.connect(f"{db_file.resolve().as_uri()}?mode=ro", uri=True)
            try:
                rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
                check = conn.execute("PRAGMA quick_check").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Backup payload is not a database: {e}")
            raise CorruptedBackup() from e

        if not check or check[0] != "ok":
            logger.warning(f"Backup payload failed integrity check: {check}")
            raise CorruptedBackup()

        tables = sorted(row[0] for row in rows)
        missing = [name for name in REQUIRED_TABLES if name not in tables]
        if missing:
            logger.warning(f"Backup payload is missing tables: {', '.join(missing)}")
            raise CorruptedBackup()
        return tables

    def _swap_in(self, validated: Path) -> None:
        live = self.db.db_path
        staged = live.with_name(f".{live.name}.restore")

        # Stage next to the live file so the final move is a same-directory rename
        try:
            shutil.copy2(validated, staged)
        except OSError as e:
            staged.unlink(missing_ok=True)
            raise StorageIOError(f"Could not stage restored database: {e}") from e

        self.db.close()
        try:
            os.replace(staged, live)
        except OSError as e:
            staged.unlink(missing_ok=True)
            logger.error(f"Could not replace {live}: {e}")
            self.db.reopen()
            raise StorageIOError(f"Could not replace the live database: {e}") from e

        # Side files belong to the replaced database; removing them is best-effort
        for suffix in SIDE_FILE_SUFFIXES:
            side_file = Path(f"{live}{suffix}")
            try:
                side_file.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove {side_file.name}: {e}")
        self.db.reopen()
