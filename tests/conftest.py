# tests/conftest.py
import time
import pytest
from sqlalchemy.orm import Session
from booklet.sa.database import Database
from booklet.sa.repositories.book import BookRepository
from booklet.services.lifecycle import LifecycleEngine


@pytest.fixture(autouse=True)
def local_timezone(monkeypatch):
    """Run every test in UTC; call the fixture with a zone name to switch"""
    def set_zone(name):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    set_zone("UTC")
    yield set_zone
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def db_path(tmp_path):
    """Location of a fresh database file for one test"""
    return tmp_path / "booklet.db"


@pytest.fixture
def database(db_path):
    """Create a test database instance with the schema in place"""
    db = Database(db_path=db_path)
    db.init_db()
    yield db
    db.close()


@pytest.fixture
def db_session(database):
    """Create a new database session for a test"""
    session: Session = database.get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def engine(database):
    return LifecycleEngine(database)


def add_book(database, title="Dune", author="Frank Herbert", page_count=412, **fields):
    """Insert a book through the repository and return it"""
    with database.get_db() as session:
        return BookRepository(session).create_book(title=title, author=author, page_count=page_count, **fields)


@pytest.fixture
def make_book(database):
    """Factory for books with Dune defaults"""
    def _make_book(title="Dune", author="Frank Herbert", page_count=412, **fields):
        return add_book(database, title, author, page_count, **fields)
    return _make_book


@pytest.fixture
def dune(database):
    return add_book(database, series="Dune", series_number=1, genre="Science Fiction")


@pytest.fixture
def sample_books(database):
    """A small library across authors, series and genres"""
    return [
        add_book(database, series="Dune", series_number=1, genre="Science Fiction"),
        add_book(database, "Dune Messiah", page_count=256, series="Dune", series_number=2, genre="Science Fiction"),
        add_book(database, "Emma", "Jane Austen", 474, genre="Classics"),
        add_book(database, "Persuasion", "Jane Austen", 249, genre="Classics"),
    ]
