# booklet/sa/database.py
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from booklet.config import Settings
from booklet.exceptions import StorageIOError
from booklet.sa.models import Base

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, db_path: Optional[Union[str, Path]] = None, **engine_kwargs):
        """Initialize database connection

        Args:
            db_path: Path to the SQLite file. If None, BOOKLET_DB_PATH is used,
                     falling back to ~/.booklet/booklet.db
            engine_kwargs: Additional keyword arguments to pass to create_engine
        """
        self.db_path = Path(db_path).expanduser() if db_path else Settings.from_env().db_path

        # One connection per checkout so close() really releases the file
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine_kwargs.setdefault("poolclass", NullPool)
        self._engine_kwargs = engine_kwargs

        self._engine: Optional[Engine] = None
        self._SessionFactory: Optional[sessionmaker] = None
        self._open()

    @property
    def connection_string(self) -> str:
        return f"sqlite:///{self.db_path}"

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageIOError("Database connection is closed.")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def exists(self) -> bool:
        """Whether the live database file is on disk"""
        return self.db_path.is_file()

    def _open(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine = create_engine(self.connection_string, **self._engine_kwargs)

        # Objects stay readable after the session that loaded them is closed
        self._SessionFactory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self._engine
        )
        logger.debug(f"Opened database at {self.db_path}")

    def close(self) -> None:
        """Dispose of the engine and release the database file"""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._SessionFactory = None
            logger.debug(f"Closed database at {self.db_path}")

    def reopen(self) -> None:
        """Reconnect to the database file, creating any missing tables"""
        self.close()
        self._open()
        self.init_db()

    @contextmanager
    def get_db(self) -> Iterator[Session]:
        """Context manager for database sessions

        Commits when the block exits normally and rolls back on any exception,
        so everything done inside one block is a single transaction.
        """
        session: Session = self.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise StorageIOError(f"Database error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Initialize database schema"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageIOError(f"Could not create schema in {self.db_path}: {e}") from e

    def get_session(self) -> Session:
        if self._SessionFactory is None:
            raise StorageIOError("Database connection is closed.")
        return self._SessionFactory()
