# booklet/config.py
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_DB_PATH = Path.home() / ".booklet" / "booklet.db"
DEFAULT_BACKUP_EXTENSION = ".zip"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    if not extension.startswith("."):
        extension = f".{extension}"
    return extension


@dataclass
class Settings:
    """Runtime settings, read from the environment by from_env()"""
    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    backup_extension: str = DEFAULT_BACKUP_EXTENSION
    log_level: str = "WARNING"

    def __post_init__(self):
        self.db_path = Path(self.db_path).expanduser()
        self.backup_extension = normalize_extension(self.backup_extension)

    @classmethod
    def from_env(cls, db_path: Optional[str] = None) -> "Settings":
        """Build settings from BOOKLET_* environment variables.

        Args:
            db_path: Explicit database path; takes precedence over BOOKLET_DB_PATH

        Returns:
            Settings instance
        """
        return cls(
            db_path=Path(db_path or os.getenv("BOOKLET_DB_PATH", str(DEFAULT_DB_PATH))),
            backup_extension=os.getenv("BOOKLET_BACKUP_EXTENSION", DEFAULT_BACKUP_EXTENSION),
            log_level=os.getenv("BOOKLET_LOG_LEVEL", "WARNING"),
        )


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging once for command line use"""
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
