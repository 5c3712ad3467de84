# booklet/exceptions.py
from typing import Optional


class BookletError(Exception):
    """Base class for every error raised by the booklet core"""
    default_message = "Booklet operation failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class StorageError(BookletError):
    default_message = "Storage operation failed."


class NotFoundError(StorageError):
    """Raised when an id has no matching row."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with ID {entity_id} not found.")


class StorageIOError(StorageError):
    default_message = "Could not read or write the database."


class ValidationError(StorageError, ValueError):
    default_message = "Invalid value."


class PreconditionViolation(BookletError):
    """Raised when a lifecycle transition is attempted from the wrong state."""

    def __init__(self, book_id: int, location: str, action: str):
        self.book_id = book_id
        self.location = location
        self.action = action
        super().__init__(f"Cannot {action}: book {book_id} is already in {location}.")


class BackupError(BookletError):
    default_message = "Backup operation failed."


class DatabaseNotFound(BackupError):
    default_message = "Database file not found."


class BackupFileNotFound(BackupError):
    default_message = "Backup file not found."


class InvalidBackupFile(BackupError):
    default_message = "Selected file is not a valid backup."


class CorruptedBackup(BackupError):
    default_message = "Backup file is corrupted or invalid."
