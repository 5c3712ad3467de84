# booklet/sa/models/base.py
from datetime import datetime, UTC
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite stores no offset)"""
    return datetime.now(UTC).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    """Stored naive UTC -> naive local time, for calendar days, months and years"""
    return value.replace(tzinfo=UTC).astimezone().replace(tzinfo=None)


def to_utc(value: datetime) -> datetime:
    """Naive local time -> naive UTC, the form timestamps are stored in"""
    return value.astimezone(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models"""
    pass
