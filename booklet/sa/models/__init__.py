# booklet/sa/models/__init__.py
from .base import Base, utcnow, to_local, to_utc
from .book import Book, format_series_number
from .reading import TrackingEntry, CompletedEntry, AbandonedEntry

__all__ = [
    'Base',
    'utcnow',
    'to_local',
    'to_utc',
    'Book',
    'format_series_number',
    'TrackingEntry',
    'CompletedEntry',
    'AbandonedEntry'
]
