# booklet/sa/__init__.py
from .database import Database
from .models import (
    Base, Book, TrackingEntry, CompletedEntry, AbandonedEntry
)

__all__ = [
    'Database',
    'Base',
    'Book',
    'TrackingEntry',
    'CompletedEntry',
    'AbandonedEntry'
]
