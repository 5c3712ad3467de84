# booklet/sa/repositories/reading.py
"""Repositories for the three reading-entry tables.

Reads always join the entry with its Book (LEFT OUTER JOIN, so an entry whose
book is gone comes back with ``book`` set to None instead of disappearing).

Mutators only flush. Committing is left to the caller, which is the lifecycle
engine: it is the one place allowed to write these tables, and it needs the
insert into one table and the delete from another to share a transaction.
"""
import logging
from datetime import MAXYEAR, MINYEAR, datetime
from typing import Any, List, Optional, Set, Type, Union
from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload
from booklet.exceptions import ValidationError
from booklet.sa.models import TrackingEntry, CompletedEntry, AbandonedEntry, to_local, to_utc

logger = logging.getLogger(__name__)

ALL_TIME = "All Time"

# Local year boundaries must still convert to UTC without leaving datetime's range
FIRST_YEAR = MINYEAR + 1
LAST_YEAR = MAXYEAR - 1

YearFilter = Optional[Union[int, str]]


def parse_year(year: YearFilter) -> Optional[int]:
    """Turn a year filter ("2023", 2023, "All Time" or None) into an int or None"""
    if year is None:
        return None
    if isinstance(year, bool):
        raise ValidationError(f"Invalid year filter: {year!r}")
    if isinstance(year, int):
        value = year
    else:
        text = str(year).strip()
        if not text or text.lower() == ALL_TIME.lower():
            return None
        if not (text.isascii() and text.isdigit()):
            raise ValidationError(f"Invalid year filter: {year!r}")
        value = int(text)
    if not FIRST_YEAR <= value <= LAST_YEAR:
        raise ValidationError(f"Year must be between {FIRST_YEAR} and {LAST_YEAR}.")
    return value


class _EntryRepository:
    model: Type = None
    date_column: str = None

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def _query(self):
        return self.session.query(self.model).options(joinedload(self.model.book))

    def _ordered(self, query):
        column = getattr(self.model, self.date_column)
        return query.order_by(desc(column), desc(self.model.id))

    def _filter_year(self, query, year: YearFilter):
        year = parse_year(year)
        if year is None:
            return query
        column = getattr(self.model, self.date_column)
        # Calendar years are local; stored timestamps are UTC
        start = to_utc(datetime(year, 1, 1))
        end = to_utc(datetime(year + 1, 1, 1))
        return query.filter(column >= start, column < end)

    def get_by_id(self, entry_id: int):
        """Get an entry by its ID with its book loaded.

        Args:
            entry_id: The ID of the entry

        Returns:
            The entry if found, None otherwise
        """
        return self._query().filter(self.model.id == entry_id).one_or_none()

    def get_by_book_id(self, book_id: int):
        return self._ordered(self._query().filter(self.model.book_id == book_id)).first()

    def book_ids(self) -> Set[int]:
        """IDs of every book referenced by this table"""
        return {row[0] for row in self.session.query(self.model.book_id).all()}

    def count(self) -> int:
        return self.session.query(self.model).count()

    def add(self, **values: Any):
        entry = self.model(**values)
        self.session.add(entry)
        self.session.flush()
        # Reload through the joined query so entry.book is populated
        return self._query().populate_existing().filter(self.model.id == entry.id).one()

    def update(self, entry, **values: Any):
        for name, value in values.items():
            setattr(entry, name, value)
        self.session.flush()
        return entry

    def remove(self, entry) -> None:
        self.session.delete(entry)
        self.session.flush()


class TrackerRepository(_EntryRepository):
    """Books currently being read."""
    model = TrackingEntry
    date_column = 'start_date'

    def list_entries(self) -> List[TrackingEntry]:
        """Get all tracked books, most recently started first."""
        return self._ordered(self._query()).all()


class CompletedRepository(_EntryRepository):
    """Finished books."""
    model = CompletedEntry
    date_column = 'completion_date'

    def list_entries(self, year: YearFilter = None) -> List[CompletedEntry]:
        """Get completed books, most recently completed first.

        Args:
            year: Calendar year of completion to keep, or None / "All Time" for everything

        Returns:
            List of CompletedEntry objects with their books loaded
        """
        return self._ordered(self._filter_year(self._query(), year)).all()

    def available_years(self) -> List[int]:
        """Years that have at least one completion, newest first"""
        dates = self.session.query(CompletedEntry.completion_date).all()
        return sorted({to_local(row[0]).year for row in dates if row[0] is not None}, reverse=True)


class AbandonedRepository(_EntryRepository):
    """Books given up on."""
    model = AbandonedEntry
    date_column = 'abandonment_date'

    def list_entries(self, year: YearFilter = None) -> List[AbandonedEntry]:
        """Get abandoned books, most recently abandoned first.

        Args:
            year: Calendar year of abandonment to keep, or None / "All Time" for everything

        Returns:
            List of AbandonedEntry objects with their books loaded
        """
        return self._ordered(self._filter_year(self._query(), year)).all()
