# booklet/services/lifecycle.py
"""Reading lifecycle of a book.

Every book is in exactly one of four places:

    LIBRARY ──start_tracking──▶ TRACKING ──complete──▶ COMPLETED
       ▲                           │  └─────abandon──▶ ABANDONED
       └──────── remove_from_* ────┴───────────────────────┘

LIBRARY is implicit (no entry in any of the three tables). This engine is the
only writer to the entry tables, and each transition runs in one transaction,
so a book never has more than one entry at a time.
"""
import logging
from collections import Counter
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import desc, select

from booklet.exceptions import NotFoundError, PreconditionViolation, ValidationError
from booklet.sa.database import Database
from booklet.sa.models import Book, TrackingEntry, CompletedEntry, AbandonedEntry, utcnow
from booklet.sa.repositories.book import BookRepository
from booklet.sa.repositories.reading import (
    TrackerRepository, CompletedRepository, AbandonedRepository, YearFilter
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class BookLocation(str, Enum):
    LIBRARY = "library"
    TRACKING = "tracking"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def display_name(self) -> str:
        return self.value.title()


def _as_datetime(value: Optional[Any], field: str) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise ValidationError(f"{field} must be a date.")


def _validate_rating(rating: Optional[int]) -> Optional[int]:
    if rating is None:
        return None
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")
    return rating


def _validate_page(page: Optional[int], book: Optional[Book], field: str = "Page") -> Optional[int]:
    """Pages must lie in [0, page_count]; only the lower bound applies when the book is missing"""
    if page is None:
        return None
    if isinstance(page, bool) or not isinstance(page, int) or page < 0:
        raise ValidationError(f"{field} must be a non-negative integer.")
    if book is not None and page > book.page_count:
        raise ValidationError(f"{field} {page} is past the last page ({book.page_count}).")
    return page


class LifecycleEngine:
    """Moves books between library, tracking, completed and abandoned."""

    COMPLETED_FIELDS = ('rating', 'review', 'start_date', 'completion_date')
    ABANDONED_FIELDS = ('page_at_abandonment', 'reason', 'start_date', 'abandonment_date')

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def _location(session, book_id: int) -> BookLocation:
        for location, model in (
            (BookLocation.TRACKING, TrackingEntry),
            (BookLocation.COMPLETED, CompletedEntry),
            (BookLocation.ABANDONED, AbandonedEntry),
        ):
            if session.query(model.id).filter(model.book_id == book_id).first() is not None:
                return location
        return BookLocation.LIBRARY

    def location_of(self, book_id: int) -> BookLocation:
        """Where a book currently is. Tracking wins over completed, completed over abandoned."""
        with self.db.get_db() as session:
            return self._location(session, book_id)

    def library_books(self) -> List[Book]:
        """Books with no tracking, completed or abandoned entry, most recently added first.

        Computed from the entry tables on every call.
        """
        with self.db.get_db() as session:
            return (
                session.query(Book)
                .filter(
                    Book.id.not_in(select(TrackingEntry.book_id)),
                    Book.id.not_in(select(CompletedEntry.book_id)),
                    Book.id.not_in(select(AbandonedEntry.book_id)),
                )
                .order_by(desc(Book.date_added), desc(Book.id))
                .all()
            )

    def books_with_location(self, books: List[Book]) -> List[Tuple[Book, BookLocation]]:
        """Pair each book with its current location"""
        with self.db.get_db() as session:
            tracking = TrackerRepository(session).book_ids()
            completed = CompletedRepository(session).book_ids()
            abandoned = AbandonedRepository(session).book_ids()

        result = []
        for book in books:
            if book.id in tracking:
                location = BookLocation.TRACKING
            elif book.id in completed:
                location = BookLocation.COMPLETED
            elif book.id in abandoned:
                location = BookLocation.ABANDONED
            else:
                location = BookLocation.LIBRARY
            result.append((book, location))
        return result

    def check_invariant(self) -> List[int]:
        """IDs of books that have more than one reading entry. Empty when consistent."""
        with self.db.get_db() as session:
            counts = Counter()
            for model in (TrackingEntry, CompletedEntry, AbandonedEntry):
                counts.update(row[0] for row in session.query(model.book_id).all())
        violations = sorted(book_id for book_id, count in counts.items() if count > 1)
        if violations:
            logger.warning(f"Books with more than one reading entry: {violations}")
        return violations

    def list_tracking(self) -> List[TrackingEntry]:
        with self.db.get_db() as session:
            return TrackerRepository(session).list_entries()

    def list_completed(self, year: YearFilter = None) -> List[CompletedEntry]:
        with self.db.get_db() as session:
            return CompletedRepository(session).list_entries(year)

    def list_abandoned(self, year: YearFilter = None) -> List[AbandonedEntry]:
        with self.db.get_db() as session:
            return AbandonedRepository(session).list_entries(year)

    def completed_years(self) -> List[int]:
        with self.db.get_db() as session:
            return CompletedRepository(session).available_years()

    def get_tracking(self, tracking_id: int) -> TrackingEntry:
        with self.db.get_db() as session:
            return self._require(TrackerRepository(session), tracking_id, "Tracking entry")

    def get_completed(self, completed_id: int) -> CompletedEntry:
        with self.db.get_db() as session:
            return self._require(CompletedRepository(session), completed_id, "Completed entry")

    def get_abandoned(self, abandoned_id: int) -> AbandonedEntry:
        with self.db.get_db() as session:
            return self._require(AbandonedRepository(session), abandoned_id, "Abandoned entry")

    @staticmethod
    def _require(repository, entry_id: int, entity: str):
        entry = repository.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(entity, entry_id)
        return entry

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_tracking(self, book_id: int) -> TrackingEntry:
        """Library -> Tracking.

        Args:
            book_id: The book to start reading

        Returns:
            The new TrackingEntry (current_page 0, started now)

        Raises:
            NotFoundError: If the book does not exist
            PreconditionViolation: If the book already has a reading entry
        """
        with self.db.get_db() as session:
            book = BookRepository(session).get_by_id(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)

            location = self._location(session, book_id)
            if location != BookLocation.LIBRARY:
                raise PreconditionViolation(book_id, location.display_name, "start tracking")

            entry = TrackerRepository(session).add(book_id=book.id, current_page=0, start_date=utcnow())

        logger.info(f"Started tracking book {book_id} ({book.title})")
        return entry

    def update_progress(self, tracking_id: int, new_page: int) -> TrackingEntry:
        """Tracking -> Tracking with a new current page.

        Raises:
            NotFoundError: If the tracking entry does not exist
            ValidationError: If the page is negative or past the book's last page
        """
        with self.db.get_db() as session:
            repository = TrackerRepository(session)
            entry = self._require(repository, tracking_id, "Tracking entry")
            page = _validate_page(new_page, entry.book)
            repository.update(entry, current_page=page)

        logger.info(f"Tracking entry {tracking_id} now at page {page}")
        return entry

    def complete(
        self,
        tracking_id: int,
        rating: Optional[int] = None,
        review: Optional[str] = None,
        start_date: Optional[datetime] = None
    ) -> CompletedEntry:
        """Tracking -> Completed, in one transaction.

        Args:
            tracking_id: The tracking entry to finish
            rating: Optional rating from 1 to 5
            review: Optional review text
            start_date: Optional start date, needed for days_to_complete

        Returns:
            The new CompletedEntry (completed now)

        Raises:
            NotFoundError: If the tracking entry does not exist
            ValidationError: If the rating is out of range
        """
        rating = _validate_rating(rating)
        start_date = _as_datetime(start_date, "Start date")

        with self.db.get_db() as session:
            tracker = TrackerRepository(session)
            entry = self._require(tracker, tracking_id, "Tracking entry")
            book_id = entry.book_id

            completed = CompletedRepository(session).add(
                book_id=book_id,
                rating=rating,
                review=review,
                start_date=start_date,
                completion_date=utcnow()
            )
            tracker.remove(entry)

        logger.info(f"Completed book {book_id} (tracking entry {tracking_id} -> completed entry {completed.id})")
        return completed

    def abandon(
        self,
        tracking_id: int,
        page_at_abandonment: Optional[int] = None,
        reason: Optional[str] = None,
        start_date: Optional[datetime] = None
    ) -> AbandonedEntry:
        """Tracking -> Abandoned, in one transaction.

        Args:
            tracking_id: The tracking entry to give up on
            page_at_abandonment: Optional page reached
            reason: Optional reason
            start_date: Optional start date

        Returns:
            The new AbandonedEntry (abandoned now)

        Raises:
            NotFoundError: If the tracking entry does not exist
            ValidationError: If the page is out of range
        """
        start_date = _as_datetime(start_date, "Start date")

        with self.db.get_db() as session:
            tracker = TrackerRepository(session)
            entry = self._require(tracker, tracking_id, "Tracking entry")
            book_id = entry.book_id
            page = _validate_page(page_at_abandonment, entry.book, "Page at abandonment")

            abandoned = AbandonedRepository(session).add(
                book_id=book_id,
                page_at_abandonment=page,
                reason=reason,
                start_date=start_date,
                abandonment_date=utcnow()
            )
            tracker.remove(entry)

        logger.info(f"Abandoned book {book_id} (tracking entry {tracking_id} -> abandoned entry {abandoned.id})")
        return abandoned

    def remove_from_tracking(self, tracking_id: int) -> None:
        """Tracking -> Library. The reading progress is discarded."""
        self._remove(TrackerRepository, tracking_id, "Tracking entry")

    def remove_from_completed(self, completed_id: int) -> None:
        """Completed -> Library. Rating, review and dates are discarded for good."""
        self._remove(CompletedRepository, completed_id, "Completed entry")

    def remove_from_abandoned(self, abandoned_id: int) -> None:
        """Abandoned -> Library. Page and reason are discarded for good."""
        self._remove(AbandonedRepository, abandoned_id, "Abandoned entry")

    def _remove(self, repository_class, entry_id: int, entity: str) -> None:
        with self.db.get_db() as session:
            repository = repository_class(session)
            entry = self._require(repository, entry_id, entity)
            book_id = entry.book_id
            repository.remove(entry)
        logger.info(f"Removed {entity.lower()} {entry_id}; book {book_id} is back in the library")

    # ------------------------------------------------------------------
    # Edits that keep the book where it is
    # ------------------------------------------------------------------

    def update_completed(self, completed_id: int, **fields: Any) -> CompletedEntry:
        """Edit rating, review, start_date or completion_date of a completed entry.

        Passing None clears rating, review or start_date.

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If a field is unknown or invalid
        """
        values = self._entry_fields(fields, self.COMPLETED_FIELDS, 'completion_date')
        if 'rating' in values:
            values['rating'] = _validate_rating(values['rating'])

        with self.db.get_db() as session:
            repository = CompletedRepository(session)
            entry = self._require(repository, completed_id, "Completed entry")
            repository.update(entry, **values)

        logger.info(f"Updated completed entry {completed_id}: {', '.join(sorted(values))}")
        return entry

    def update_abandoned(self, abandoned_id: int, **fields: Any) -> AbandonedEntry:
        """Edit page_at_abandonment, reason, start_date or abandonment_date of an abandoned entry.

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If a field is unknown or invalid
        """
        values = self._entry_fields(fields, self.ABANDONED_FIELDS, 'abandonment_date')

        with self.db.get_db() as session:
            repository = AbandonedRepository(session)
            entry = self._require(repository, abandoned_id, "Abandoned entry")
            if 'page_at_abandonment' in values:
                values['page_at_abandonment'] = _validate_page(
                    values['page_at_abandonment'], entry.book, "Page at abandonment"
                )
            repository.update(entry, **values)

        logger.info(f"Updated abandoned entry {abandoned_id}: {', '.join(sorted(values))}")
        return entry

    @staticmethod
    def _entry_fields(fields: Dict[str, Any], allowed: Tuple[str, ...], required_date: str) -> Dict[str, Any]:
        unknown = set(fields) - set(allowed)
        if unknown:
            raise ValidationError(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        for name in ('start_date', required_date):
            if name in values:
                values[name] = _as_datetime(values[name], name.replace('_', ' ').capitalize())
        if required_date in values and values[required_date] is None:
            raise ValidationError(f"{required_date.replace('_', ' ').capitalize()} cannot be cleared.")
        return values

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    def delete_book(self, book_id: int) -> None:
        """Delete a book and every reading entry for it in one transaction.

        Raises:
            NotFoundError: If the book does not exist
        """
        with self.db.get_db() as session:
            BookRepository(session).delete_book(book_id)
