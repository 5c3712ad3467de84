# booklet/sa/repositories/book.py
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session
from booklet.exceptions import NotFoundError, ValidationError
from booklet.sa.models import Book

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'title', 'author', 'page_count', 'cover_url',
    'series', 'series_number', 'synopsis', 'genre'
)


def validate_book_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Check book field values and normalize series_number to float.

    Args:
        fields: Mapping of field name to new value

    Returns:
        The validated fields

    Raises:
        ValidationError: If a field is unknown or a value is out of range
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown or read-only book fields: {', '.join(sorted(unknown))}")

    for name in ('title', 'author'):
        if name in fields:
            value = fields[name]
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Book {name} is required.")

    if 'page_count' in fields:
        page_count = fields['page_count']
        if isinstance(page_count, bool) or not isinstance(page_count, int) or page_count <= 0:
            raise ValidationError("Page count must be a positive integer.")

    if fields.get('series_number') is not None:
        series_number = fields['series_number']
        if isinstance(series_number, bool) or not isinstance(series_number, (int, float)):
            raise ValidationError("Series number must be a number.")
        fields['series_number'] = float(series_number)

    return fields


class BookRepository:
    """Repository for managing Book entities."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def list_books(self) -> List[Book]:
        """Get every book, most recently added first.

        Returns:
            List of Book objects ordered by date_added descending
        """
        return (
            self.session.query(Book)
            .order_by(desc(Book.date_added), desc(Book.id))
            .all()
        )

    def get_by_id(self, book_id: int) -> Optional[Book]:
        """Get a book by its ID.

        Args:
            book_id: The ID of the book to retrieve

        Returns:
            The Book object if found, None otherwise
        """
        return self.session.query(Book).filter(Book.id == book_id).one_or_none()

    def count_books(self) -> int:
        return self.session.query(Book).count()

    def create_book(
        self,
        title: str,
        author: str,
        page_count: int,
        cover_url: Optional[str] = None,
        series: Optional[str] = None,
        series_number: Optional[float] = None,
        synopsis: Optional[str] = None,
        genre: Optional[str] = None
    ) -> Book:
        """Create a new book.

        Args:
            title: The title of the book
            author: The author of the book
            page_count: Number of pages, must be positive
            cover_url: Optional cover image URL
            series: Optional series name
            series_number: Optional position in the series (2.5 is allowed)
            synopsis: Optional synopsis
            genre: Optional genre

        Returns:
            The created Book object, with its id assigned

        Raises:
            ValidationError: If a required field is missing or page_count is not positive
        """
        fields = validate_book_fields({
            'title': title,
            'author': author,
            'page_count': page_count,
            'cover_url': cover_url,
            'series': series,
            'series_number': series_number,
            'synopsis': synopsis,
            'genre': genre,
        })
        book = Book(**fields)
        self.session.add(book)
        self.session.commit()
        logger.info(f"Added book {book.id}: {book.title}")
        return book

    def update_book(self, book_id: int, **fields: Any) -> Book:
        """Update an existing book.

        Only the fields passed are changed. Passing None clears an optional field.

        Args:
            book_id: The ID of the book to update
            fields: New values keyed by field name

        Returns:
            The updated Book object

        Raises:
            NotFoundError: If the book does not exist
            ValidationError: If a field is unknown, read-only or invalid
        """
        fields = validate_book_fields(dict(fields))

        book = self.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book", book_id)

        for name, value in fields.items():
            setattr(book, name, value)

        self.session.commit()
        logger.info(f"Updated book {book_id}: {', '.join(sorted(fields)) or 'no changes'}")
        return book

    def delete_book(self, book_id: int) -> None:
        """Delete a book together with any reading entries that point at it.

        Args:
            book_id: The ID of the book to delete

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book", book_id)

        self.session.delete(book)
        self.session.commit()
        logger.info(f"Deleted book {book_id}")

    def search_books(self, query: str, limit: Optional[int] = None) -> List[Book]:
        """Search for books by title or author.

        Args:
            query: Case-insensitive substring to look for
            limit: Maximum number of results to return

        Returns:
            List of matching Book objects, most recently added first
        """
        base_query = self.session.query(Book)
        if query and query.strip():
            pattern = f"%{query.strip()}%"
            base_query = base_query.filter(or_(Book.title.ilike(pattern), Book.author.ilike(pattern)))
        base_query = base_query.order_by(desc(Book.date_added), desc(Book.id))
        if limit:
            base_query = base_query.limit(limit)
        return base_query.all()

    def get_books_by_author(self, author: str) -> List[Book]:
        """Get all books by an author, ordered by title."""
        return (
            self.session.query(Book)
            .filter(Book.author == author)
            .order_by(Book.title)
            .all()
        )

    def get_books_by_series(self, series: str) -> List[Book]:
        """Get all books in a series, in series order with unnumbered books last."""
        return (
            self.session.query(Book)
            .filter(Book.series == series)
            .order_by(Book.series_number.is_(None), Book.series_number, Book.title)
            .all()
        )

    def get_books_by_genre(self, genre: str) -> List[Book]:
        return (
            self.session.query(Book)
            .filter(Book.genre == genre)
            .order_by(Book.title)
            .all()
        )
