# booklet/sa/models/reading.py
from datetime import datetime
from sqlalchemy import Integer, String, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, utcnow


class TrackingEntry(Base):
    """A book that is currently being read."""
    __tablename__ = 'reading_tracker'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(ForeignKey('books.id'), nullable=False)
    current_page: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    book = relationship('Book', back_populates='tracking_entries')

    __table_args__ = (
        Index('idx_reading_tracker_book_id', 'book_id'),
    )

    @property
    def progress_percentage(self) -> float:
        if self.book is None or not self.book.page_count or self.book.page_count <= 0:
            return 0.0
        return (self.current_page / self.book.page_count) * 100.0


class CompletedEntry(Base):
    """A finished book with optional rating and review."""
    __tablename__ = 'completed_books'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(ForeignKey('books.id'), nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review: Mapped[str | None] = mapped_column(String, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completion_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    book = relationship('Book', back_populates='completed_entries')

    __table_args__ = (
        Index('idx_completed_books_book_id', 'book_id'),
        Index('idx_completed_books_completion_date', 'completion_date'),
    )

    @property
    def days_to_complete(self) -> int | None:
        if self.start_date is None:
            return None
        return (self.completion_date - self.start_date).days


class AbandonedEntry(Base):
    """A book the reader gave up on."""
    __tablename__ = 'abandoned_books'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(ForeignKey('books.id'), nullable=False)
    page_at_abandonment: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reason: Mapped[str | None] = mapped_column(String, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    abandonment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    book = relationship('Book', back_populates='abandoned_entries')

    __table_args__ = (
        Index('idx_abandoned_books_book_id', 'book_id'),
        Index('idx_abandoned_books_abandonment_date', 'abandonment_date'),
    )

    @property
    def progress_percentage(self) -> float | None:
        if self.book is None or self.page_at_abandonment is None or not self.book.page_count:
            return None
        return (self.page_at_abandonment / self.book.page_count) * 100.0
