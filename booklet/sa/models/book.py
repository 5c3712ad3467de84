# booklet/sa/models/book.py
from datetime import datetime
from sqlalchemy import String, Integer, Float, DateTime, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, utcnow


def format_series_number(number: float) -> str:
    """Format a series number, dropping the fraction for whole numbers (2.0 -> "2", 2.5 -> "2.5")"""
    if float(number).is_integer():
        return str(int(number))
    return str(number)


class Book(Base):
    __tablename__ = 'books'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    author: Mapped[str] = mapped_column(String, nullable=False)
    page_count: Mapped[int] = mapped_column(Integer, nullable=False)
    cover_url: Mapped[str | None] = mapped_column(String, nullable=True)
    series: Mapped[str | None] = mapped_column(String, nullable=True)
    series_number: Mapped[float | None] = mapped_column(Float, nullable=True)
    synopsis: Mapped[str | None] = mapped_column(String, nullable=True)
    genre: Mapped[str | None] = mapped_column(String, nullable=True)
    date_added: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Entries go with the book when it is deleted
    tracking_entries = relationship('TrackingEntry', back_populates='book', cascade='all, delete-orphan')
    completed_entries = relationship('CompletedEntry', back_populates='book', cascade='all, delete-orphan')
    abandoned_entries = relationship('AbandonedEntry', back_populates='book', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_books_date_added', 'date_added'),
        Index('idx_books_author', 'author'),
        Index('idx_books_series', 'series'),
    )

    @property
    def series_display(self) -> str | None:
        if self.series is None:
            return None
        if self.series_number is not None:
            return f"{self.series} #{format_series_number(self.series_number)}"
        return self.series

    def __repr__(self) -> str:
        return f"<Book id={self.id} title={self.title!r}>"
