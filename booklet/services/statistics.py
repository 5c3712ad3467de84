# booklet/services/statistics.py
import calendar
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from booklet.sa.models import CompletedEntry, to_local
from booklet.sa.repositories.reading import YearFilter, parse_year
from booklet.services.lifecycle import LifecycleEngine

logger = logging.getLogger(__name__)

TOP_LIMIT = 10


@dataclass
class MonthlyStats:
    month: int
    month_name: str
    books_count: int = 0
    pages_count: int = 0


@dataclass
class ReadingStats:
    year: Optional[int]
    total_completed: int
    total_pages_read: int
    total_abandoned: int
    average_days_to_finish: Optional[float]
    reading_streak: int
    monthly: List[MonthlyStats] = field(default_factory=list)
    top_authors: List[Tuple[str, int]] = field(default_factory=list)
    top_genres: List[Tuple[str, int]] = field(default_factory=list)
    rating_split: Dict[int, int] = field(default_factory=dict)

    @property
    def period_label(self) -> str:
        return str(self.year) if self.year is not None else "All Time"


def reading_streak(completion_dates: List[date], today: date) -> int:
    """Count completions on consecutive days, walking back from today.

    A completion today or yesterday starts the streak; each further completion
    must fall on the same day as or the day before the previous one.
    """
    streak = 0
    current = today
    for completed_on in sorted(completion_dates, reverse=True):
        days_diff = (current - completed_on).days
        if days_diff in (0, 1):
            streak += 1
            current = completed_on
        else:
            break
    return streak


def _top(counter: Counter) -> List[Tuple[str, int]]:
    return sorted(counter.items(), key=lambda item: (-item[1], item[0]))[:TOP_LIMIT]


class ReadingStatistics:
    """Read-only reading statistics over completed and abandoned books."""

    def __init__(self, engine: LifecycleEngine):
        self.engine = engine

    def available_periods(self) -> List[str]:
        """"All Time" followed by every year with a completion, newest first"""
        return ["All Time"] + [str(year) for year in self.engine.completed_years()]

    def summary(self, year: YearFilter = None, today: Optional[date] = None) -> ReadingStats:
        """Compute statistics for one calendar year, or for all time.

        Days, months and years are taken in local time, like today.

        Args:
            year: Year to report on; None or "All Time" for everything
            today: Local reference day for the reading streak (defaults to today)

        Returns:
            ReadingStats for the period
        """
        year = parse_year(year)
        today = today or date.today()

        all_completed = self.engine.list_completed()
        completed = [
            entry for entry in all_completed
            if year is None or to_local(entry.completion_date).year == year
        ]
        abandoned = self.engine.list_abandoned(year)

        stats = ReadingStats(
            year=year,
            total_completed=len(completed),
            total_pages_read=sum(entry.book.page_count for entry in completed if entry.book is not None),
            total_abandoned=len(abandoned),
            average_days_to_finish=self._average_days(completed),
            reading_streak=reading_streak([to_local(entry.completion_date).date() for entry in all_completed], today),
            monthly=self._monthly(completed),
            top_authors=_top(Counter(entry.book.author for entry in completed if entry.book is not None)),
            top_genres=_top(Counter(
                entry.book.genre for entry in completed if entry.book is not None and entry.book.genre
            )),
            rating_split=self._rating_split(completed),
        )
        logger.debug(f"Computed statistics for {stats.period_label}: {stats.total_completed} completed")
        return stats

    @staticmethod
    def _average_days(completed: List[CompletedEntry]) -> Optional[float]:
        days = [entry.days_to_complete for entry in completed if entry.days_to_complete is not None]
        if not days:
            return None
        return sum(days) / len(days)

    @staticmethod
    def _monthly(completed: List[CompletedEntry]) -> List[MonthlyStats]:
        months = {month: MonthlyStats(month, calendar.month_abbr[month]) for month in range(1, 13)}
        for entry in completed:
            stats = months[to_local(entry.completion_date).month]
            stats.books_count += 1
            stats.pages_count += entry.book.page_count if entry.book is not None else 0
        return list(months.values())

    @staticmethod
    def _rating_split(completed: List[CompletedEntry]) -> Dict[int, int]:
        counts = Counter(entry.rating for entry in completed if entry.rating is not None)
        return {rating: counts.get(rating, 0) for rating in range(1, 6)}
