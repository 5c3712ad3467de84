# tests/test_repositories/test_reading_repositories.py
from datetime import datetime
import pytest
from booklet.exceptions import ValidationError
from booklet.sa.repositories.reading import (
    ALL_TIME, AbandonedRepository, CompletedRepository, TrackerRepository, parse_year
)


@pytest.mark.parametrize("value,expected", [
    (None, None),
    (ALL_TIME, None),
    ("all time", None),
    ("", None),
    ("2023", 2023),
    (2023, 2023),
])
def test_parse_year(value, expected):
    assert parse_year(value) == expected


@pytest.mark.parametrize("value", ["last year", "20x3", True, "²", "0", 0, -5, 9999, "10000"])
def test_parse_year_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_year(value)


def test_add_loads_book(db_session, dune):
    """Test a new entry comes back with its book attached"""
    entry = TrackerRepository(db_session).add(book_id=dune.id, current_page=0, start_date=datetime(2024, 1, 1))
    db_session.commit()
    assert entry.id is not None
    assert entry.book.title == "Dune"


def test_completed_year_filter(db_session, sample_books):
    """Test the year filter keeps only completions in that calendar year"""
    repo = CompletedRepository(db_session)
    repo.add(book_id=sample_books[0].id, completion_date=datetime(2023, 12, 31, 23, 59))
    repo.add(book_id=sample_books[1].id, completion_date=datetime(2024, 1, 1, 0, 0))
    repo.add(book_id=sample_books[2].id, completion_date=datetime(2024, 6, 1))
    db_session.commit()

    assert [entry.book.title for entry in repo.list_entries(2024)] == ["Emma", "Dune Messiah"]
    assert [entry.book.title for entry in repo.list_entries("2023")] == ["Dune"]
    assert len(repo.list_entries(ALL_TIME)) == 3
    assert repo.list_entries(2022) == []
    assert repo.available_years() == [2024, 2023]


def test_abandoned_year_filter(db_session, sample_books):
    repo = AbandonedRepository(db_session)
    repo.add(book_id=sample_books[0].id, abandonment_date=datetime(2022, 5, 5))
    repo.add(book_id=sample_books[1].id, abandonment_date=datetime(2024, 5, 5))
    db_session.commit()

    assert len(repo.list_entries(2022)) == 1
    assert len(repo.list_entries(None)) == 2


def test_tracking_list_most_recent_first(db_session, sample_books):
    repo = TrackerRepository(db_session)
    repo.add(book_id=sample_books[0].id, current_page=0, start_date=datetime(2024, 1, 1))
    repo.add(book_id=sample_books[1].id, current_page=0, start_date=datetime(2024, 2, 1))
    db_session.commit()

    assert [entry.book.title for entry in repo.list_entries()] == ["Dune Messiah", "Dune"]
    assert repo.book_ids() == {sample_books[0].id, sample_books[1].id}
    assert repo.count() == 2


def test_remove_only_flushes(db_session, dune):
    """Test removal is not committed by the repository itself"""
    repo = TrackerRepository(db_session)
    entry = repo.add(book_id=dune.id, current_page=0, start_date=datetime(2024, 1, 1))
    db_session.commit()

    repo.remove(entry)
    assert repo.get_by_id(entry.id) is None
    db_session.rollback()
    assert repo.get_by_id(entry.id) is not None


def test_year_filter_at_the_edges_of_the_range(db_session, dune):
    """Test the first and last accepted years query without overflowing"""
    repo = CompletedRepository(db_session)
    assert repo.list_entries(2) == []
    assert repo.list_entries("9998") == []
    with pytest.raises(ValidationError):
        repo.list_entries("9999")


def test_year_filter_uses_local_calendar(db_session, sample_books, local_timezone):
    """Test a New Year's Eve completion west of UTC counts for the old year"""
    local_timezone("PST8")
    repo = CompletedRepository(db_session)
    repo.add(book_id=sample_books[0].id, completion_date=datetime(2025, 1, 1, 3, 0))
    repo.add(book_id=sample_books[1].id, completion_date=datetime(2025, 1, 1, 9, 0))
    db_session.commit()

    assert [entry.book.title for entry in repo.list_entries(2024)] == ["Dune"]
    assert [entry.book.title for entry in repo.list_entries(2025)] == ["Dune Messiah"]
    assert repo.available_years() == [2025, 2024]
