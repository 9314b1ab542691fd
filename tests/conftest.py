"""Shared fixtures."""
from datetime import datetime, timezone

import pytest

from bookscan.models import BookRecord, LibraryEntry, Recommendation, ReadingStatus


def make_book(**overrides) -> BookRecord:
    fields = dict(
        isbn="9780143127741",
        title="Sapiens",
        authors=("Yuval Noah Harari",),
        categories=("History",),
        page_count=464,
        average_rating=4.2,
        ratings_count=5000,
        published_date="2015",
        fetched_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source="google_books",
    )
    fields.update(overrides)
    return BookRecord(**fields)


def make_entry(book=None, stars=3, score=3.0, **overrides) -> LibraryEntry:
    fields = dict(
        book=book or make_book(),
        recommendation=Recommendation(star_rating=stars, score=score, rationale="based on your taste profile"),
        scanned_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        reading_status=ReadingStatus.WANT_TO_READ,
    )
    fields.update(overrides)
    return LibraryEntry(**fields)


@pytest.fixture
def book():
    return make_book()
