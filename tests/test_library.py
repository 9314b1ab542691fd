"""Tests for the reading list."""
import asyncio
from datetime import datetime, timezone

import pytest

from bookscan.async_client import AsyncCatalogResolver
from bookscan.errors import InvalidIdentifierError
from bookscan.library import Library, scan_to_entry, scan_to_entry_async
from bookscan.models import ReadingStatus, UserPreferences
from bookscan.resolver import CatalogResolver
from tests.conftest import make_book, make_entry


def _at(day):
    return datetime(2024, 3, day, tzinfo=timezone.utc)


@pytest.fixture
def library():
    return Library([
        make_entry(make_book(isbn="1111111111", title="Dune", authors=("Frank Herbert",)),
                   stars=5, score=4.8, scanned_at=_at(1), user_rating=5),
        make_entry(make_book(isbn="2222222222", title="Anathem", authors=("Neal Stephenson",)),
                   stars=4, score=4.1, scanned_at=_at(3)),
        make_entry(make_book(isbn="3333333333", title="Cryptonomicon", authors=("Neal Stephenson",)),
                   stars=2, score=2.4, scanned_at=_at(2), reading_status=ReadingStatus.READ),
    ])


def titles(entries):
    return [e.book.title for e in entries]


def test_query_default_sorts_newest_first(library):
    """The default order is newest scan first."""
    assert titles(library.query()) == ["Anathem", "Cryptonomicon", "Dune"]


def test_query_search_matches_author_case_insensitively(library):
    """Search matches authors regardless of case."""
    assert titles(library.query(search="stephenson", sort_by="title")) == ["Anathem", "Cryptonomicon"]


def test_query_search_matches_title(library):
    """Search matches titles regardless of case."""
    assert titles(library.query(search="DUNE")) == ["Dune"]


def test_query_filters(library):
    """Rating filters select the right entries."""
    assert titles(library.query(filter_by="rated")) == ["Dune"]
    assert titles(library.query(filter_by="unrated")) == ["Anathem", "Cryptonomicon"]
    assert titles(library.query(filter_by="high-rated", sort_by="title")) == ["Anathem", "Dune"]


def test_query_sorts(library):
    """Title, author and rating sorts order entries."""
    assert titles(library.query(sort_by="rating")) == ["Dune", "Anathem", "Cryptonomicon"]
    assert titles(library.query(sort_by="author"))[0] == "Dune"


def test_query_rejects_unknown_options(library):
    """Unknown filters and sorts raise ValueError."""
    with pytest.raises(ValueError):
        library.query(filter_by="bogus")
    with pytest.raises(ValueError):
        library.query(sort_by="bogus")


def test_update_stamps_review_date(library):
    """Changing rating or status stamps the review date."""
    entry = library.update("2222222222", user_rating=4, reading_status="reading")

    assert entry.user_rating == 4
    assert entry.reading_status is ReadingStatus.READING
    assert entry.review_date is not None
    assert library.get("2222222222") is entry


def test_update_rejects_bad_rating(library):
    """Ratings outside 0-5 are rejected."""
    with pytest.raises(ValueError):
        library.update("2222222222", user_rating=6)


def test_update_missing_entry(library):
    """Updating an unknown ISBN raises KeyError."""
    with pytest.raises(KeyError):
        library.update("9999999999", review="great")


def test_update_picks_latest_scan_of_same_isbn():
    """The latest scan of a repeated ISBN is the one updated."""
    old = make_entry(scanned_at=_at(1))
    new = make_entry(scanned_at=_at(5))
    library = Library([old, new])

    library.update(old.isbn, review="second copy")

    assert library.entries[0].review == ""
    assert library.entries[1].review == "second copy"


def test_remove(library):
    """Removing returns the entry and drops it from the list."""
    removed = library.remove("1111111111")

    assert removed.book.title == "Dune"
    assert len(library) == 2


def test_by_status(library):
    """Entries are grouped by reading status in list order."""
    groups = library.by_status()

    assert titles(groups[ReadingStatus.WANT_TO_READ]) == ["Dune", "Anathem"]
    assert titles(groups[ReadingStatus.READ]) == ["Cryptonomicon"]
    assert groups[ReadingStatus.READING] == []


class StubCatalog:
    name = "stub"

    def __init__(self):
        self.calls = 0

    def lookup(self, isbn):
        self.calls += 1
        return make_book(isbn=isbn, categories=("Fantasy",), average_rating=4.5, ratings_count=15000)


def test_scan_to_entry_scores_resolved_book():
    """A scan is validated, resolved and scored into a new entry."""
    entry = scan_to_entry("978-0-14-312774-1", UserPreferences(favorite_genres=["fantasy"]),
                          CatalogResolver([StubCatalog()]))

    assert entry.isbn == "9780143127741"
    assert entry.recommendation.star_rating == 5
    assert entry.reading_status is ReadingStatus.WANT_TO_READ


def test_scan_to_entry_rejects_before_lookup():
    """An invalid ISBN never reaches the catalogs."""
    catalog = StubCatalog()

    with pytest.raises(InvalidIdentifierError):
        scan_to_entry("abc123", None, CatalogResolver([catalog]))

    assert catalog.calls == 0


class AsyncStubCatalog(StubCatalog):
    async def lookup(self, isbn):
        return super().lookup(isbn)

    async def close(self):
        pass


def test_scan_to_entry_async_scores_resolved_book():
    """The async pipeline validates, resolves and scores like the sync one."""
    resolver = AsyncCatalogResolver([AsyncStubCatalog()])

    entry = asyncio.run(scan_to_entry_async("0-306-40615-2", resolver, UserPreferences(favorite_genres=["fantasy"])))

    assert entry.isbn == "0306406152"
    assert entry.recommendation.star_rating == 5


def test_scan_to_entry_async_rejects_before_lookup():
    """An invalid ISBN never reaches the async catalogs."""
    catalog = AsyncStubCatalog()

    with pytest.raises(InvalidIdentifierError):
        asyncio.run(scan_to_entry_async("abc123", AsyncCatalogResolver([catalog])))

    assert catalog.calls == 0
