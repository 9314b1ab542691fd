"""Personal reading list: scanned books plus the user's own ratings and status."""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
import logging

from bookscan.async_client import AsyncCatalogResolver
from bookscan.isbn import require_valid
from bookscan.models import LibraryEntry, ReadingStatus, UserPreferences
from bookscan.resolver import CatalogResolver, resolve
from bookscan.scoring import score

logger = logging.getLogger(__name__)

FILTERS = ("all", "rated", "unrated", "high-rated")
SORTS = ("date", "title", "author", "rating")

# Fields that mark an entry as reviewed when they change
_REVIEW_FIELDS = {"user_rating", "review", "reading_status"}


def scan_to_entry(
    raw: str,
    prefs: Optional[UserPreferences] = None,
    resolver: Optional[CatalogResolver] = None
) -> LibraryEntry:
    """
    Run a raw scan through validation, catalog lookup and scoring.

    Raises:
        InvalidIdentifierError: before any network activity
        NotFoundError: no catalog had the book
    """
    isbn = require_valid(raw)
    book = resolve(isbn, resolver)
    return LibraryEntry(book=book, recommendation=score(book, prefs))


async def scan_to_entry_async(
    raw: str,
    resolver: AsyncCatalogResolver,
    prefs: Optional[UserPreferences] = None
) -> LibraryEntry:
    """Same pipeline as ``scan_to_entry`` over an async resolver."""
    isbn = require_valid(raw)
    book = await resolver.resolve(isbn)
    return LibraryEntry(book=book, recommendation=score(book, prefs))


class Library:
    """In-memory reading list; persistence is left to a repository."""

    def __init__(self, entries: Optional[Iterable[LibraryEntry]] = None):
        self.entries: List[LibraryEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def add(self, entry: LibraryEntry) -> LibraryEntry:
        self.entries.append(entry)
        logger.info(f"Added '{entry.book.title}' ({entry.isbn}) to library")
        return entry

    def _index(self, isbn: str, scanned_at: Optional[datetime] = None) -> int:
        """Index of the matching entry; the latest scan wins when ``scanned_at`` is None."""
        matches = [
            i for i, entry in enumerate(self.entries)
            if entry.isbn == isbn and (scanned_at is None or entry.scanned_at == scanned_at)
        ]
        if not matches:
            raise KeyError(f"No library entry for ISBN {isbn}")
        return max(matches, key=lambda i: self.entries[i].scanned_at)

    def get(self, isbn: str, scanned_at: Optional[datetime] = None) -> LibraryEntry:
        return self.entries[self._index(isbn, scanned_at)]

    def update(self, isbn: str, scanned_at: Optional[datetime] = None, **changes) -> LibraryEntry:
        """
        Replace user-owned fields of an entry.

        Changing rating, review or reading status stamps ``review_date``.

        Raises:
            KeyError: no such entry
            ValueError: rating outside 0-5
        """
        rating = changes.get("user_rating")
        if rating is not None and not 0 <= rating <= 5:
            raise ValueError(f"Rating must be between 0 and 5, got {rating}")
        if "reading_status" in changes:
            changes["reading_status"] = ReadingStatus(changes["reading_status"])
        if changes.keys() & _REVIEW_FIELDS and "review_date" not in changes:
            changes["review_date"] = datetime.now(timezone.utc)

        index = self._index(isbn, scanned_at)
        updated = self.entries[index].with_changes(**changes)
        self.entries[index] = updated
        logger.info(f"Updated {isbn}: {', '.join(sorted(changes))}")
        return updated

    def remove(self, isbn: str, scanned_at: Optional[datetime] = None) -> LibraryEntry:
        removed = self.entries.pop(self._index(isbn, scanned_at))
        logger.info(f"Removed '{removed.book.title}' ({isbn}) from library")
        return removed

    def query(self, search: str = "", filter_by: str = "all", sort_by: str = "date") -> List[LibraryEntry]:
        """
        Search, filter and sort the reading list.

        Args:
            search: Case-insensitive substring of the title or any author
            filter_by: One of ``all``, ``rated``, ``unrated``, ``high-rated``
            sort_by: One of ``date`` (newest first), ``title``, ``author``, ``rating``

        Returns:
            New list of matching entries
        """
        if filter_by not in FILTERS:
            raise ValueError(f"Unknown filter '{filter_by}', expected one of {FILTERS}")
        if sort_by not in SORTS:
            raise ValueError(f"Unknown sort '{sort_by}', expected one of {SORTS}")

        term = search.lower()

        def matches(entry: LibraryEntry) -> bool:
            if term and term not in entry.book.title.lower() and not any(
                term in author.lower() for author in entry.book.authors
            ):
                return False
            if filter_by == "rated":
                return entry.user_rating > 0
            if filter_by == "unrated":
                return entry.user_rating == 0
            if filter_by == "high-rated":
                return entry.recommendation.star_rating >= 4
            return True

        results = [entry for entry in self.entries if matches(entry)]

        if sort_by == "title":
            results.sort(key=lambda e: e.book.title.lower())
        elif sort_by == "author":
            results.sort(key=lambda e: (e.book.authors[0] if e.book.authors else "").lower())
        elif sort_by == "rating":
            results.sort(key=lambda e: e.recommendation.score, reverse=True)
        else:
            results.sort(key=lambda e: e.scanned_at, reverse=True)

        return results

    def by_status(self, entries: Optional[Iterable[LibraryEntry]] = None) -> Dict[ReadingStatus, List[LibraryEntry]]:
        """Group entries under each reading status, in list order."""
        groups: Dict[ReadingStatus, List[LibraryEntry]] = {status: [] for status in ReadingStatus}
        for entry in self.entries if entries is None else entries:
            groups[entry.reading_status].append(entry)
        return groups
