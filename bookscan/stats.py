"""Reading statistics over the reading list."""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from bookscan.models import LibraryEntry, ReadingStatus, UserPreferences

DEFAULT_READING_GOAL = 12
TOP_GENRES = 5
MONTHS_SHOWN = 6


@dataclass
class ReadingStatistics:
    total_books: int
    books_read: int
    currently_reading: int
    to_read: int
    average_rating: float
    total_pages_read: int
    reading_goal: int
    goal_progress: float
    top_genres: List[Tuple[str, int]] = field(default_factory=list)
    monthly_reading: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def favorite_genre(self) -> Optional[str]:
        return self.top_genres[0][0] if self.top_genres else None

    @property
    def average_pages_per_book(self) -> int:
        if not self.books_read:
            return 0
        return int(self.total_pages_read / self.books_read + 0.5)

    def status_breakdown(self) -> Dict[str, int]:
        return {
            ReadingStatus.READ.value: self.books_read,
            ReadingStatus.READING.value: self.currently_reading,
            ReadingStatus.WANT_TO_READ.value: self.to_read,
        }


def _month_start(day: date, months_back: int) -> Tuple[int, int]:
    index = day.year * 12 + (day.month - 1) - months_back
    return index // 12, index % 12 + 1


def monthly_reading(entries: Sequence[LibraryEntry], today: date, months: int = MONTHS_SHOWN) -> List[Tuple[str, int]]:
    """Books reviewed per calendar month, oldest month first, labelled ``M/YYYY``."""
    counts = Counter(
        (entry.review_date.year, entry.review_date.month)
        for entry in entries
        if entry.review_date
    )
    result = []
    for back in range(months - 1, -1, -1):
        year, month = _month_start(today, back)
        result.append((f"{month}/{year}", counts[(year, month)]))
    return result


def compute_statistics(
    entries: Sequence[LibraryEntry],
    prefs: Optional[UserPreferences] = None,
    today: Optional[date] = None
) -> ReadingStatistics:
    """
    Summarize the reading list.

    Args:
        entries: Reading list
        prefs: Profile supplying the yearly reading goal
        today: Reference day for the monthly chart (defaults to today)

    Returns:
        ReadingStatistics
    """
    today = today or date.today()

    read = [e for e in entries if e.reading_status == ReadingStatus.READ]
    rated = [e for e in entries if e.user_rating > 0]

    average_rating = sum(e.user_rating for e in rated) / len(rated) if rated else 0.0
    pages_read = sum(e.book.page_count for e in read)

    goal = prefs.reading_goal if prefs and prefs.reading_goal > 0 else DEFAULT_READING_GOAL
    progress = min(len(read) / goal * 100, 100.0)

    genres = Counter(category for e in entries for category in e.book.categories)

    return ReadingStatistics(
        total_books=len(entries),
        books_read=len(read),
        currently_reading=sum(1 for e in entries if e.reading_status == ReadingStatus.READING),
        to_read=sum(1 for e in entries if e.reading_status == ReadingStatus.WANT_TO_READ),
        average_rating=average_rating,
        total_pages_read=pages_read,
        reading_goal=goal,
        goal_progress=progress,
        top_genres=genres.most_common(TOP_GENRES),
        monthly_reading=monthly_reading(entries, today),
    )
