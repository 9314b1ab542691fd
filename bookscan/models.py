"""Data models for books, recommendations and the reading list."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Tuple, Dict, Any


PLACEHOLDER_COVER_URL = "https://via.placeholder.com/150x200?text=No+Cover"
UNKNOWN_TITLE = "Unknown"
UNKNOWN_DATE = "Unknown"
NO_DESCRIPTION = "Description not available"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, accepting the trailing 'Z' browsers write."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class BookRecord:
    """Canonical book representation, whichever catalog supplied it."""
    isbn: str
    title: str = UNKNOWN_TITLE
    authors: Tuple[str, ...] = ()
    description: str = NO_DESCRIPTION
    categories: Tuple[str, ...] = ()
    cover_image_url: str = PLACEHOLDER_COVER_URL
    published_date: str = UNKNOWN_DATE
    page_count: int = 0
    average_rating: float = 0.0
    ratings_count: int = 0
    fetched_at: datetime = field(default_factory=_utcnow)
    source: str = ""

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"

    @property
    def categories_str(self) -> str:
        """Format categories as comma-separated string."""
        return ", ".join(self.categories) if self.categories else "None"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isbn": self.isbn,
            "title": self.title,
            "authors": list(self.authors),
            "description": self.description,
            "categories": list(self.categories),
            "thumbnail": self.cover_image_url,
            "publishedDate": self.published_date,
            "pageCount": self.page_count,
            "averageRating": self.average_rating,
            "ratingsCount": self.ratings_count,
            "fetchedAt": format_timestamp(self.fetched_at),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookRecord":
        return cls(
            isbn=data["isbn"],
            title=data.get("title") or UNKNOWN_TITLE,
            authors=tuple(data.get("authors") or ()),
            description=data.get("description") or NO_DESCRIPTION,
            categories=tuple(data.get("categories") or ()),
            cover_image_url=data.get("thumbnail") or PLACEHOLDER_COVER_URL,
            published_date=data.get("publishedDate") or UNKNOWN_DATE,
            page_count=int(data.get("pageCount") or 0),
            average_rating=float(data.get("averageRating") or 0.0),
            ratings_count=int(data.get("ratingsCount") or 0),
            fetched_at=parse_timestamp(data.get("fetchedAt")) or _utcnow(),
            source=data.get("source", ""),
        )


@dataclass(frozen=True)
class Recommendation:
    """Scorer output attached to a resolved book."""
    star_rating: int
    score: float
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        return {"stars": self.star_rating, "score": self.score, "reasoning": self.rationale}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            star_rating=int(data["stars"]),
            score=float(data["score"]),
            rationale=data.get("reasoning", ""),
        )


@dataclass
class UserPreferences:
    """Reading profile; only ``favorite_genres`` feeds the scorer."""
    favorite_genres: List[str] = field(default_factory=list)
    name: str = ""
    reading_goal: int = 12
    preferred_languages: List[str] = field(default_factory=list)
    bio: str = ""
    avatar_color: str = "purple"

    def profile_completeness(self) -> int:
        """Percentage of the profile that has been filled in."""
        score = 0
        if self.name:
            score += 20
        if self.favorite_genres:
            score += 30
        if self.bio:
            score += 20
        if self.reading_goal > 0:
            score += 15
        if self.preferred_languages:
            score += 15
        return score

    def reading_progress(self, total_books: int) -> float:
        """Progress towards the yearly goal, capped at 100."""
        if self.reading_goal <= 0:
            return 100.0
        return min(100.0, total_books / self.reading_goal * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "favoriteGenres": list(self.favorite_genres or []),
            "readingGoal": self.reading_goal,
            "preferredLanguages": list(self.preferred_languages),
            "bio": self.bio,
            "avatarColor": self.avatar_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPreferences":
        return cls(
            favorite_genres=list(data.get("favoriteGenres") or []),
            name=data.get("name", ""),
            reading_goal=int(data.get("readingGoal", 12)),
            preferred_languages=list(data.get("preferredLanguages") or []),
            bio=data.get("bio", ""),
            avatar_color=data.get("avatarColor", "purple"),
        )


class ReadingStatus(str, Enum):
    WANT_TO_READ = "want-to-read"
    READING = "reading"
    READ = "read"


@dataclass
class LibraryEntry:
    """A resolved book on the user's reading list, with the user's own fields."""
    book: BookRecord
    recommendation: Recommendation
    scanned_at: datetime = field(default_factory=_utcnow)
    user_rating: int = 0
    review: str = ""
    reading_status: ReadingStatus = ReadingStatus.WANT_TO_READ
    review_date: Optional[datetime] = None

    @property
    def isbn(self) -> str:
        return self.book.isbn

    def with_changes(self, **changes) -> "LibraryEntry":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = self.book.to_dict()
        data.update({
            "recommendation": self.recommendation.to_dict(),
            "scannedAt": format_timestamp(self.scanned_at),
            "userRating": self.user_rating,
            "userReview": self.review,
            "readingStatus": self.reading_status.value,
            "reviewDate": format_timestamp(self.review_date),
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LibraryEntry":
        return cls(
            book=BookRecord.from_dict(data),
            recommendation=Recommendation.from_dict(data["recommendation"]),
            scanned_at=parse_timestamp(data.get("scannedAt")) or _utcnow(),
            user_rating=int(data.get("userRating") or 0),
            review=data.get("userReview") or "",
            reading_status=ReadingStatus(data.get("readingStatus") or ReadingStatus.WANT_TO_READ.value),
            review_date=parse_timestamp(data.get("reviewDate")),
        )
