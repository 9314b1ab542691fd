"""Parse and normalize Google Books and Open Library API responses."""
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Tuple
import logging

from bookscan.models import (
    BookRecord,
    NO_DESCRIPTION,
    PLACEHOLDER_COVER_URL,
    UNKNOWN_DATE,
    UNKNOWN_TITLE,
)

logger = logging.getLogger(__name__)

GOOGLE_BOOKS = "google_books"
OPEN_LIBRARY = "open_library"


def _non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _rating(value: Any) -> float:
    try:
        rating = float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return min(5.0, max(0.0, rating))


def _https(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("http:"):
        return "https:" + url[len("http:"):]
    return url


def _names(entries: Any) -> List[str]:
    """Pull ``name`` out of Open Library's ``[{"name": ...}]`` lists."""
    names = []
    for entry in entries or []:
        name = entry.get("name") if isinstance(entry, dict) else entry
        if name:
            names.append(str(name))
    return names


def _strings(value: Any) -> Tuple[str, ...]:
    """Google Books lists; a bare string is one value, not a sequence of characters."""
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value if v)


def parse_google_book(item: Dict[str, Any], isbn: str, fetched_at: Optional[datetime] = None) -> Optional[BookRecord]:
    """
    Parse a single volume item from Google Books API.

    Args:
        item: Single item from the ``items`` list
        isbn: Normalized ISBN the lookup was made with
        fetched_at: Resolution timestamp (defaults to now)

    Returns:
        BookRecord or None if parsing fails
    """
    try:
        volume_info = item.get("volumeInfo") or {}

        # Prefer the larger thumbnail
        image_links = volume_info.get("imageLinks") or {}
        thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")

        return BookRecord(
            isbn=isbn,
            title=volume_info.get("title") or UNKNOWN_TITLE,
            authors=_strings(volume_info.get("authors")),
            description=volume_info.get("description") or NO_DESCRIPTION,
            categories=_strings(volume_info.get("categories")),
            cover_image_url=_https(thumbnail) or PLACEHOLDER_COVER_URL,
            published_date=volume_info.get("publishedDate") or UNKNOWN_DATE,
            page_count=_non_negative_int(volume_info.get("pageCount")),
            average_rating=_rating(volume_info.get("averageRating")),
            ratings_count=_non_negative_int(volume_info.get("ratingsCount")),
            fetched_at=fetched_at or datetime.now(timezone.utc),
            source=GOOGLE_BOOKS,
        )
    except (AttributeError, KeyError, IndexError, TypeError) as e:
        # APIs can be unpredictable; a malformed item counts as no match
        logger.warning(f"Failed to parse Google Books item for {isbn}: {e}")
        return None


def parse_google_books_response(response_json: Dict[str, Any], isbn: str) -> Optional[BookRecord]:
    """
    Parse a full Google Books ``volumes?q=isbn:`` response.

    Only the first item is used; an ISBN query matches one edition.

    Returns:
        BookRecord, or None if the response holds no usable item
    """
    if not isinstance(response_json, dict):
        return None
    items = response_json.get("items") or []
    if not isinstance(items, list) or not items:
        return None
    return parse_google_book(items[0], isbn)


def parse_open_library_response(response_json: Dict[str, Any], isbn: str) -> Optional[BookRecord]:
    """
    Parse an Open Library ``api/books?jscmd=data`` response.

    The payload is keyed by ``ISBN:<digits>``. Open Library carries no
    community ratings, so both rating fields stay at zero.

    Returns:
        BookRecord, or None if the key is missing or malformed
    """
    if not isinstance(response_json, dict):
        return None
    book = response_json.get(f"ISBN:{isbn}")
    if not book:
        return None

    try:
        cover = book.get("cover") or {}
        excerpts = book.get("excerpts") or []
        description = excerpts[0].get("text") if isinstance(excerpts, list) and excerpts else None

        return BookRecord(
            isbn=isbn,
            title=book.get("title") or UNKNOWN_TITLE,
            authors=tuple(_names(book.get("authors"))),
            description=description or NO_DESCRIPTION,
            categories=tuple(_names(book.get("subjects"))),
            cover_image_url=cover.get("medium") or cover.get("large") or PLACEHOLDER_COVER_URL,
            published_date=book.get("publish_date") or UNKNOWN_DATE,
            page_count=_non_negative_int(book.get("number_of_pages")),
            average_rating=0.0,
            ratings_count=0,
            fetched_at=datetime.now(timezone.utc),
            source=OPEN_LIBRARY,
        )
    except (AttributeError, KeyError, IndexError, TypeError) as e:
        logger.warning(f"Failed to parse Open Library record for {isbn}: {e}")
        return None
