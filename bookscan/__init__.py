"""ISBN lookup, catalog fallback and recommendation scoring."""
from bookscan.errors import (
    BookScanError,
    InvalidIdentifierError,
    NotFoundError,
    ScanError,
    StorageError,
)
from bookscan.isbn import is_valid, normalize, require_valid
from bookscan.models import BookRecord, LibraryEntry, ReadingStatus, Recommendation, UserPreferences
from bookscan.resolver import CatalogResolver, resolve
from bookscan.scoring import score

__all__ = [
    "BookRecord",
    "BookScanError",
    "CatalogResolver",
    "InvalidIdentifierError",
    "LibraryEntry",
    "NotFoundError",
    "ReadingStatus",
    "Recommendation",
    "ScanError",
    "StorageError",
    "UserPreferences",
    "is_valid",
    "normalize",
    "require_valid",
    "resolve",
    "score",
]
