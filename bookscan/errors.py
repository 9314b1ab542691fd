"""Error types raised by the lookup pipeline and the reading list."""
from typing import Dict, Optional


class BookScanError(Exception):
    """Base class for all bookscan errors."""


class InvalidIdentifierError(BookScanError):
    """Raised when a normalized ISBN is not 10 or 13 characters long."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"Invalid ISBN '{identifier}': expected 10 or 13 characters, got {len(identifier)}"
        )


class NotFoundError(BookScanError):
    """
    Raised when every catalog was tried without a match.

    ``attempts`` maps each catalog name to why it came back empty handed:
    ``"empty"`` when it answered with no match, ``"error"`` when the request
    or the response body failed.
    """

    def __init__(self, isbn: str, attempts: Optional[Dict[str, str]] = None):
        self.isbn = isbn
        self.attempts = dict(attempts or {})
        super().__init__(f"No catalog returned a book for ISBN {isbn}")

    @property
    def network_failure(self) -> bool:
        """True when no catalog actually answered."""
        return bool(self.attempts) and all(v == "error" for v in self.attempts.values())


class ScanError(BookScanError):
    """Raised by a scanner that produced no result or was cancelled."""


class StorageError(BookScanError):
    """Raised when a repository cannot read or write its data."""


class CatalogRequestError(BookScanError):
    """A catalog request failed in transport, status or body decoding."""

    def __init__(self, catalog: str, reason: str):
        self.catalog = catalog
        self.reason = reason
        super().__init__(f"{catalog} request failed: {reason}")
