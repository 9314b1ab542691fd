"""Sequential catalog fallback: primary first, secondary only when it comes up empty."""
from typing import Dict, Optional, Protocol, Sequence
import logging

from bookscan.client import GoogleBooksClient, OpenLibraryClient
from bookscan.config import Config
from bookscan.errors import CatalogRequestError, NotFoundError
from bookscan.models import BookRecord

logger = logging.getLogger(__name__)


class CatalogAdapter(Protocol):
    """Anything that can look up one ISBN in one catalog."""

    name: str

    def lookup(self, isbn: str) -> Optional[BookRecord]: ...


class CatalogResolver:
    """Try catalog adapters in order until one yields a record."""

    def __init__(self, adapters: Sequence[CatalogAdapter]):
        if not adapters:
            raise ValueError("CatalogResolver needs at least one catalog adapter")
        self.adapters = list(adapters)

    def resolve(self, isbn: str) -> BookRecord:
        """
        Resolve a normalized ISBN to a BookRecord.

        A catalog with no match and a catalog that failed are treated the
        same: move on to the next one. Nothing is retried here.

        Args:
            isbn: Normalized ISBN

        Returns:
            Record from the first catalog that had a match

        Raises:
            NotFoundError: every catalog came back empty or failed
        """
        attempts: Dict[str, str] = {}

        for adapter in self.adapters:
            try:
                book = adapter.lookup(isbn)
            except CatalogRequestError as e:
                logger.warning(f"{adapter.name} unavailable for {isbn}: {e.reason}")
                attempts[adapter.name] = "error"
                continue

            if book is not None:
                logger.info(f"Found '{book.title}' for {isbn} via {adapter.name}")
                return book

            attempts[adapter.name] = "empty"
            logger.info(f"{adapter.name} has no match for {isbn}, trying next catalog")

        raise NotFoundError(isbn, attempts)


def default_resolver(config: Optional[Config] = None) -> CatalogResolver:
    """Google Books first, Open Library as fallback."""
    config = config or Config()
    return CatalogResolver([
        GoogleBooksClient(
            api_key=config.GOOGLE_BOOKS_API_KEY,
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES,
        ),
        OpenLibraryClient(
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES,
        ),
    ])


def resolve(isbn: str, resolver: Optional[CatalogResolver] = None) -> BookRecord:
    """
    Resolve ``isbn`` with the given resolver, or a default one whose
    HTTP sessions are closed afterwards.
    """
    if resolver is not None:
        return resolver.resolve(isbn)

    resolver = default_resolver()
    try:
        return resolver.resolve(isbn)
    finally:
        for adapter in resolver.adapters:
            adapter.close()
