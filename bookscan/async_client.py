"""Async catalog clients and resolver.

Same fallback order as the sync resolver: each catalog is awaited fully
before the next one is tried.
"""
import httpx
from typing import Dict, List, Optional, Any
import logging

from bookscan.errors import CatalogRequestError, NotFoundError
from bookscan.models import BookRecord
from bookscan.parse import (
    GOOGLE_BOOKS,
    OPEN_LIBRARY,
    parse_google_books_response,
    parse_open_library_response,
)

logger = logging.getLogger(__name__)


class AsyncCatalogClient:
    """Async counterpart of ``bookscan.client.CatalogClient``."""

    name = "catalog"
    BASE_URL = ""

    def __init__(
        self,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize async client.

        Args:
            timeout: Request timeout
            client: Optional shared httpx client
        """
        self.timeout = timeout
        self._owns_client = client is None

        # Create async HTTP client
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def lookup(self, isbn: str) -> Optional[BookRecord]:
        """
        Look up one ISBN.

        Returns:
            BookRecord or None when the catalog has no match

        Raises:
            CatalogRequestError: transport, status or decoding failure
        """
        try:
            logger.info(f"Async {self.name} request: {isbn}")
            response = await self.client.get(self.BASE_URL, params=self._params(isbn))
        except httpx.HTTPError as e:
            logger.error(f"Async {self.name} request failed: {e}")
            raise CatalogRequestError(self.name, str(e))

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} from {self.name} for {isbn}")
            raise CatalogRequestError(self.name, f"status {response.status_code}")

        try:
            response_json = response.json()
        except ValueError as e:
            raise CatalogRequestError(self.name, f"invalid JSON body: {e}")

        return self._parse(response_json, isbn)

    def _params(self, isbn: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _parse(self, response_json: Dict[str, Any], isbn: str) -> Optional[BookRecord]:
        raise NotImplementedError

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


class AsyncGoogleBooksClient(AsyncCatalogClient):
    name = GOOGLE_BOOKS
    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _params(self, isbn):
        params = {"q": f"isbn:{isbn}"}
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _parse(self, response_json, isbn):
        return parse_google_books_response(response_json, isbn)


class AsyncOpenLibraryClient(AsyncCatalogClient):
    name = OPEN_LIBRARY
    BASE_URL = "https://openlibrary.org/api/books"

    def _params(self, isbn):
        return {"bibkeys": f"ISBN:{isbn}", "format": "json", "jscmd": "data"}

    def _parse(self, response_json, isbn):
        return parse_open_library_response(response_json, isbn)


class AsyncCatalogResolver:
    """Await catalogs one after another until one has the book."""

    def __init__(self, adapters: List[AsyncCatalogClient]):
        if not adapters:
            raise ValueError("AsyncCatalogResolver needs at least one catalog adapter")
        self.adapters = list(adapters)

    @classmethod
    def default(cls, api_key: Optional[str] = None, timeout: int = 10) -> "AsyncCatalogResolver":
        return cls([
            AsyncGoogleBooksClient(api_key=api_key, timeout=timeout),
            AsyncOpenLibraryClient(timeout=timeout),
        ])

    async def resolve(self, isbn: str) -> BookRecord:
        """
        Resolve a normalized ISBN.

        Raises:
            NotFoundError: every catalog came back empty or failed
        """
        attempts: Dict[str, str] = {}

        for adapter in self.adapters:
            try:
                book = await adapter.lookup(isbn)
            except CatalogRequestError as e:
                logger.warning(f"{adapter.name} unavailable for {isbn}: {e.reason}")
                attempts[adapter.name] = "error"
                continue

            if book is not None:
                return book
            attempts[adapter.name] = "empty"

        raise NotFoundError(isbn, attempts)

    async def close(self):
        for adapter in self.adapters:
            await adapter.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
