"""HTTP clients for the Google Books and Open Library catalogs."""
import time
import random
import requests
from typing import Optional, Dict, Any
import logging

from bookscan.errors import CatalogRequestError
from bookscan.models import BookRecord
from bookscan.parse import (
    GOOGLE_BOOKS,
    OPEN_LIBRARY,
    parse_google_books_response,
    parse_open_library_response,
)

logger = logging.getLogger(__name__)


class CatalogClient:
    """
    Base client for a book catalog reached over HTTP GET.

    Subclasses supply ``name``, ``BASE_URL``, ``_params`` and ``_parse``.
    ``lookup`` returns None when the catalog has no match and raises
    CatalogRequestError when the catalog could not be asked at all.
    """

    name = "catalog"
    BASE_URL = ""

    def __init__(
        self,
        timeout: int = 10,
        max_retries: int = 1,
        base_backoff: float = 1.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            timeout: Request timeout in seconds
            max_retries: Attempts per lookup; 1 means no retry
            base_backoff: Base delay for exponential backoff
            session: Optional pre-built session (tests inject one)
        """
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = session or requests.Session()

    def lookup(self, isbn: str) -> Optional[BookRecord]:
        """
        Look up a single normalized ISBN.

        Args:
            isbn: Normalized ISBN

        Returns:
            BookRecord or None when the catalog has no match

        Raises:
            CatalogRequestError: transport, status or decoding failure
        """
        response_json = self._make_request_with_retry(self.BASE_URL, self._params(isbn))
        book = self._parse(response_json, isbn)
        if book is None:
            logger.info(f"{self.name}: no match for {isbn}")
        return book

    def _params(self, isbn: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _parse(self, response_json: Dict[str, Any], isbn: str) -> Optional[BookRecord]:
        raise NotImplementedError

    def _make_request_with_retry(
        self,
        url: str,
        params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Make HTTP request with retry logic.

        Args:
            url: Request URL
            params: Query parameters

        Returns:
            Decoded response JSON

        Raises:
            CatalogRequestError: once every attempt has failed
        """
        reason = "no attempt made"

        for attempt in range(self.max_retries):
            try:
                logger.info(f"{self.name} request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.get(
                    url,
                    params=params,
                    timeout=self.timeout
                )

                # Handle different status codes
                if response.status_code == 200:
                    logger.info(f"Success: {response.status_code}")
                    try:
                        return response.json()
                    except ValueError as e:
                        raise CatalogRequestError(self.name, f"invalid JSON body: {e}")

                elif response.status_code == 429:
                    # Rate limited - retry with backoff if attempts remain
                    reason = "rate limited (429)"
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")

                elif response.status_code >= 500:
                    # Server error - retryable
                    reason = f"server error ({response.status_code})"
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")

                else:
                    # Client error - don't retry
                    logger.error(f"Client error ({response.status_code}): {response.text}")
                    raise CatalogRequestError(self.name, f"client error ({response.status_code})")

            except requests.exceptions.Timeout:
                reason = "timeout"
                logger.warning(f"Timeout on attempt {attempt + 1}")

            except requests.exceptions.ConnectionError as e:
                reason = f"connection error: {e}"
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")

            except requests.exceptions.RequestException as e:
                logger.error(f"Unexpected request error: {e}")
                raise CatalogRequestError(self.name, str(e))

            if attempt < self.max_retries - 1:
                self._backoff(attempt)

        logger.error(f"{self.name}: all {self.max_retries} attempts failed")
        raise CatalogRequestError(self.name, reason)

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)

        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class GoogleBooksClient(CatalogClient):
    """Primary catalog: Google Books volumes search by ``isbn:`` query."""

    name = GOOGLE_BOOKS
    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        """
        Args:
            api_key: Optional API key (increases rate limits)
        """
        super().__init__(**kwargs)
        self.api_key = api_key

    def _params(self, isbn: str) -> Dict[str, Any]:
        params = {"q": f"isbn:{isbn}"}
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _parse(self, response_json, isbn):
        return parse_google_books_response(response_json, isbn)


class OpenLibraryClient(CatalogClient):
    """Secondary catalog: Open Library books API keyed by ``ISBN:<digits>``."""

    name = OPEN_LIBRARY
    BASE_URL = "https://openlibrary.org/api/books"

    def _params(self, isbn: str) -> Dict[str, Any]:
        return {"bibkeys": f"ISBN:{isbn}", "format": "json", "jscmd": "data"}

    def _parse(self, response_json, isbn):
        return parse_open_library_response(response_json, isbn)
