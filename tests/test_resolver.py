"""Tests for sequential catalog fallback."""
from unittest.mock import MagicMock

import pytest
import requests

from bookscan.client import GoogleBooksClient, OpenLibraryClient
from bookscan.errors import CatalogRequestError, NotFoundError
from bookscan.models import NO_DESCRIPTION
from bookscan.resolver import CatalogResolver, resolve
from tests.conftest import make_book

ISBN = "9780143127741"


class FakeCatalog:
    def __init__(self, name, result=None, error=False):
        self.name = name
        self.result = result
        self.error = error
        self.calls = []

    def lookup(self, isbn):
        self.calls.append(isbn)
        if self.error:
            raise CatalogRequestError(self.name, "connection error")
        return self.result


def test_primary_hit_skips_secondary():
    """A primary hit skips the secondary catalog."""
    primary = FakeCatalog("google_books", make_book(source="google_books"))
    secondary = FakeCatalog("open_library", make_book(source="open_library"))

    book = CatalogResolver([primary, secondary]).resolve(ISBN)

    assert book.source == "google_books"
    assert secondary.calls == []


def test_primary_empty_falls_back():
    """An empty primary answer falls back to the secondary."""
    primary = FakeCatalog("google_books", None)
    secondary = FakeCatalog("open_library", make_book(source="open_library"))

    book = CatalogResolver([primary, secondary]).resolve(ISBN)

    assert book.source == "open_library"
    assert primary.calls == [ISBN]
    assert secondary.calls == [ISBN]


def test_primary_error_falls_back():
    """A failing primary falls back to the secondary."""
    primary = FakeCatalog("google_books", error=True)
    secondary = FakeCatalog("open_library", make_book(source="open_library"))

    assert resolve(ISBN, CatalogResolver([primary, secondary])).source == "open_library"


def test_both_fail_raises_not_found():
    """NotFoundError records what each catalog returned."""
    primary = FakeCatalog("google_books", error=True)
    secondary = FakeCatalog("open_library", None)

    with pytest.raises(NotFoundError) as exc_info:
        CatalogResolver([primary, secondary]).resolve(ISBN)

    assert exc_info.value.isbn == ISBN
    assert exc_info.value.attempts == {"google_books": "error", "open_library": "empty"}
    assert not exc_info.value.network_failure
    assert len(primary.calls) == 1
    assert len(secondary.calls) == 1


def test_network_failure_flag():
    """network_failure is set only when every catalog errored."""
    catalogs = [FakeCatalog("google_books", error=True), FakeCatalog("open_library", error=True)]

    with pytest.raises(NotFoundError) as exc_info:
        CatalogResolver(catalogs).resolve(ISBN)

    assert exc_info.value.network_failure


def test_resolver_needs_adapters():
    """A resolver without adapters is rejected."""
    with pytest.raises(ValueError):
        CatalogResolver([])


def _client_session(json_data):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = json_data
    session = MagicMock(spec=requests.Session)
    session.get.return_value = response
    return session


def test_malformed_primary_response_falls_back():
    """A Google response with items as a dict moves on to Open Library."""
    google = GoogleBooksClient(session=_client_session({"items": {"kind": "books#volume"}}))
    open_library = OpenLibraryClient(session=_client_session({f"ISBN:{ISBN}": {"title": "Sapiens"}}))

    book = CatalogResolver([google, open_library]).resolve(ISBN)

    assert book.title == "Sapiens"
    assert book.source == "open_library"


def test_malformed_secondary_response_still_resolves():
    """Open Library excerpts as a dict do not escape the resolver."""
    google = GoogleBooksClient(session=_client_session({"totalItems": 0}))
    open_library = OpenLibraryClient(session=_client_session(
        {f"ISBN:{ISBN}": {"title": "Sapiens", "excerpts": {"text": "About 13.5 billion years ago..."}}}
    ))

    book = CatalogResolver([google, open_library]).resolve(ISBN)

    assert book.source == "open_library"
    assert book.description == NO_DESCRIPTION


def test_malformed_both_raises_not_found():
    """Unusable payloads from both catalogs end in NotFoundError."""
    google = GoogleBooksClient(session=_client_session({"items": {"kind": "books#volume"}}))
    open_library = OpenLibraryClient(session=_client_session({f"ISBN:{ISBN}": []}))

    with pytest.raises(NotFoundError) as exc_info:
        CatalogResolver([google, open_library]).resolve(ISBN)

    assert not exc_info.value.network_failure
