"""Tests for parsing functions."""
from bookscan.models import NO_DESCRIPTION, PLACEHOLDER_COVER_URL, UNKNOWN_DATE, UNKNOWN_TITLE
from bookscan.parse import (
    parse_google_book,
    parse_google_books_response,
    parse_open_library_response,
)

ISBN = "9780143127741"


def test_parse_google_book_complete():
    """Test parsing a volume with all fields present."""
    item = {
        "id": "abc123",
        "volumeInfo": {
            "title": "Sapiens",
            "authors": ["Yuval Noah Harari"],
            "publishedDate": "2015-02-10",
            "description": "A brief history of humankind",
            "pageCount": 464,
            "categories": ["History"],
            "averageRating": 4.5,
            "ratingsCount": 15000,
            "imageLinks": {
                "smallThumbnail": "http://example.com/small.jpg",
                "thumbnail": "http://example.com/thumb.jpg"
            }
        }
    }

    book = parse_google_book(item, ISBN)

    assert book is not None
    assert book.isbn == ISBN
    assert book.title == "Sapiens"
    assert book.authors == ("Yuval Noah Harari",)
    assert book.categories == ("History",)
    assert book.page_count == 464
    assert book.average_rating == 4.5
    assert book.ratings_count == 15000
    assert book.cover_image_url == "https://example.com/thumb.jpg"
    assert book.source == "google_books"


def test_parse_google_book_missing_fields():
    """Every absent field gets its documented default."""
    book = parse_google_book({"volumeInfo": {}}, ISBN)

    assert book.title == UNKNOWN_TITLE
    assert book.authors == ()
    assert book.categories == ()
    assert book.description == NO_DESCRIPTION
    assert book.cover_image_url == PLACEHOLDER_COVER_URL
    assert book.published_date == UNKNOWN_DATE
    assert book.page_count == 0
    assert book.average_rating == 0.0
    assert book.ratings_count == 0


def test_parse_google_book_null_fields():
    """Explicit nulls fall back to the defaults."""
    item = {"volumeInfo": {"title": None, "authors": None, "pageCount": None, "imageLinks": None}}

    book = parse_google_book(item, ISBN)

    assert book.title == UNKNOWN_TITLE
    assert book.authors == ()
    assert book.page_count == 0
    assert book.cover_image_url == PLACEHOLDER_COVER_URL


def test_parse_google_book_small_thumbnail_fallback():
    """smallThumbnail is used when thumbnail is missing."""
    item = {"volumeInfo": {"imageLinks": {"smallThumbnail": "http://example.com/small.jpg"}}}

    assert parse_google_book(item, ISBN).cover_image_url == "https://example.com/small.jpg"


def test_parse_google_book_clamps_bad_numbers():
    """Out-of-range and non-numeric values are clamped to safe numbers."""
    item = {"volumeInfo": {"averageRating": 7, "ratingsCount": -3, "pageCount": "many"}}

    book = parse_google_book(item, ISBN)

    assert book.average_rating == 5.0
    assert book.ratings_count == 0
    assert book.page_count == 0


def test_parse_google_book_malformed_item():
    """A malformed item is treated as no match."""
    assert parse_google_book({"volumeInfo": "oops"}, ISBN) is None


def test_parse_google_books_response_uses_first_item():
    """Only the first item of the response is parsed."""
    response = {
        "totalItems": 2,
        "items": [
            {"id": "1", "volumeInfo": {"title": "Book 1"}},
            {"id": "2", "volumeInfo": {"title": "Book 2"}}
        ]
    }

    assert parse_google_books_response(response, ISBN).title == "Book 1"


def test_parse_google_books_response_no_items():
    """Responses without items give no record."""
    assert parse_google_books_response({"totalItems": 0}, ISBN) is None
    assert parse_google_books_response({"items": []}, ISBN) is None
    assert parse_google_books_response([], ISBN) is None


def test_parse_open_library_response():
    """Test parsing a complete Open Library record."""
    response = {
        f"ISBN:{ISBN}": {
            "title": "Sapiens",
            "authors": [{"name": "Yuval Noah Harari", "url": "https://openlibrary.org/authors/x"}],
            "subjects": [{"name": "Civilization"}, {"name": "Human beings"}],
            "cover": {"small": "s.jpg", "medium": "m.jpg", "large": "l.jpg"},
            "excerpts": [{"text": "About 13.5 billion years ago..."}],
            "publish_date": "2015",
            "number_of_pages": 443
        }
    }

    book = parse_open_library_response(response, ISBN)

    assert book.title == "Sapiens"
    assert book.authors == ("Yuval Noah Harari",)
    assert book.categories == ("Civilization", "Human beings")
    assert book.cover_image_url == "m.jpg"
    assert book.description == "About 13.5 billion years ago..."
    assert book.published_date == "2015"
    assert book.page_count == 443
    assert book.average_rating == 0.0
    assert book.ratings_count == 0
    assert book.source == "open_library"


def test_parse_open_library_response_defaults():
    """Missing Open Library fields fall back to the defaults."""
    book = parse_open_library_response({f"ISBN:{ISBN}": {"cover": {"large": "l.jpg"}}}, ISBN)

    assert book.title == UNKNOWN_TITLE
    assert book.authors == ()
    assert book.description == NO_DESCRIPTION
    assert book.cover_image_url == "l.jpg"
    assert book.page_count == 0


def test_parse_open_library_response_missing_key():
    """A response without the requested ISBN key gives no record."""
    assert parse_open_library_response({}, ISBN) is None
    assert parse_open_library_response({"ISBN:0000000000": {"title": "Other"}}, ISBN) is None


def test_parse_google_books_response_items_not_a_list():
    """A dict where the items list belongs counts as no match."""
    assert parse_google_books_response({"items": {"kind": "books#volume"}}, ISBN) is None


def test_parse_google_book_string_authors():
    """A bare string author or category stays one value."""
    book = parse_google_book(
        {"volumeInfo": {"title": "Sapiens", "authors": "Yuval Noah Harari", "categories": "History"}},
        ISBN
    )

    assert book.authors == ("Yuval Noah Harari",)
    assert book.categories == ("History",)


def test_parse_open_library_response_excerpts_not_a_list():
    """Malformed excerpts fall back to the default description."""
    response = {f"ISBN:{ISBN}": {"title": "Sapiens", "excerpts": {"text": "About 13.5 billion years ago..."}}}

    book = parse_open_library_response(response, ISBN)

    assert book.title == "Sapiens"
    assert book.description == NO_DESCRIPTION
