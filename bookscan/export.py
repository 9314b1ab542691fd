"""Export the reading list as CSV, JSON or a printable HTML page."""
import csv
import html
import io
import json
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from bookscan.models import LibraryEntry, ReadingStatus

FORMATS = ("csv", "json", "html")
EXPORT_FILTERS = ("all", "read", "reading", "to-read", "favorites")


def filter_entries(entries: Sequence[LibraryEntry], filter_by: str = "all") -> List[LibraryEntry]:
    if filter_by not in EXPORT_FILTERS:
        raise ValueError(f"Unknown export filter '{filter_by}', expected one of {EXPORT_FILTERS}")
    if filter_by == "read":
        return [e for e in entries if e.reading_status == ReadingStatus.READ]
    if filter_by == "reading":
        return [e for e in entries if e.reading_status == ReadingStatus.READING]
    if filter_by == "to-read":
        return [e for e in entries if e.reading_status == ReadingStatus.WANT_TO_READ]
    if filter_by == "favorites":
        return [e for e in entries if e.user_rating >= 4]
    return list(entries)


def _blank(value) -> str:
    return str(value) if value else ""


def to_csv(
    entries: Sequence[LibraryEntry],
    include_metadata: bool = True,
    include_ratings: bool = True,
    include_notes: bool = False
) -> str:
    headers = ["Title", "Author", "ISBN"]
    if include_metadata:
        headers += ["Genres", "Pages", "Published"]
    if include_ratings:
        headers += ["Your Rating", "Average Rating"]
    if include_notes:
        headers.append("Notes")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)

    for entry in entries:
        book = entry.book
        row = [book.title, ", ".join(book.authors), book.isbn]
        if include_metadata:
            row += [", ".join(book.categories), _blank(book.page_count), book.published_date]
        if include_ratings:
            row += [_blank(entry.user_rating), _blank(book.average_rating)]
        if include_notes:
            row.append(entry.review)
        writer.writerow(row)

    return buffer.getvalue()


def to_json(
    entries: Sequence[LibraryEntry],
    include_metadata: bool = True,
    include_ratings: bool = True,
    include_notes: bool = False,
    now: Optional[datetime] = None
) -> str:
    books = []
    for entry in entries:
        book = entry.book
        item = {"title": book.title, "authors": list(book.authors), "isbn": book.isbn}
        if include_metadata:
            item.update({
                "categories": list(book.categories),
                "pageCount": book.page_count,
                "publishedDate": book.published_date,
                "description": book.description,
            })
        if include_ratings:
            item.update({"userRating": entry.user_rating, "averageRating": book.average_rating})
        if include_notes:
            item["notes"] = entry.review
        books.append(item)

    export_data = {
        "exportDate": (now or datetime.now(timezone.utc)).isoformat(),
        "totalBooks": len(books),
        "books": books,
    }
    return json.dumps(export_data, indent=2, ensure_ascii=False)


_HTML_PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>My Library</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; }}
        .book {{ border-bottom: 1px solid #ddd; padding: 12px 0; }}
        .book-title {{ font-weight: bold; font-size: 1.1em; }}
        .book-author {{ color: #555; }}
        .book-meta {{ color: #777; font-size: 0.9em; margin-top: 4px; }}
    </style>
</head>
<body>
    <h1>My Library</h1>
    <p>Exported on {date} &middot; {count} books</p>
{books}
</body>
</html>
"""


def to_html(
    entries: Sequence[LibraryEntry],
    include_metadata: bool = True,
    include_ratings: bool = True,
    include_notes: bool = False,
    now: Optional[datetime] = None
) -> str:
    blocks = []
    for entry in entries:
        book = entry.book
        meta = [f"ISBN: {html.escape(book.isbn)}"]
        if include_metadata:
            if book.categories:
                meta.append(f"<strong>Genres:</strong> {html.escape(', '.join(book.categories))}")
            if book.page_count:
                meta.append(f"<strong>Pages:</strong> {book.page_count}")
            meta.append(f"<strong>Published:</strong> {html.escape(book.published_date)}")
        if include_ratings and entry.user_rating:
            meta.append(f"<strong>Your rating:</strong> {'&#9733;' * entry.user_rating}")
        if include_notes and entry.review:
            meta.append(f"<strong>Notes:</strong> {html.escape(entry.review)}")

        blocks.append(
            '    <div class="book">\n'
            f'        <div class="book-title">{html.escape(book.title)}</div>\n'
            f'        <div class="book-author">by {html.escape(book.authors_str)}</div>\n'
            f'        <div class="book-meta">{"<br>".join(meta)}</div>\n'
            '    </div>'
        )

    return _HTML_PAGE.format(
        date=(now or datetime.now(timezone.utc)).strftime("%Y-%m-%d"),
        count=len(entries),
        books="\n".join(blocks),
    )


def export_entries(
    entries: Sequence[LibraryEntry],
    fmt: str = "csv",
    filter_by: str = "all",
    include_metadata: bool = True,
    include_ratings: bool = True,
    include_notes: bool = False,
    now: Optional[datetime] = None
) -> Tuple[str, str]:
    """
    Render the (filtered) reading list.

    Args:
        entries: Reading list
        fmt: ``csv``, ``json`` or ``html``
        filter_by: ``all``, ``read``, ``reading``, ``to-read`` or ``favorites``
        include_metadata: Genres, pages, publication date (and description in JSON)
        include_ratings: The user's rating and the community average
        include_notes: The user's review text
        now: Export timestamp (defaults to now)

    Returns:
        (suggested filename, file content)
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format '{fmt}', expected one of {FORMATS}")

    now = now or datetime.now(timezone.utc)
    selected = filter_entries(entries, filter_by)
    options = dict(include_metadata=include_metadata, include_ratings=include_ratings, include_notes=include_notes)

    if fmt == "csv":
        content = to_csv(selected, **options)
    elif fmt == "json":
        content = to_json(selected, now=now, **options)
    else:
        content = to_html(selected, now=now, **options)

    return f"library_{now.strftime('%Y-%m-%d')}.{fmt}", content
