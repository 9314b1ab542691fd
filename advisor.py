#!/usr/bin/env python3
"""BookScan Advisor CLI - ISBN lookup, recommendations and reading list."""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from tabulate import tabulate
from bookscan.async_client import AsyncCatalogResolver
from bookscan.config import Config
from bookscan.errors import InvalidIdentifierError, NotFoundError, ScanError, StorageError
from bookscan.export import EXPORT_FILTERS, FORMATS, export_entries
from bookscan.isbn import normalize
from bookscan.library import FILTERS, SORTS, Library, scan_to_entry, scan_to_entry_async
from bookscan.models import ReadingStatus, UserPreferences
from bookscan.resolver import default_resolver
from bookscan.scanner import ManualScanner, SampleScanner
from bookscan.stats import compute_statistics
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def setup_repository(config: Config):
    """Build the configured repository."""
    if config.STORAGE_BACKEND == "postgres":
        from bookscan.database import PostgresRepository

        repo = PostgresRepository(config.DATABASE_URL)
        repo.init_schema()
        return repo
    if config.STORAGE_BACKEND == "json":
        from bookscan.storage import JsonFileRepository

        return JsonFileRepository(config.DATA_DIR)
    raise StorageError(f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}'")


def close_repository(repo):
    close = getattr(repo, "close", None)
    if close:
        close()


def _truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def display_entries(entries, format_type: str = "table"):
    """Display library entries in specified format."""
    if format_type == "table":
        headers = ["ISBN", "Title", "Authors", "Status", "Stars", "Score", "Your Rating"]
        rows = [
            [
                entry.isbn,
                _truncate(entry.book.title, 40),
                _truncate(entry.book.authors_str, 30),
                entry.reading_status.value,
                entry.recommendation.star_rating,
                entry.recommendation.score,
                entry.user_rating or "-"
            ]
            for entry in entries
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False))


def display_recommendation(entry):
    """Show a freshly scanned book with its recommendation."""
    book = entry.book
    rec = entry.recommendation
    rows = [
        ["Title", book.title],
        ["Authors", book.authors_str],
        ["ISBN", book.isbn],
        ["Published", book.published_date],
        ["Pages", book.page_count or "N/A"],
        ["Categories", book.categories_str],
        ["Average rating", f"{book.average_rating or 'N/A'}/5 ({book.ratings_count} ratings)"],
        ["Recommendation", f"{rec.score}/5 ({'*' * rec.star_rating})"],
        ["Why", rec.rationale],
        ["Source", book.source],
    ]
    print("\n" + tabulate(rows, tablefmt="grid"))


async def scan_book_async(raw: str, prefs, config: Config):
    """Resolve and score a scan using the async catalog clients."""
    async with AsyncCatalogResolver.default(
        api_key=config.GOOGLE_BOOKS_API_KEY,
        timeout=config.DEFAULT_TIMEOUT
    ) as resolver:
        return await scan_to_entry_async(raw, resolver, prefs)


def scan_book(args, config: Config):
    """Resolve an ISBN (typed, given or simulated) and score it."""
    repo = setup_repository(config)

    try:
        if args.isbn:
            raw = args.isbn
        elif args.sample:
            raw = SampleScanner().scan()
        else:
            raw = ManualScanner().scan()

        prefs = repo.load_preferences()
        if args.use_async:
            entry = asyncio.run(scan_book_async(raw, prefs, config))
        else:
            resolver = default_resolver(config)
            try:
                entry = scan_to_entry(raw, prefs, resolver)
            finally:
                for adapter in resolver.adapters:
                    adapter.close()

        if args.format == "json":
            print(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))
        else:
            display_recommendation(entry)

        if args.add:
            library = Library(repo.load_entries())
            library.add(entry)
            repo.save_entries(library.entries)
            logger.info(f"✅ '{entry.book.title}' added to your library")

    finally:
        close_repository(repo)


def list_library(args, config: Config):
    """List the reading list."""
    repo = setup_repository(config)

    try:
        library = Library(repo.load_entries())
        entries = library.query(args.search, args.filter, args.sort)

        if args.status:
            entries = library.by_status(entries)[ReadingStatus(args.status)]

        if not entries:
            print("No books found.")
            return

        display_entries(entries, args.format)

    finally:
        close_repository(repo)


def update_book(args, config: Config):
    """Update rating, review or reading status of a library entry."""
    repo = setup_repository(config)

    try:
        library = Library(repo.load_entries())

        changes = {}
        if args.rating is not None:
            changes["user_rating"] = args.rating
        if args.review is not None:
            changes["review"] = args.review
        if args.status is not None:
            changes["reading_status"] = args.status

        if not changes:
            logger.error("Nothing to update: pass --rating, --review or --status")
            sys.exit(1)

        entry = library.update(normalize(args.isbn), **changes)
        repo.save_entries(library.entries)
        logger.info(f"✅ Updated '{entry.book.title}'")

    finally:
        close_repository(repo)


def remove_book(args, config: Config):
    """Remove a library entry."""
    repo = setup_repository(config)

    try:
        library = Library(repo.load_entries())
        entry = library.remove(normalize(args.isbn))
        repo.save_entries(library.entries)
        logger.info(f"✅ Removed '{entry.book.title}'")

    finally:
        close_repository(repo)


def edit_profile(args, config: Config):
    """Show or update the user profile."""
    repo = setup_repository(config)

    try:
        prefs = repo.load_preferences() or UserPreferences()
        changed = False

        if args.name is not None:
            prefs.name = args.name
            changed = True
        if args.genres is not None:
            prefs.favorite_genres = [g.strip() for g in args.genres.split(",") if g.strip()]
            changed = True
        if args.goal is not None:
            prefs.reading_goal = args.goal
            changed = True
        if args.languages is not None:
            prefs.preferred_languages = [l.strip() for l in args.languages.split(",") if l.strip()]
            changed = True
        if args.bio is not None:
            prefs.bio = args.bio
            changed = True

        if changed:
            repo.save_preferences(prefs)
            logger.info("✅ Profile saved")

        total = len(repo.load_entries())
        rows = [
            ["Name", prefs.name or "-"],
            ["Favorite genres", ", ".join(prefs.favorite_genres) or "-"],
            ["Reading goal", prefs.reading_goal],
            ["Languages", ", ".join(prefs.preferred_languages) or "-"],
            ["Bio", prefs.bio or "-"],
            ["Profile complete", f"{prefs.profile_completeness()}%"],
            ["Goal progress", f"{prefs.reading_progress(total):.0f}%"],
        ]
        print("\n" + tabulate(rows, tablefmt="grid"))

    finally:
        close_repository(repo)


def show_stats(args, config: Config):
    """Show reading statistics."""
    repo = setup_repository(config)

    try:
        stats = compute_statistics(repo.load_entries(), repo.load_preferences())

        print("\n" + "=" * 50)
        print("READING STATISTICS")
        print("=" * 50)
        print(f"Total books: {stats.total_books}")
        print(f"Read: {stats.books_read} | Reading: {stats.currently_reading} | To read: {stats.to_read}")
        print(f"Average rating: {stats.average_rating:.1f}")
        print(f"Pages read: {stats.total_pages_read} (avg {stats.average_pages_per_book} per book)")
        print(f"Yearly goal: {stats.books_read}/{stats.reading_goal} ({stats.goal_progress:.0f}%)")
        print(f"Favorite genre: {stats.favorite_genre or 'Not determined yet'}")
        print("=" * 50)

        if stats.top_genres:
            print("\n" + tabulate(stats.top_genres, headers=["Genre", "Books"], tablefmt="grid"))
        print("\n" + tabulate(stats.monthly_reading, headers=["Month", "Books reviewed"], tablefmt="grid") + "\n")

    finally:
        close_repository(repo)


def export_data(args, config: Config):
    """Export the reading list."""
    repo = setup_repository(config)

    try:
        entries = repo.load_entries()
        filename, content = export_entries(
            entries,
            fmt=args.format,
            filter_by=args.filter,
            include_metadata=not args.no_metadata,
            include_ratings=not args.no_ratings,
            include_notes=args.notes,
        )

        if args.output == "-":
            print(content)
            return

        output_file = Path(args.output or filename)
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            f.write(content)
        logger.info(f"✅ Exported library to {output_file}")

    finally:
        close_repository(repo)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BookScan Advisor - ISBN lookup, recommendations and reading list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Look up a book and add it to the library
  %(prog)s scan 978-0-14-312774-1 --add

  # Simulate a camera scan
  %(prog)s scan --sample

  # Look up a book with the async clients
  %(prog)s scan 9780143127741 --async

  # Mark a book as read with a rating
  %(prog)s update 9780143127741 --status read --rating 5

  # Export finished books
  %(prog)s export --format csv --filter read --output read.csv
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Look up a book by ISBN")
    scan_parser.add_argument("isbn", nargs="?", help="ISBN (prompted for when omitted)")
    scan_parser.add_argument("--sample", action="store_true", help="Simulate a scan with a demo ISBN")
    scan_parser.add_argument("--add", action="store_true", help="Add the book to the library")
    scan_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")
    scan_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")

    # Library command
    library_parser = subparsers.add_parser("library", help="List the reading list")
    library_parser.add_argument("--search", default="", help="Filter by title or author")
    library_parser.add_argument("--filter", choices=FILTERS, default="all", help="Rating filter")
    library_parser.add_argument("--sort", choices=SORTS, default="date", help="Sort order")
    library_parser.add_argument("--status", choices=[s.value for s in ReadingStatus], help="Only this reading status")
    library_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    # Update command
    update_parser = subparsers.add_parser("update", help="Rate, review or change status of a book")
    update_parser.add_argument("isbn", help="ISBN of the library entry")
    update_parser.add_argument("--rating", type=int, choices=range(0, 6), help="Your rating (0-5)")
    update_parser.add_argument("--review", help="Your review")
    update_parser.add_argument("--status", choices=[s.value for s in ReadingStatus], help="Reading status")

    # Remove command
    remove_parser = subparsers.add_parser("remove", help="Remove a book from the library")
    remove_parser.add_argument("isbn", help="ISBN of the library entry")

    # Profile command
    profile_parser = subparsers.add_parser("profile", help="Show or edit your reading profile")
    profile_parser.add_argument("--name", help="Your name")
    profile_parser.add_argument("--genres", help="Comma-separated favorite genres")
    profile_parser.add_argument("--goal", type=int, help="Books per year")
    profile_parser.add_argument("--languages", help="Comma-separated preferred languages")
    profile_parser.add_argument("--bio", help="Short bio")

    # Stats command
    subparsers.add_parser("stats", help="Show reading statistics")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export the library")
    export_parser.add_argument("--format", choices=FORMATS, default="csv", help="Export format")
    export_parser.add_argument("--filter", choices=EXPORT_FILTERS, default="all", help="Which books to export")
    export_parser.add_argument("--output", help="Output file ('-' for stdout, default: library_<date>.<format>)")
    export_parser.add_argument("--no-metadata", action="store_true", help="Leave out genres, pages and dates")
    export_parser.add_argument("--no-ratings", action="store_true", help="Leave out ratings")
    export_parser.add_argument("--notes", action="store_true", help="Include your reviews")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    commands = {
        "scan": scan_book,
        "library": list_library,
        "update": update_book,
        "remove": remove_book,
        "profile": edit_profile,
        "stats": show_stats,
        "export": export_data,
    }

    try:
        commands[args.command](args, config)

    except InvalidIdentifierError as e:
        logger.error(f"❌ Invalid ISBN: enter a 10 or 13 digit ISBN ({e})")
        sys.exit(1)
    except NotFoundError as e:
        if e.network_failure:
            logger.error("❌ Book catalogs are unreachable, check your connection and try again")
        else:
            logger.error(f"❌ Book not found for ISBN {e.isbn}, check it and try again")
        sys.exit(1)
    except ScanError as e:
        logger.error(f"❌ Scan failed: {e}")
        sys.exit(1)
    except KeyError as e:
        logger.error(f"❌ {e.args[0]}")
        sys.exit(1)
    except StorageError as e:
        logger.error(f"❌ Storage error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
