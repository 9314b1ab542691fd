"""PostgreSQL repository for the reading list and the user profile."""
import psycopg2
from psycopg2 import pool
from psycopg2.extras import Json
from typing import Optional, List
import logging

from bookscan.errors import StorageError
from bookscan.models import LibraryEntry, UserPreferences

logger = logging.getLogger(__name__)


class PostgresRepository:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 5):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise StorageError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # One row per scan; the whole enriched entry lives in JSONB
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS library_entries (
                        position INTEGER PRIMARY KEY,
                        isbn VARCHAR(13) NOT NULL,
                        scanned_at TIMESTAMPTZ NOT NULL,
                        entry JSONB NOT NULL
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS user_preferences (
                        id SMALLINT PRIMARY KEY DEFAULT 1,
                        preferences JSONB NOT NULL,
                        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_library_isbn
                    ON library_entries (isbn)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    def load_entries(self) -> List[LibraryEntry]:
        """Load the reading list in insertion order."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT entry FROM library_entries ORDER BY position")
                rows = cur.fetchall()
                # JSONB is automatically deserialized
                return [LibraryEntry.from_dict(row[0]) for row in rows]
        finally:
            self.connection_pool.putconn(conn)

    def save_entries(self, entries: List[LibraryEntry]) -> None:
        """
        Replace the stored reading list.

        Args:
            entries: Full reading list, in order

        Raises:
            StorageError: if the transaction fails
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM library_entries")
                for position, entry in enumerate(entries):
                    cur.execute("""
                        INSERT INTO library_entries (position, isbn, scanned_at, entry)
                        VALUES (%s, %s, %s, %s)
                    """, (position, entry.isbn, entry.scanned_at, Json(entry.to_dict())))
                conn.commit()
                logger.info(f"Saved {len(entries)} library entries")
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to save library entries: {e}")
            raise StorageError(f"Failed to save library entries: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def load_preferences(self) -> Optional[UserPreferences]:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT preferences FROM user_preferences WHERE id = 1")
                row = cur.fetchone()
                if row:
                    return UserPreferences.from_dict(row[0])
                return None
        finally:
            self.connection_pool.putconn(conn)

    def save_preferences(self, prefs: UserPreferences) -> None:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO user_preferences (id, preferences, updated_at)
                    VALUES (1, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (id) DO UPDATE SET
                        preferences = EXCLUDED.preferences,
                        updated_at = CURRENT_TIMESTAMP
                """, (Json(prefs.to_dict()),))
                conn.commit()
                logger.info("Saved user preferences")
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to save preferences: {e}")
            raise StorageError(f"Failed to save preferences: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
