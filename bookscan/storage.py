"""Repository interface and a JSON file implementation."""
import json
import os
from pathlib import Path
from typing import List, Optional, Protocol, Union
import logging

from bookscan.errors import StorageError
from bookscan.models import LibraryEntry, UserPreferences

logger = logging.getLogger(__name__)

BOOKS_KEY = "scannedBooks"
PREFERENCES_KEY = "userPreferences"


class LibraryRepository(Protocol):
    """Persistence for the reading list and the user profile."""

    def load_entries(self) -> List[LibraryEntry]: ...

    def save_entries(self, entries: List[LibraryEntry]) -> None: ...

    def load_preferences(self) -> Optional[UserPreferences]: ...

    def save_preferences(self, prefs: UserPreferences) -> None: ...


class JsonFileRepository:
    """
    Stores each key as ``<data_dir>/<key>.json``.

    Writes go through a temp file and ``os.replace``; last write wins.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir).expanduser()

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str):
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def _write(self, key: str, data) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {path}")

    def load_entries(self) -> List[LibraryEntry]:
        data = self._read(BOOKS_KEY) or []
        try:
            return [LibraryEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt reading list in {self._path(BOOKS_KEY)}: {e}") from e

    def save_entries(self, entries: List[LibraryEntry]) -> None:
        self._write(BOOKS_KEY, [entry.to_dict() for entry in entries])

    def load_preferences(self) -> Optional[UserPreferences]:
        data = self._read(PREFERENCES_KEY)
        if data is None:
            return None
        return UserPreferences.from_dict(data)

    def save_preferences(self, prefs: UserPreferences) -> None:
        self._write(PREFERENCES_KEY, prefs.to_dict())
