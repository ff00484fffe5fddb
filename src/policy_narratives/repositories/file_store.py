"""Local JSON file implementation of ResultStore.

All records live in one JSON object on disk, keyed by cache key, the
same way the dashboard kept them in browser local storage. Writes go to
a temporary file first and are moved into place, so a crash mid-write
never truncates the existing document.
"""

import json
import os
import tempfile
import threading
from pathlib import Path

from policy_narratives.config import settings
from policy_narratives.errors import StoreError


class FileResultStore:
    """JSON-file implementation of the ResultStore protocol."""

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize the file store.

        Args:
            path: Location of the JSON document. Defaults to settings.cache_file_path.
        """
        self._path = Path(path or settings.cache_file_path)
        self._lock = threading.Lock()

    @classmethod
    def create(cls, path: str | Path | None = None) -> "FileResultStore":
        """Factory method to create FileResultStore with defaults."""
        return cls(path=path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot read {self._path}: {e}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Cache file {self._path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Cache file {self._path} does not hold a JSON object")
        return data

    def read(self, key: str) -> str | None:
        """Read the serialized record for a key.

        Raises:
            StoreError: If the file is unreadable or not a JSON object
        """
        with self._lock:
            value = self._load().get(key)
        if value is None:
            return None
        # Records are stored as strings; anything else is handed back for the cache to reject
        return value if isinstance(value, str) else json.dumps(value)

    def write(self, key: str, value: str) -> None:
        """Persist the serialized record for a key.

        A corrupt document is replaced rather than blocking every future write.

        Raises:
            StoreError: If the file cannot be written
        """
        with self._lock:
            try:
                data = self._load()
            except StoreError:
                data = {}
            data[key] = value
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
            except OSError as e:
                raise StoreError(f"Cannot write {self._path}: {e}") from e
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)
                os.replace(tmp_name, self._path)
            except (OSError, TypeError, ValueError) as e:
                Path(tmp_name).unlink(missing_ok=True)
                raise StoreError(f"Cannot write {self._path}: {e}") from e

    def health_check(self) -> bool:
        """Check the cache directory is writable."""
        directory = self._path.parent
        while not directory.exists():
            directory = directory.parent
        return os.access(directory, os.W_OK)
