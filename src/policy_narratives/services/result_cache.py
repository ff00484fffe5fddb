"""Persistent result cache.

Read-through in-process mirror over a durable ResultStore. The mirror
is authoritative for the lifetime of the process: a durable write that
fails still leaves the new value visible to every later lookup.
"""

import json
import logging
import time
from collections.abc import Callable

from policy_narratives.entities import CacheEntryEntity
from policy_narratives.errors import StoreError
from policy_narratives.protocols import ResultStore

logger = logging.getLogger(__name__)


class ResultCache:
    """Key -> generated text cache with no expiry.

    Example:
        ```python
        cache = ResultCache(store=FileResultStore.create())
        cache.set("narrative:Salem", "Depth is critical.")
        entry = cache.get("narrative:Salem")
        ```
    """

    def __init__(self, store: ResultStore, clock: Callable[[], float] = time.time) -> None:
        """Initialize the cache.

        Args:
            store: Durable medium (required).
            clock: Wall clock for ``created_at`` stamps.
        """
        self._store = store
        self._clock = clock
        self._mirror: dict[str, CacheEntryEntity] = {}

    def get(self, key: str) -> CacheEntryEntity | None:
        """Look up an entry, reading through to the store on a mirror miss.

        Never raises: unreadable or corrupt records are logged and
        treated as absent.
        """
        entry = self._mirror.get(key)
        if entry is not None:
            return entry

        try:
            raw = self._store.read(key)
        except StoreError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntryEntity.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring corrupt cache record for %s: %s", key, e)
            return None

        self._mirror[key] = entry
        return entry

    def set(self, key: str, text: str) -> CacheEntryEntity:
        """Store text under a key, overwriting any prior entry.

        The mirror is updated first; a durable write failure is logged
        and does not propagate.

        Returns:
            The entry now visible for ``key``
        """
        entry = CacheEntryEntity(key=key, text=text, created_at=self._clock())
        self._mirror[key] = entry
        try:
            self._store.write(key, json.dumps(entry.to_dict()))
        except StoreError as e:
            logger.warning("Cache write for %s kept in memory only: %s", key, e)
        return entry

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    @property
    def store(self) -> ResultStore:
        """Get the underlying store (for testing)."""
        return self._store
