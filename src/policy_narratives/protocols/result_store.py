"""Durable result store protocol.

The store only moves serialized records in and out of a durable medium.
Parsing, validation and the in-process mirror live in ResultCache.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResultStore(Protocol):
    """Protocol for durable key/value storage of serialized cache entries.

    Example:
        ```python
        store: ResultStore = RedisResultStore.create()
        store: ResultStore = FileResultStore.create(".cache/narratives.json")
        ```
    """

    def read(self, key: str) -> str | None:
        """Read the serialized record for a key.

        Args:
            key: The cache key

        Returns:
            The raw record, or None when absent

        Raises:
            StoreError: If the medium cannot be read
        """
        ...

    def write(self, key: str, value: str) -> None:
        """Persist the serialized record for a key, overwriting any prior value.

        Args:
            key: The cache key
            value: The serialized record

        Raises:
            StoreError: If the medium rejects the write
        """
        ...

    def health_check(self) -> bool:
        """Check if the medium is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
