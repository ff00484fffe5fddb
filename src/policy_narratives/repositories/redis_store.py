"""Redis implementation of ResultStore.

Records are plain string values under ``<prefix>:<key>`` with no TTL:
cached narratives stay until a new generation overwrites them.
"""

import redis

from policy_narratives.config import get_redis_client, settings
from policy_narratives.errors import StoreError


class RedisResultStore:
    """Redis implementation of the ResultStore protocol.

    This class satisfies the ResultStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis result store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Namespace for stored keys. Defaults to settings.cache_key_prefix.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = key_prefix or settings.cache_key_prefix

    @classmethod
    def create(cls, key_prefix: str | None = None) -> "RedisResultStore":
        """Factory method to create RedisResultStore with defaults.

        Args:
            key_prefix: Key namespace. If None, uses settings.

        Returns:
            Configured RedisResultStore
        """
        return cls(key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def read(self, key: str) -> str | None:
        """Read the serialized record for a key.

        Raises:
            StoreError: If Redis cannot be reached
        """
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise StoreError(f"Redis read failed for {key!r}: {e}") from e
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)

    def write(self, key: str, value: str) -> None:
        """Persist the serialized record for a key.

        Raises:
            StoreError: If Redis rejects the write
        """
        try:
            self._client.set(self._key(key), value)
        except redis.RedisError as e:
            raise StoreError(f"Redis write failed for {key!r}: {e}") from e

    def count_all(self) -> int:
        """Count stored records under this prefix."""
        count = 0
        for _ in self._client.scan_iter(match=f"{self._prefix}:*"):
            count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
