"""Redis-backed key/value store."""

from typing import Optional

from tedder.cache_store.base import KeyValueStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="cache_store/redis")


class RedisKeyValueStore(KeyValueStore):
    """Store values in Redis under a namespaced key.

    Expiry is decided by the caller from the timestamp inside the value, so
    keys are written without a Redis TTL unless ``ttl_seconds`` is given.
    """

    def __init__(self, client, *, prefix: str = "tedder:", ttl_seconds: int | None = None) -> None:
        """Initialize with a redis.Redis-compatible client."""
        logger.debug("Initializing RedisKeyValueStore")
        self.client = client
        self.prefix = prefix
        self.ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisKeyValueStore":
        """Connect with redis.Redis.from_url()."""
        import redis

        logger.info("Connecting historical cache to Redis", extra={"redis_url": mask_url(url)})
        return cls(redis.Redis.from_url(url), **kwargs)

    def _key(self, key: str) -> str:
        """Return the namespaced Redis key."""
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        """Return the decoded value for ``key`` or None."""
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return str(raw)

    def set(self, key: str, value: str) -> None:
        """Store ``value``; applies the optional TTL as a backstop."""
        if self.ttl:
            self.client.setex(self._key(key), self.ttl, value.encode("utf-8"))
        else:
            self.client.set(self._key(key), value.encode("utf-8"))

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        self.client.delete(self._key(key))
