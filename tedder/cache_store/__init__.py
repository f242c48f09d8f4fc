"""Key/value storage backends for the historical cache."""

from tedder import config

from .base import KeyValueStore
from .memory import InMemoryKeyValueStore
from .redis import RedisKeyValueStore


def build_cache_store(settings: config.Settings | None = None) -> KeyValueStore:
    """Instantiate the configured historical cache backend."""
    settings = settings or config.settings
    backend = settings.historical_cache_backend
    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "redis":
        if not settings.historical_cache_redis_url:
            raise ValueError("historical_cache_redis_url must be set for the Redis cache backend")
        return RedisKeyValueStore.from_url(
            settings.historical_cache_redis_url, ttl_seconds=settings.historical_cache_ttl_seconds
        )
    raise ValueError(f"Unknown historical cache backend '{backend}'")


__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "build_cache_store",
]
