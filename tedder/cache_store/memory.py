"""In-memory key/value store, intended for development, a single process and tests."""

import threading
from typing import Optional

from tedder.cache_store.base import KeyValueStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_store/in_memory")


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe dict-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        logger.debug("Initializing InMemoryKeyValueStore")
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        """Return the value for ``key`` or None."""
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._values.pop(key, None)

    def clear(self) -> None:
        """Drop every stored value."""
        with self._lock:
            self._values.clear()
