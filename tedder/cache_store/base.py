"""Shared protocol for the string key/value stores behind the historical cache."""

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """Minimal persistent key/value contract (values are JSON strings)."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def delete(self, key: str) -> None:
        """Remove ``key`` without raising if it is absent."""
