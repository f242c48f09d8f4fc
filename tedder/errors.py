"""Exception types shared by the provider clients and the services above them."""

from __future__ import annotations


class TedderError(Exception):
    """Base class for errors raised inside the weather data layer."""


class ProviderError(TedderError):
    """A provider call failed: transport error, non-2xx status, or undecodable body.

    Services catch this and substitute their documented fallback (synthetic
    forecast, empty historical series, ``None``); it never reaches the caller
    of a service-level function.
    """

    def __init__(self, provider: str, message: str, *, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        detail = f"{provider}: {message}"
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(detail)


class CacheCorruptError(TedderError):
    """A cached value exists but cannot be decoded; callers treat it as a miss."""
