"""Interfaces and helpers for weather data sources."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from tedder.domain import GeoMatch


class WeatherDataSource(Protocol):
    """Interface for anything that can serve raw provider payloads.

    The live Open-Meteo client and the synthetic generator both implement it,
    so normalization code never knows which one produced a payload.
    Implementations raise ``tedder.errors.ProviderError`` on failure and never
    return partially valid data.
    """

    name: str

    def fetch_forecast(
        self,
        latitude: float,
        longitude: float,
        *,
        forecast_days: int = 15,
        forecast_hours: int = 168,
        timezone: str = "auto",
        timeout: float = 10,
    ) -> Dict[str, Any]:
        """Return a forecast payload with ``current``, ``hourly`` and ``daily`` sections."""
        ...

    def fetch_geocoding(self, name: str, *, timeout: float = 10) -> Optional[GeoMatch]:
        """Return the best geocoding match for a place name, or None."""
        ...

    def fetch_archive_daily(
        self,
        latitude: float,
        longitude: float,
        start_date: dt.date,
        end_date: dt.date,
        *,
        timeout: float = 10,
    ) -> Dict[str, Any]:
        """Return the ``daily`` arrays of an archive range."""
        ...

    def fetch_air_quality(self, latitude: float, longitude: float, *, timeout: float = 10) -> Optional[int]:
        """Return the current AQI, or None when unavailable."""
        ...

    def fetch_marine(self, latitude: float, longitude: float, *, timeout: float = 10) -> Dict[str, Any]:
        """Return a marine payload (``current`` wave state, ``hourly`` sea temperature)."""
        ...

    def fetch_soil(self, latitude: float, longitude: float, *, timeout: float = 10) -> Dict[str, Any]:
        """Return a soil payload (``hourly`` soil arrays, ``daily`` minimum temperature)."""
        ...


@dataclass
class CallableWeatherDataSource(WeatherDataSource):
    """Wrap provider callables so backends can be swapped or faked one call at a time."""

    forecast: Callable[..., Dict[str, Any]]
    geocoding: Callable[..., Optional[GeoMatch]]
    archive_daily: Callable[..., Dict[str, Any]]
    air_quality: Callable[..., Optional[int]]
    marine: Callable[..., Dict[str, Any]]
    soil: Callable[..., Dict[str, Any]]
    name: str = "callable"

    def fetch_forecast(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured forecast callable."""
        return self.forecast(*args, **kwargs)

    def fetch_geocoding(self, *args, **kwargs) -> Optional[GeoMatch]:
        """Delegate to the configured geocoding callable."""
        return self.geocoding(*args, **kwargs)

    def fetch_archive_daily(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured archive callable."""
        return self.archive_daily(*args, **kwargs)

    def fetch_air_quality(self, *args, **kwargs) -> Optional[int]:
        """Delegate to the configured air-quality callable."""
        return self.air_quality(*args, **kwargs)

    def fetch_marine(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured marine callable."""
        return self.marine(*args, **kwargs)

    def fetch_soil(self, *args, **kwargs) -> Dict[str, Any]:
        """Delegate to the configured soil callable."""
        return self.soil(*args, **kwargs)
