"""Helpers for fetching forecast, geocoding, archive, air-quality, marine and soil data from Open-Meteo."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Optional

import requests
import requests_cache

from tedder.config import settings
from tedder.domain import GeoMatch
from tedder.errors import ProviderError
from tedder.numeric import as_float, round_int
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag='open_meteo_client')

# Provider calls are retry-free: a failure surfaces once as ProviderError and
# the calling service picks its fallback.
session = requests_cache.CachedSession('.cache', expire_after=settings.http_cache_seconds)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
OPEN_METEO_ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"
OPEN_METEO_AIR_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"
OPEN_METEO_MARINE_URL = "https://marine-api.open-meteo.com/v1/marine"

DEFAULT_TIMEOUT = 10

CURRENT_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "is_day",
    "precipitation",
    "weather_code",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "cloud_cover",
]

HOURLY_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation_probability",
    "precipitation",
    "weather_code",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "uv_index",
    "is_day",
]

DAILY_VARS = [
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "sunrise",
    "sunset",
    "precipitation_sum",
    "precipitation_probability_max",
    "wind_speed_10m_max",
    "apparent_temperature_max",
    "uv_index_max",
]

ARCHIVE_DAILY_VARS = ["temperature_2m_max", "temperature_2m_min", "precipitation_sum"]

MARINE_CURRENT_VARS = [
    "wave_height",
    "wave_direction",
    "wave_period",
    "wind_wave_height",
    "swell_wave_height",
]

SOIL_HOURLY_VARS = [
    "soil_temperature_0_to_7cm",
    "soil_moisture_0_to_7cm",
    "et0_fao_evapotranspiration",
]

EXPECTED_FORECAST_UNITS = {
    "temperature_2m": "°C",
    "apparent_temperature": "°C",
    "precipitation_probability": "%",
    "precipitation": "mm",
    "wind_speed_10m": "km/h",
    "surface_pressure": "hPa",
}

# Alternative spellings that should not trigger warnings.
ALLOWED_FORECAST_UNIT_SYNONYMS = {
    "precipitation_probability": {"%", "percent"},
    "wind_speed_10m": {"km/h", "kmh"},
}


def _warn_on_unexpected_units(units: Optional[dict], *, context: str) -> None:
    """Log a warning if Open-Meteo returns units the normalizer does not expect."""
    if not units:
        return
    for field, expected in EXPECTED_FORECAST_UNITS.items():
        actual = units.get(field)
        if not actual or actual == expected:
            continue
        allowed = ALLOWED_FORECAST_UNIT_SYNONYMS.get(field, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected},
            )


def _get_json(url: str, params: Dict[str, Any], *, provider: str, timeout: float) -> Dict[str, Any]:
    """GET a JSON document, converting every failure mode into ProviderError."""
    try:
        resp = session.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise ProviderError(provider, "non-success response", status_code=status) from exc
    except requests.RequestException as exc:
        raise ProviderError(provider, f"transport error: {exc}") from exc
    except ValueError as exc:
        raise ProviderError(provider, "response body is not JSON") from exc

    if not isinstance(data, dict):
        raise ProviderError(provider, "unexpected JSON document")
    return data


def fetch_forecast(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 15,
    forecast_hours: int = 168,
    timezone: str = "auto",
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """Fetch current, hourly and daily forecast arrays for a coordinate.

    The raw payload is returned; tedder.forecast_service owns normalization.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(CURRENT_VARS),
        "hourly": ",".join(HOURLY_VARS),
        "daily": ",".join(DAILY_VARS),
        "forecast_days": forecast_days,
        "forecast_hours": forecast_hours,
        "timezone": timezone,
    }
    data = _get_json(OPEN_METEO_FORECAST_URL, params, provider="open_meteo_forecast", timeout=timeout)

    for section in ("current", "hourly", "daily"):
        if not isinstance(data.get(section), dict):
            raise ProviderError("open_meteo_forecast", f"missing '{section}' section")
    _warn_on_unexpected_units(data.get("hourly_units"), context="forecast_hourly")
    return data


def fetch_geocoding(
    name: str,
    *,
    language: str = "tr",
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[GeoMatch]:
    """Resolve a free-text place name to its best match, or None if nothing matches."""
    params = {"name": name, "count": 1, "language": language, "format": "json"}
    data = _get_json(OPEN_METEO_GEOCODING_URL, params, provider="open_meteo_geocoding", timeout=timeout)

    results = data.get("results") or []
    if not results:
        logger.debug("No geocoding match", extra={"query": name})
        return None
    best = results[0]
    try:
        return GeoMatch(name=best.get("name") or name, lat=best["latitude"], lon=best["longitude"])
    except (KeyError, TypeError) as exc:
        raise ProviderError("open_meteo_geocoding", "result lacks coordinates") from exc


def fetch_archive_daily(
    latitude: float,
    longitude: float,
    start_date: dt.date,
    end_date: dt.date,
    *,
    timezone: str = "auto",
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """Fetch daily max/min temperature and precipitation sums for a date range."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "daily": ",".join(ARCHIVE_DAILY_VARS),
        "timezone": timezone,
    }
    data = _get_json(OPEN_METEO_ARCHIVE_URL, params, provider="open_meteo_archive", timeout=timeout)
    return data.get("daily") or {}


def fetch_air_quality(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[int]:
    """Fetch the current US AQI for a coordinate; None when the provider has no value."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "us_aqi,pm2_5,pm10",
        "timezone": timezone,
    }
    data = _get_json(OPEN_METEO_AIR_URL, params, provider="open_meteo_air", timeout=timeout)
    current = data.get("current") or {}
    us_aqi = as_float(current.get("us_aqi"))
    if us_aqi is None:
        return None
    return round_int(us_aqi)


def fetch_marine(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "Europe/Istanbul",
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """Fetch current wave state and hourly sea-surface temperature for an offshore point."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": ",".join(MARINE_CURRENT_VARS),
        "hourly": "sea_surface_temperature",  # SST is only published hourly
        "forecast_days": 1,
        "timezone": timezone,
    }
    return _get_json(OPEN_METEO_MARINE_URL, params, provider="open_meteo_marine", timeout=timeout)


def fetch_soil(
    latitude: float,
    longitude: float,
    *,
    forecast_days: int = 3,
    timezone: str = "auto",
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """Fetch hourly topsoil temperature/moisture/evapotranspiration and daily minimum temperature."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(SOIL_HOURLY_VARS),
        "daily": "temperature_2m_min",
        "forecast_days": forecast_days,
        "timezone": timezone,
    }
    return _get_json(OPEN_METEO_FORECAST_URL, params, provider="open_meteo_soil", timeout=timeout)
