"""Data source factories for plugging different weather backends."""

from .base import CallableWeatherDataSource, WeatherDataSource
from .factory import build_data_source, build_fallback_source, build_open_meteo_source
from .synthetic_source import SyntheticWeatherDataSource
from .open_meteo_client import (
    fetch_air_quality,
    fetch_archive_daily,
    fetch_forecast,
    fetch_geocoding,
    fetch_marine,
    fetch_soil,
)

__all__ = [
    "build_data_source",
    "build_fallback_source",
    "build_open_meteo_source",
    "WeatherDataSource",
    "CallableWeatherDataSource",
    "SyntheticWeatherDataSource",
    "fetch_air_quality",
    "fetch_archive_daily",
    "fetch_forecast",
    "fetch_geocoding",
    "fetch_marine",
    "fetch_soil",
]
