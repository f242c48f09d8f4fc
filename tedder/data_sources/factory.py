"""Factory helpers for choosing a weather data source at startup."""

from __future__ import annotations

from tedder import config
from tedder.data_sources.base import CallableWeatherDataSource, WeatherDataSource
from tedder.data_sources.open_meteo_client import (
    fetch_air_quality,
    fetch_archive_daily,
    fetch_forecast,
    fetch_geocoding,
    fetch_marine,
    fetch_soil,
)
from tedder.data_sources.synthetic_source import SyntheticWeatherDataSource
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "open_meteo"


def build_open_meteo_source() -> CallableWeatherDataSource:
    """Wrap the Open-Meteo client functions as a data source."""
    return CallableWeatherDataSource(
        forecast=fetch_forecast,
        geocoding=fetch_geocoding,
        archive_daily=fetch_archive_daily,
        air_quality=fetch_air_quality,
        marine=fetch_marine,
        soil=fetch_soil,
        name="open_meteo",
    )


def build_data_source(settings: config.Settings | None = None) -> WeatherDataSource:
    """Instantiate the configured primary data source."""
    settings = settings or config.settings
    source = (settings.forecast_source or DEFAULT_SOURCE_NAME).lower()

    if source == "open_meteo":
        logger.info("Using Open-Meteo data source")
        return build_open_meteo_source()

    if source == "synthetic":
        logger.info("Using synthetic data source")
        return SyntheticWeatherDataSource()

    raise ValueError(f"Unknown forecast source '{source}'")


def build_fallback_source() -> WeatherDataSource:
    """Data source consulted when the primary one fails."""
    return SyntheticWeatherDataSource()
