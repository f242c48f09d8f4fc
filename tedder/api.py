"""HTTP API for the weather data layer."""

import hmac
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from tedder.config import settings
from tedder.data_sources import build_data_source
from tedder.domain import (
    AgricultureData,
    Capability,
    FireRiskData,
    ForecastView,
    HistoricalData,
    HubMatch,
    LifestyleIndex,
    MarineData,
    SkiData,
    TrafficData,
    WeatherModel,
)
from tedder.agriculture import get_agriculture_data
from tedder.fire_risk import get_fire_risk
from tedder.forecast_service import get_weather, resolve_location
from tedder.historical import HistoricalAveragingEngine
from tedder.hubs import find_nearest_hub
from tedder.lifestyle import lifestyle_for_model
from tedder.marine import get_marine_data, with_beach_score
from tedder.projections import project
from tedder.ski import get_ski_conditions
from tedder.traffic import get_traffic
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="tedder/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the static api_key setting."""
    # No key configured: dev/default mode, allow everything.
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
DATA_SOURCE = build_data_source(settings)
HISTORICAL_ENGINE = HistoricalAveragingEngine(DATA_SOURCE, settings=settings)


def _city(city: Optional[str]) -> str:
    return city or settings.default_city


@router.get("/weather", response_model=WeatherModel)
def weather(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    view: ForecastView = ForecastView.TODAY,
):
    """Forecast for a city or coordinate, projected to the requested view."""
    model = get_weather(_city(city), latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)
    return project(model, view)


@router.get("/lifestyle", response_model=List[LifestyleIndex])
def lifestyle(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Nine lifestyle advisories for current conditions."""
    model = get_weather(_city(city), latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)
    return lifestyle_for_model(model)


@router.get("/historical", response_model=HistoricalData)
def historical(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Trailing year of observations plus day-of-year climatology; empty when the archive is unavailable."""
    name, latitude, longitude = resolve_location(
        _city(city), lat, lon, data_source=DATA_SOURCE, settings=settings
    )
    return HISTORICAL_ENGINE.get_historical(latitude, longitude, name)


@router.get("/hubs/nearest", response_model=Optional[HubMatch])
def nearest_hub(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    capability: Capability = Capability.MARINE,
):
    """Closest hub serving the capability, or null when none is in range."""
    return find_nearest_hub(lat, lon, capability)


@router.get("/marine", response_model=Optional[MarineData])
def marine(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Sea state and beach score for a coastal city, or null."""
    name = _city(city)
    data = get_marine_data(name, latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)
    if data is None:
        return None
    model = get_weather(name, latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)
    return with_beach_score(data, model.uv_index, model.current_temp)


@router.get("/agriculture", response_model=Optional[AgricultureData])
def agriculture(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
):
    """Soil conditions for a coordinate, or null."""
    return get_agriculture_data(lat, lon, data_source=DATA_SOURCE, settings=settings)


@router.get("/ski", response_model=Optional[SkiData])
def ski(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Estimated ski conditions at the city's resort or its nearest ski hub, or null."""
    return get_ski_conditions(_city(city), latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)


@router.get("/traffic", response_model=Optional[TrafficData])
def traffic(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
    holiday: bool = False,
):
    """Estimated congestion for a metro city or its nearest traffic hub, or null."""
    return get_traffic(
        _city(city), latitude=lat, longitude=lon, is_holiday=holiday, data_source=DATA_SOURCE, settings=settings
    )


@router.get("/fire-risk", response_model=Optional[FireRiskData])
def fire_risk(
    city: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lon: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Fire weather index for a forest province, or null."""
    return get_fire_risk(_city(city), latitude=lat, longitude=lon, data_source=DATA_SOURCE, settings=settings)
