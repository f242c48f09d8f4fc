"""Sea state for coastal cities: waves, sea temperature, ferry and swim outlook.

The marine endpoint only answers for grid cells over water, so every coastal
city maps to a fixed offshore point. Inland towns near the coast borrow the
offshore point of their nearest marine hub.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Optional, Tuple

from tedder import config
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import Capability, Coordinate, FerryStatus, MarineData, SwimSafety
from tedder.errors import ProviderError
from tedder.forecast_service import locate_now_index
from tedder.hubs import find_nearest_hub, normalize_city
from tedder.numeric import as_float, round_half_up, round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="marine")

DEFAULT_SEA_TEMP = 18.0

FERRY_CANCEL_WAVE_M = 2.0
FERRY_DELAY_WAVE_M = 1.2
SWIM_DANGER_WAVE_M = 1.5
SWIM_CAUTION_WAVE_M = 0.8
SWIM_COLD_SEA_C = 16.0

# Offshore grid points, keyed by ASCII-folded lower-case city name.
COASTAL_COORDS: Dict[str, Tuple[float, float]] = {
    # Marmara
    "istanbul": (40.80, 28.70),
    "kocaeli": (40.78, 29.40),
    "bursa": (40.55, 28.70),
    "yalova": (40.60, 29.10),
    "tekirdag": (40.90, 27.40),
    "balikesir": (40.20, 26.80),
    "canakkale": (39.90, 26.00),
    # Aegean
    "izmir": (38.20, 26.20),
    "aydin": (37.40, 26.80),
    "mugla": (36.80, 27.50),
    "cesme": (38.30, 26.10),
    "kusadasi": (37.80, 27.10),
    "didim": (37.30, 27.20),
    "bodrum": (36.90, 27.30),
    "datca": (36.70, 27.60),
    # Mediterranean
    "antalya": (36.40, 30.70),
    "mersin": (36.40, 34.50),
    "adana": (36.50, 35.50),
    "hatay": (35.90, 35.80),
    "alanya": (36.30, 32.00),
    "side": (36.50, 31.40),
    "belek": (36.60, 31.00),
    "kemer": (36.50, 30.50),
    "kas": (36.10, 29.60),
    "kalkan": (36.20, 29.40),
    "marmaris": (36.70, 28.20),
    "fethiye": (36.50, 29.00),
    "oludeniz": (36.50, 29.10),
    "dalyan": (36.70, 28.60),
    # Black Sea
    "samsun": (41.70, 36.20),
    "trabzon": (41.30, 39.60),
    "rize": (41.40, 40.60),
    "sinop": (42.30, 35.00),
    "zonguldak": (41.80, 31.80),
    "ordu": (41.30, 37.50),
    "giresun": (41.20, 38.50),
    "artvin": (41.50, 41.30),
    "bartin": (41.80, 32.30),
    "duzce": (41.40, 31.10),
}


def is_coastal_city(city: str) -> bool:
    return normalize_city(city) in COASTAL_COORDS


def marine_coords(city: str) -> Optional[Coordinate]:
    point = COASTAL_COORDS.get(normalize_city(city))
    if point is None:
        return None
    return Coordinate(lat=point[0], lon=point[1])


def derive_ferry_status(wave_height: float) -> FerryStatus:
    if wave_height >= FERRY_CANCEL_WAVE_M:
        return FerryStatus.CANCELLED
    if wave_height >= FERRY_DELAY_WAVE_M:
        return FerryStatus.DELAYED
    return FerryStatus.NORMAL


def derive_swim_safety(wave_height: float, sea_temp: float) -> SwimSafety:
    """Waves decide first; a calm but cold sea is still a caution."""
    if wave_height >= SWIM_DANGER_WAVE_M:
        return SwimSafety.DANGEROUS
    if wave_height >= SWIM_CAUTION_WAVE_M:
        return SwimSafety.CAUTION
    if sea_temp < SWIM_COLD_SEA_C:
        return SwimSafety.CAUTION
    return SwimSafety.SAFE


def calculate_beach_score(data: MarineData, uv_index: float, air_temp: float) -> int:
    """Beach day score from 0 (stay home) to 10 (perfect)."""
    score = 10

    if data.wave_height > 1.5:
        score -= 4
    elif data.wave_height > 0.8:
        score -= 2
    elif data.wave_height > 0.5:
        score -= 1

    if data.sea_temp < 18:
        score -= 2
    if air_temp < 22:
        score -= 1
    if air_temp > 35:
        score -= 1

    if uv_index > 10:
        score -= 2
    elif uv_index > 8:
        score -= 1

    if data.ferry_status is FerryStatus.CANCELLED:
        score -= 3

    return max(0, min(10, score))


def generate_marine_narrative(data: MarineData) -> str:
    if data.sea_temp >= 24:
        temp_desc = "Perfect sea for swimming!"
    elif data.sea_temp >= 20:
        temp_desc = "Sea temperature is ideal."
    elif data.sea_temp >= 16:
        temp_desc = "The sea is a little cool."
    else:
        temp_desc = "The sea is too cold for swimming."

    if data.wave_height < 0.3:
        wave_desc = "The sea is almost flat."
    elif data.wave_height < 0.8:
        wave_desc = "Light waves."
    elif data.wave_height < 1.5:
        wave_desc = "Moderate waves."
    else:
        wave_desc = "High waves, take care."

    ferry = ""
    if data.ferry_status is FerryStatus.CANCELLED:
        ferry = " Ferry services are cancelled."
    elif data.ferry_status is FerryStatus.DELAYED:
        ferry = " Ferry services may be delayed."

    return f"{temp_desc} Water temperature {data.sea_temp:g}°C. {wave_desc}{ferry}"


def _resolve_offshore_point(
    city: str, latitude: Optional[float], longitude: Optional[float]
) -> Optional[Coordinate]:
    """Offshore point for the city itself, else for the nearest marine hub covering the coordinate."""
    coord = marine_coords(city)
    if coord is not None:
        return coord
    if latitude is None or longitude is None:
        return None
    match = find_nearest_hub(latitude, longitude, Capability.MARINE)
    if match is None:
        return None
    logger.info(
        "Routing marine request to hub",
        extra={"city": city, "hub": match.hub.id, "distance_km": round(match.distance_km, 1)},
    )
    return marine_coords(match.hub.id)


def _sea_temp(hourly: Dict[str, Any], now: dt.datetime) -> float:
    times = hourly.get("time") or []
    temps = hourly.get("sea_surface_temperature") or []
    if not times or not temps:
        return DEFAULT_SEA_TEMP
    idx = locate_now_index(times, now.strftime("%Y-%m-%dT%H:00"))
    value = temps[idx] if idx < len(temps) else None
    return as_float(value, DEFAULT_SEA_TEMP)


def build_marine_data(city: str, coord: Coordinate, payload: Dict[str, Any], now: dt.datetime) -> MarineData:
    """Turn a marine payload into MarineData; missing wave fields count as calm."""
    current = payload.get("current") or {}
    sea_temp = round_half_up(_sea_temp(payload.get("hourly") or {}, now), 1)
    wave_height = round_half_up(as_float(current.get("wave_height"), 0.0), 1)
    data = MarineData(
        city=city,
        coord=coord,
        sea_temp=sea_temp,
        wave_height=wave_height,
        wave_period=round_int(as_float(current.get("wave_period"), 0.0)),
        wave_direction=as_float(current.get("wave_direction"), 0.0),
        swell_height=round_half_up(as_float(current.get("swell_wave_height"), 0.0), 1),
        wind_wave_height=round_half_up(as_float(current.get("wind_wave_height"), 0.0), 1),
        ferry_status=derive_ferry_status(wave_height),
        swim_safety=derive_swim_safety(wave_height, sea_temp),
        fetched_at=now,
    )
    return data.model_copy(update={"narrative": generate_marine_narrative(data)})


def with_beach_score(data: MarineData, uv_index: Optional[float], air_temp: Optional[float]) -> MarineData:
    """Attach the beach score; missing weather inputs count as a mild, low-UV day."""
    score = calculate_beach_score(data, as_float(uv_index, 0.0), as_float(air_temp, 25.0))
    return data.model_copy(update={"beach_score": score})


def get_marine_data(
    city: str,
    *,
    latitude: float | None = None,
    longitude: float | None = None,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
    now: Callable[[], dt.datetime] = dt.datetime.now,
) -> Optional[MarineData]:
    """Current sea state for ``city``; None when it is inland or the provider fails."""
    settings = settings or config.settings
    coord = _resolve_offshore_point(city, latitude, longitude)
    if coord is None:
        logger.debug("No offshore point for city", extra={"city": city})
        return None

    ds = data_source or build_data_source(settings)
    try:
        payload = ds.fetch_marine(coord.lat, coord.lon, timeout=settings.request_timeout_seconds)
    except ProviderError as exc:
        logger.warning(
            "Marine fetch failed",
            extra={"city": city, "status_code": exc.status_code, "error": str(exc)},
        )
        return None

    data = build_marine_data(city, coord, payload, now())
    logger.info(
        "Marine data fetched",
        extra={"city": city, "sea_temp": data.sea_temp, "wave_height": data.wave_height},
    )
    return data
