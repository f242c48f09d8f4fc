"""Ski conditions estimated from the forecast at a resort.

There is no snow report feed: depth, surface, avalanche risk and lift status
are all derived from temperature, precipitation, wind and cloud cover. Towns
without a resort of their own borrow the one of their nearest ski hub.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Dict, Optional

from tedder import config
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import (
    AvalancheRisk,
    Capability,
    Coordinate,
    SkiData,
    SkiResort,
    SnowCondition,
    Visibility,
)
from tedder.forecast_service import get_weather
from tedder.hubs import find_nearest_hub, normalize_city
from tedder.numeric import round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ski")

LAPSE_RATE_C_PER_KM = 6.5
SNOW_TO_WATER_RATIO = 10  # 1 mm of water is about 10 mm of snow
MIN_SKIABLE_DEPTH_CM = 30

# Share of the seasonal base depth by month; other months have none.
MONTH_DEPTH_FACTORS: Dict[int, float] = {11: 0.3, 12: 0.6, 1: 1.0, 2: 1.0, 3: 0.7, 4: 0.3}


def _resort(key, name, city, lat, lon, base, summit, lifts, start, end) -> SkiResort:
    return SkiResort(
        key=key,
        name=name,
        city=city,
        coord=Coordinate(lat=lat, lon=lon),
        base_elevation=base,
        summit_elevation=summit,
        total_lifts=lifts,
        season_start=start,
        season_end=end,
    )


SKI_RESORTS: Dict[str, SkiResort] = {
    r.key: r
    for r in (
        _resort("erzurum", "Palandöken", "Erzurum", 39.86, 41.28, 2200, 3176, 14, 11, 4),
        _resort("kayseri", "Erciyes", "Kayseri", 38.54, 35.47, 2100, 3400, 18, 11, 4),
        _resort("bursa", "Uludağ", "Bursa", 40.10, 29.12, 1750, 2543, 24, 12, 3),
        _resort("bolu", "Kartalkaya", "Bolu", 40.61, 31.75, 1850, 2200, 10, 12, 3),
        _resort("kars", "Sarıkamış", "Kars", 40.32, 42.58, 2100, 2634, 6, 11, 4),
        _resort("kastamonu", "Ilgaz", "Kastamonu", 41.07, 33.72, 1800, 2546, 8, 12, 3),
        _resort("antalya", "Saklıkent", "Antalya", 36.87, 30.33, 1850, 2400, 4, 12, 3),
        _resort("isparta", "Davraz", "Isparta", 37.77, 30.75, 1650, 2635, 6, 12, 3),
    )
}

_CONDITION_TEXT = {
    SnowCondition.POWDER: "Pistes are in excellent shape with fresh powder.",
    SnowCondition.PACKED: "Pistes are in good shape.",
    SnowCondition.ICY: "Icy patches, ski with care.",
    SnowCondition.SLUSHY: "Snow is softening; mornings are best.",
}


def has_ski_resort(city: str) -> bool:
    return normalize_city(city) in SKI_RESORTS


def in_season(start: int, end: int, month: int) -> bool:
    if start <= end:
        return start <= month <= end
    return month >= start or month <= end


def seasonal_snow_depth(month: int, summit_elevation: int, fresh_snow: int) -> int:
    """Base depth grows 1 cm per 10 m of summit above 2000 m, scaled by month."""
    factor = MONTH_DEPTH_FACTORS.get(month, 0.0)
    elevation_bonus = max(0.0, (summit_elevation - 2000) / 10)
    return round_int((50 + elevation_bonus) * factor + fresh_snow)


def snow_condition(summit_temp: float, fresh_snow: int, snow_depth: int, season_open: bool) -> SnowCondition:
    if not season_open or snow_depth < MIN_SKIABLE_DEPTH_CM:
        return SnowCondition.CLOSED
    if fresh_snow > 20 and summit_temp < -5:
        return SnowCondition.POWDER
    if summit_temp > 0:
        return SnowCondition.SLUSHY
    if summit_temp < -15:
        return SnowCondition.ICY
    return SnowCondition.PACKED


def avalanche_risk(fresh_snow: int, wind_speed: float, summit_temp: float) -> AvalancheRisk:
    score = 0
    if fresh_snow > 50:
        score += 3
    elif fresh_snow > 30:
        score += 2
    elif fresh_snow > 15:
        score += 1

    # wind loading
    if wind_speed > 50:
        score += 2
    elif wind_speed > 30:
        score += 1

    if -3 < summit_temp < 2:
        score += 1

    if score >= 4:
        return AvalancheRisk.HIGH
    if score >= 3:
        return AvalancheRisk.CONSIDERABLE
    if score >= 1:
        return AvalancheRisk.MODERATE
    return AvalancheRisk.LOW


def visibility(cloud_cover: float, wind_speed: float) -> Visibility:
    if cloud_cover > 80 or wind_speed > 50:
        return Visibility.POOR
    if cloud_cover > 50 or wind_speed > 30:
        return Visibility.MODERATE
    return Visibility.GOOD


def open_lifts(total: int, snow_depth: int, wind_speed: float, vis: Visibility, condition: SnowCondition) -> int:
    """At least one lift runs whenever the resort is open."""
    if condition is SnowCondition.CLOSED:
        return 0
    share = 1.0
    if snow_depth < 50:
        share *= 0.5
    if wind_speed > 60:
        share *= 0.3
    elif wind_speed > 40:
        share *= 0.6
    if vis is Visibility.POOR:
        share *= 0.7
    return max(1, round_int(total * share))


def generate_ski_narrative(
    resort_name: str,
    snow_depth: int,
    fresh_snow: int,
    condition: SnowCondition,
    risk: AvalancheRisk,
    lifts_open: int,
    lifts_total: int,
) -> str:
    if condition is SnowCondition.CLOSED:
        return f"{resort_name} is closed. Not enough snow."

    parts = [f"Snow depth {snow_depth} cm."]
    if fresh_snow > 10:
        parts.append(f"{fresh_snow} cm of fresh snow in the last 24 hours!")
    parts.append(_CONDITION_TEXT[condition])
    if lifts_open < lifts_total:
        parts.append(f"{lifts_open}/{lifts_total} lifts open.")
    else:
        parts.append("All lifts open.")
    if risk is AvalancheRisk.HIGH:
        parts.append("High avalanche risk!")
    return " ".join(parts)


def calculate_ski_conditions(
    resort: SkiResort,
    current_temp: float,
    precipitation: float,
    wind_speed: float,
    cloud_cover: float,
    now: dt.datetime,
) -> SkiData:
    """``current_temp`` is measured at the base; the summit is colder by the lapse rate."""
    season_open = in_season(resort.season_start, resort.season_end, now.month)
    rise_km = (resort.summit_elevation - resort.base_elevation) / 1000
    summit_temp = round_int(current_temp - rise_km * LAPSE_RATE_C_PER_KM)

    fresh_snow = 0
    snow_depth = 0
    if summit_temp <= 0 and precipitation > 0:
        fresh_snow = round_int(precipitation * SNOW_TO_WATER_RATIO)
        snow_depth = seasonal_snow_depth(now.month, resort.summit_elevation, fresh_snow)
    elif season_open:
        snow_depth = seasonal_snow_depth(now.month, resort.summit_elevation, 0)

    condition = snow_condition(summit_temp, fresh_snow, snow_depth, season_open)
    risk = avalanche_risk(fresh_snow, wind_speed, summit_temp)
    vis = visibility(cloud_cover, wind_speed)
    lifts = open_lifts(resort.total_lifts, snow_depth, wind_speed, vis, condition)

    return SkiData(
        resort=resort.name,
        city=resort.city,
        snow_depth=snow_depth,
        fresh_snow_24h=fresh_snow,
        base_temp=current_temp,
        summit_temp=summit_temp,
        lifts_open=lifts,
        lifts_total=resort.total_lifts,
        avalanche_risk=risk,
        snow_condition=condition,
        visibility=vis,
        narrative=generate_ski_narrative(
            resort.name, snow_depth, fresh_snow, condition, risk, lifts, resort.total_lifts
        ),
        fetched_at=now,
    )


def resolve_resort(city: str, latitude: float | None = None, longitude: float | None = None) -> Optional[SkiResort]:
    """The city's own resort, else the resort of the nearest ski hub covering the coordinate."""
    resort = SKI_RESORTS.get(normalize_city(city))
    if resort is not None:
        return resort
    if latitude is None or longitude is None:
        return None
    match = find_nearest_hub(latitude, longitude, Capability.SKI)
    if match is None:
        return None
    logger.info(
        "Routing ski request to hub",
        extra={"city": city, "hub": match.hub.id, "distance_km": round(match.distance_km, 1)},
    )
    return SKI_RESORTS.get(match.hub.id)


def get_ski_conditions(
    city: str,
    *,
    latitude: float | None = None,
    longitude: float | None = None,
    data_source: WeatherDataSource | None = None,
    fallback_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
    now: Callable[[], dt.datetime] = dt.datetime.now,
) -> Optional[SkiData]:
    """Ski conditions for ``city``; None when no resort serves it."""
    settings = settings or config.settings
    resort = resolve_resort(city, latitude, longitude)
    if resort is None:
        logger.debug("No ski resort for city", extra={"city": city})
        return None

    model = get_weather(
        resort.city,
        latitude=resort.coord.lat,
        longitude=resort.coord.lon,
        data_source=data_source or build_data_source(settings),
        fallback_source=fallback_source,
        settings=settings,
    )
    data = calculate_ski_conditions(
        resort, model.current_temp, model.precipitation_volume, model.wind_speed, model.cloud_cover, now()
    )
    logger.info(
        "Ski conditions estimated",
        extra={"resort": resort.name, "snow_depth": data.snow_depth, "condition": data.snow_condition.value},
    )
    return data
