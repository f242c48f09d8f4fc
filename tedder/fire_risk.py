"""Fire weather index for forest-heavy provinces.

A raw 0-100 score is built from four capped factors (heat, dryness of the
air, wind, and rain over the past week) and mapped onto a 1-5 scale. The
fire season runs from May to October; outside it the index is still
computed but the advice says so.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Optional, Tuple

from tedder import config
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import FireRiskData, FireRiskLevel
from tedder.errors import ProviderError
from tedder.forecast_service import get_weather
from tedder.hubs import normalize_city
from tedder.numeric import as_float, round_half_up, round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="fire_risk")

FIRE_SEASON_MONTHS = range(5, 11)  # May-October
PRECIP_LOOKBACK_DAYS = 7
DROUGHT_PRECIP_MM = 1.0

FIRE_RISK_PROVINCES = frozenset(
    normalize_city(p)
    for p in (
        "Muğla", "Antalya", "Aydın", "İzmir", "Çanakkale", "Balıkesir",
        "Burdur", "Isparta", "Denizli", "Mersin", "Hatay", "Adana",
        "Afyonkarahisar", "Uşak", "Kütahya", "Bilecik", "Eskişehir",
        "Çankırı", "Karabük",
    )
)

# (minimum raw score, index, level), highest first.
_BANDS: Tuple[Tuple[float, int, FireRiskLevel], ...] = (
    (80, 5, FireRiskLevel.EXTREME),
    (60, 4, FireRiskLevel.VERY_HIGH),
    (40, 3, FireRiskLevel.HIGH),
    (20, 2, FireRiskLevel.MODERATE),
    (0, 1, FireRiskLevel.LOW),
)

ADVICE_OFF_SEASON = "Outside fire season. Risk is low."
ADVICE_EXTREME = "Extreme fire risk! Forest access is banned and lighting fires is forbidden."
ADVICE_VERY_HIGH = "Very high risk. Stay away from forested areas and never discard cigarettes."
ADVICE_HIGH_WIND = "Wind may spread fires quickly. Be careful."
ADVICE_HIGH = "High risk. No open fires, and do not leave glass waste behind."
ADVICE_DROUGHT = "Dry spell. Take care in forested areas."
ADVICE_MODERATE = "Moderate risk. Be careful with fire."
ADVICE_LOW = "Low fire risk. Stay careful all the same."


def is_fire_season(month: int) -> bool:
    return month in FIRE_SEASON_MONTHS


def is_fire_risk_region(city: str) -> bool:
    return normalize_city(city) in FIRE_RISK_PROVINCES


def raw_fire_score(humidity: float, wind_speed: float, temperature: float, precip_last_7_days: float) -> float:
    score = min(30.0, max(0.0, (temperature - 15) * 1.5))
    score += max(0.0, 30 - humidity * 0.4)
    score += min(20.0, wind_speed * 0.5)

    if precip_last_7_days == 0:
        score += 20
    elif precip_last_7_days < 2:
        score += 15
    elif precip_last_7_days < 5:
        score += 10
    elif precip_last_7_days < 10:
        score += 5
    return score


def fire_band(score: float) -> Tuple[int, FireRiskLevel]:
    for minimum, index, level in _BANDS:
        if score >= minimum:
            return index, level
    return 1, FireRiskLevel.LOW


def generate_fire_advice(level: FireRiskLevel, drought: bool, wind_speed: float, season: bool) -> str:
    if not season:
        return ADVICE_OFF_SEASON
    if level is FireRiskLevel.EXTREME:
        return ADVICE_EXTREME
    if level is FireRiskLevel.VERY_HIGH:
        return ADVICE_VERY_HIGH
    if level is FireRiskLevel.HIGH:
        return ADVICE_HIGH_WIND if wind_speed > 30 else ADVICE_HIGH
    if drought:
        return ADVICE_DROUGHT
    if level is FireRiskLevel.MODERATE:
        return ADVICE_MODERATE
    return ADVICE_LOW


def calculate_fire_risk(
    city: str,
    humidity: float,
    wind_speed: float,
    temperature: float,
    precip_last_7_days: float,
    now: dt.datetime,
) -> FireRiskData:
    season = is_fire_season(now.month)
    index, level = fire_band(raw_fire_score(humidity, wind_speed, temperature, precip_last_7_days))
    drought = precip_last_7_days < DROUGHT_PRECIP_MM
    return FireRiskData(
        city=city,
        fire_index=index,
        risk_level=level,
        humidity=round_int(humidity),
        wind_speed=round_int(wind_speed),
        precip_last_7_days=round_half_up(precip_last_7_days, 1),
        drought_indicator=drought,
        is_fire_season=season,
        advice=generate_fire_advice(level, drought, wind_speed, season),
        fetched_at=now,
    )


def precipitation_total(daily: Dict[str, Any]) -> float:
    """Sum of daily precipitation; days the archive has not filled yet count as dry."""
    return sum(as_float(v, 0.0) for v in daily.get("precipitation_sum") or [])


def get_fire_risk(
    city: str,
    *,
    latitude: float | None = None,
    longitude: float | None = None,
    data_source: WeatherDataSource | None = None,
    fallback_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
    now: Callable[[], dt.datetime] = dt.datetime.now,
) -> Optional[FireRiskData]:
    """Fire risk for a forest province; None elsewhere or when the rain history is unavailable."""
    if not is_fire_risk_region(city):
        logger.debug("City is not a fire-risk region", extra={"city": city})
        return None

    settings = settings or config.settings
    ds = data_source or build_data_source(settings)
    model = get_weather(
        city, latitude=latitude, longitude=longitude, data_source=ds, fallback_source=fallback_source, settings=settings
    )

    current = now()
    end = current.date() - dt.timedelta(days=1)
    start = current.date() - dt.timedelta(days=PRECIP_LOOKBACK_DAYS)
    try:
        daily = ds.fetch_archive_daily(
            model.coord.lat, model.coord.lon, start, end, timeout=settings.request_timeout_seconds
        )
    except ProviderError as exc:
        logger.warning("Rain history fetch failed", extra={"city": city, "error": str(exc)})
        return None

    data = calculate_fire_risk(
        model.city, model.humidity, model.wind_speed, model.current_temp, precipitation_total(daily), current
    )
    logger.info("Fire risk computed", extra={"city": model.city, "fire_index": data.fire_index})
    return data
