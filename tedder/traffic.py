"""Road congestion estimated from time-of-day patterns, city size and rain.

No live traffic feed is used. Hourly curves for weekdays and weekends are
scaled by a per-city multiplier (Istanbul = 1.0) and by 30% when it rains.
Smaller towns borrow the estimate of their nearest traffic hub.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tedder import config
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import Capability, CongestionLevel, RouteStatus, TrafficData, TrafficRoute
from tedder.forecast_service import get_weather
from tedder.hubs import find_nearest_hub, normalize_city
from tedder.numeric import round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="traffic")

# Base congestion (0-100) by hour of day.
WEEKDAY_PATTERN: Tuple[int, ...] = (
    5, 5, 5, 5, 10, 25,
    45, 75, 85, 60, 40, 35,
    40, 45, 40, 45, 55, 80,
    90, 75, 55, 35, 20, 10,
)
WEEKEND_PATTERN: Tuple[int, ...] = (
    5, 5, 5, 5, 5, 10,
    15, 20, 30, 45, 55, 60,
    55, 50, 45, 50, 55, 60,
    55, 45, 35, 25, 15, 10,
)

CITY_MULTIPLIERS: Dict[str, float] = {
    "istanbul": 1.0,
    "ankara": 0.7,
    "izmir": 0.65,
    "bursa": 0.55,
    "antalya": 0.5,
    "kocaeli": 0.6,
    "gaziantep": 0.5,
    "adana": 0.45,
}
DEFAULT_MULTIPLIER = 0.4
RAIN_FACTOR = 1.3

CITY_ROUTES: Dict[str, Tuple[str, ...]] = {
    "istanbul": (
        "E-5 (Avcılar-Bakırköy)",
        "FSM Köprüsü",
        "D-100 (Kadıköy-Kartal)",
        "15 Temmuz Köprüsü",
        "TEM (Seyrantepe)",
        "Bağdat Caddesi",
    ),
    "ankara": ("Eskişehir Yolu", "Konya Yolu", "Samsun Yolu", "İstanbul Yolu", "Çankaya-Kızılay", "Atatürk Bulvarı"),
    "izmir": ("Altınyol", "Konak-Bornova", "Çeşme Otoyolu", "Karşıyaka Sahil", "Mavişehir-Alsancak"),
    "bursa": ("İstanbul Yolu", "Yalova Yolu", "Mudanya Yolu", "FSM Bulvarı"),
    "antalya": ("D-400 (Lara)", "Akdeniz Bulvarı", "Aspendos Bulvarı", "Konyaaltı Caddesi"),
}
MAX_ROUTES = 6
# Each listed route runs this many points above or below the city-wide level.
ROUTE_OFFSETS: Tuple[int, ...] = (15, 10, 6, 3, 0, -5)
MAX_DELAY_MINUTES = 45

FREE_FLOW_SPEED_KMH = 50
JAMMED_SPEED_KMH = 15

_LEVEL_TEXT = {
    CongestionLevel.LOW: "flowing freely",
    CongestionLevel.MEDIUM: "busy",
    CongestionLevel.HIGH: "very heavy",
    CongestionLevel.SEVERE: "at a standstill",
}


def is_metro_city(city: str) -> bool:
    return normalize_city(city) in CITY_MULTIPLIERS


def congestion_level(percent: float) -> CongestionLevel:
    if percent < 25:
        return CongestionLevel.LOW
    if percent < 50:
        return CongestionLevel.MEDIUM
    if percent < 75:
        return CongestionLevel.HIGH
    return CongestionLevel.SEVERE


def average_speed(congestion: float) -> int:
    return round_int(FREE_FLOW_SPEED_KMH - (congestion / 100) * (FREE_FLOW_SPEED_KMH - JAMMED_SPEED_KMH))


def route_delays(city_key: str, congestion: float) -> List[TrafficRoute]:
    """Per-route delays, worst first; unknown cities use Istanbul's first four routes."""
    names: Sequence[str] = CITY_ROUTES.get(city_key) or CITY_ROUTES["istanbul"][:4]
    routes = []
    for name, offset in zip(names[:MAX_ROUTES], ROUTE_OFFSETS):
        level = max(0.0, min(100.0, congestion + offset))
        delay = round_int(level / 100 * MAX_DELAY_MINUTES)
        if delay > 20:
            status = RouteStatus.CONGESTED
        elif delay > 10:
            status = RouteStatus.SLOW
        else:
            status = RouteStatus.NORMAL
        routes.append(TrafficRoute(name=name, delay_minutes=delay, status=status))
    return sorted(routes, key=lambda r: r.delay_minutes, reverse=True)


def generate_traffic_narrative(city: str, level: CongestionLevel, is_raining: bool, hour: int) -> str:
    if 7 <= hour <= 9:
        when = " during the morning rush"
    elif 17 <= hour <= 19:
        when = " during the evening rush"
    elif 12 <= hour <= 14:
        when = " around midday"
    else:
        when = ""

    text = f"{city} traffic is {_LEVEL_TEXT[level]}{when}."
    if is_raining:
        text += " Rain may lengthen journey times."
    if level is CongestionLevel.SEVERE:
        text += " Expect serious delays on the main arteries."
    return text


def estimate_traffic(
    city: str,
    at: dt.datetime,
    *,
    is_raining: bool = False,
    is_holiday: bool = False,
) -> TrafficData:
    """Congestion for ``city`` at local time ``at``; holidays follow the weekend curve."""
    city_key = normalize_city(city)
    weekend = at.weekday() >= 5
    pattern = WEEKEND_PATTERN if (weekend or is_holiday) else WEEKDAY_PATTERN

    congestion = pattern[at.hour] * CITY_MULTIPLIERS.get(city_key, DEFAULT_MULTIPLIER)
    if is_raining:
        congestion *= RAIN_FACTOR
    congestion = max(0.0, min(100.0, congestion))

    level = congestion_level(congestion)
    return TrafficData(
        city=city,
        congestion_level=level,
        congestion_percent=round_int(congestion),
        main_routes=route_delays(city_key, congestion),
        average_speed=average_speed(congestion),
        narrative=generate_traffic_narrative(city, level, is_raining, at.hour),
        fetched_at=at,
    )


def resolve_traffic_city(
    city: str, latitude: float | None = None, longitude: float | None = None
) -> Optional[Tuple[str, float | None, float | None]]:
    """(display name, lat, lon) of the metro city whose estimate applies, or None."""
    if is_metro_city(city):
        return city, latitude, longitude
    if latitude is None or longitude is None:
        return None
    match = find_nearest_hub(latitude, longitude, Capability.TRAFFIC)
    if match is None:
        return None
    logger.info(
        "Routing traffic request to hub",
        extra={"city": city, "hub": match.hub.id, "distance_km": round(match.distance_km, 1)},
    )
    return match.hub.name, match.hub.coord.lat, match.hub.coord.lon


def get_traffic(
    city: str,
    *,
    latitude: float | None = None,
    longitude: float | None = None,
    is_holiday: bool = False,
    data_source: WeatherDataSource | None = None,
    fallback_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
    now: Callable[[], dt.datetime] = dt.datetime.now,
) -> Optional[TrafficData]:
    """Traffic estimate for a metro city or a town near a traffic hub; None otherwise."""
    settings = settings or config.settings
    resolved = resolve_traffic_city(city, latitude, longitude)
    if resolved is None:
        logger.debug("No traffic coverage for city", extra={"city": city})
        return None
    name, lat, lon = resolved

    model = get_weather(
        name,
        latitude=lat,
        longitude=lon,
        data_source=data_source or build_data_source(settings),
        fallback_source=fallback_source,
        settings=settings,
    )
    data = estimate_traffic(name, now(), is_raining=model.precipitation_volume > 0, is_holiday=is_holiday)
    logger.info("Traffic estimated", extra={"city": name, "congestion": data.congestion_percent})
    return data
