"""Normalize Open-Meteo forecast payloads into the canonical WeatherModel."""
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence, Tuple

from tedder import config
from tedder.conditions import RAIN_CODES, SNOW_CODES, UNKNOWN_CODE, classify_condition, condition_text
from tedder.data_sources import WeatherDataSource, build_data_source, build_fallback_source
from tedder.domain import Coordinate, DayEntry, HourEntry, WeatherModel
from tedder.errors import ProviderError
from tedder.numeric import as_float, round_int
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_service")

MAX_HOURLY_ENTRIES = 168
WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TODAY_LABEL = "Today"
TOMORROW_LABEL = "Tomorrow"

# Local defaults for fields missing from an otherwise good response.
DEFAULT_PRESSURE_HPA = 1013.0
DEFAULT_HUMIDITY = 50.0
TONIGHT_LOW_OFFSET = 5.0
UNKNOWN_CLOCK = "--:--"

PHRASE_UMBRELLA = "Take an umbrella, rain is expected."
PHRASE_SNOW = "Snowfall may affect travel, drive carefully."
PHRASE_WIND = "Strong winds today, watch for flying debris."
PHRASE_HEAT = "It's hot. Drink plenty of water and stay out of the midday sun."
PHRASE_UV = "UV index is high. Put on sunscreen before heading out."
PHRASE_COLD = "It's very cold. Don't forget a scarf and gloves."
PHRASE_COOL = "It's cool out, wear an extra layer."
PHRASE_NEUTRAL = "Conditions look pleasant, enjoy your day."


def generate_smart_phrase(temperature: float, weather_code: int, wind_speed: float, uv_index: float) -> str:
    """One-line advisory from a short rule table; the first matching rule wins."""
    if weather_code in RAIN_CODES:
        return PHRASE_UMBRELLA
    if weather_code in SNOW_CODES:
        return PHRASE_SNOW
    if wind_speed > 30:
        return PHRASE_WIND
    if temperature > 30:
        return PHRASE_HEAT
    if uv_index > 6:
        return PHRASE_UV
    if temperature < 5:
        return PHRASE_COLD
    if temperature < 15:
        return PHRASE_COOL
    return PHRASE_NEUTRAL


def parse_local_time(value: str) -> dt.datetime:
    """Parse an Open-Meteo local timestamp ("2025-12-05T08:00") into a naive datetime."""
    return dt.datetime.fromisoformat(value).replace(tzinfo=None)


def locate_now_index(times: Sequence[str], now: str) -> int:
    """Index of the first timestamp >= ``now``; 0 when every timestamp is earlier."""
    now_dt = parse_local_time(now)
    for i, t in enumerate(times):
        if parse_local_time(t) >= now_dt:
            return i
    return 0


def day_label(index: int, day: dt.date) -> str:
    """"Today", "Tomorrow", then the weekday abbreviation."""
    if index == 0:
        return TODAY_LABEL
    if index == 1:
        return TOMORROW_LABEL
    return WEEKDAY_ABBR[day.weekday()]


def date_label(day: dt.date) -> str:
    """Short date label, e.g. "5 Dec"."""
    return f"{day.day} {MONTH_ABBR[day.month - 1]}"


def _clock(value: Optional[str]) -> str:
    """Extract "HH:MM" from an ISO timestamp."""
    if not value or "T" not in value:
        return UNKNOWN_CLOCK
    return value.split("T", 1)[1][:5]


def _column(section: Dict[str, Any], key: str, length: int) -> List[Any]:
    """Return a parallel array, padding absent or short arrays with None."""
    values = section.get(key) or []
    if len(values) < length:
        values = list(values) + [None] * (length - len(values))
    return values


def _code(value: Any) -> int:
    code = as_float(value)
    return UNKNOWN_CODE if code is None else int(code)


def _build_hourly(hourly: Dict[str, Any], start: int, limit: int) -> List[HourEntry]:
    times = hourly.get("time") or []
    n = len(times)
    temps = _column(hourly, "temperature_2m", n)
    apparent = _column(hourly, "apparent_temperature", n)
    probs = _column(hourly, "precipitation_probability", n)
    codes = _column(hourly, "weather_code", n)
    winds = _column(hourly, "wind_speed_10m", n)
    is_days = hourly.get("is_day")

    out: List[HourEntry] = []
    for i in range(start, min(start + limit, n)):
        ts = parse_local_time(times[i])
        temp = as_float(temps[i], 0.0)
        prob = min(100.0, max(0.0, as_float(probs[i], 0.0)))
        is_day = is_days[i] == 1 if is_days and i < len(is_days) else True
        out.append(
            HourEntry(
                timestamp=ts,
                time=ts.strftime("%H:%M"),
                temperature=temp,
                feels_like=round_int(as_float(apparent[i], temp)),
                wind_speed=round_int(as_float(winds[i], 0.0)),
                precipitation_probability=prob,
                icon=classify_condition(_code(codes[i]), is_day, prob),
                is_day=is_day,
            )
        )
    return out


def _build_daily(daily: Dict[str, Any], current_temp: float) -> List[DayEntry]:
    times = daily.get("time") or []
    n = len(times)
    codes = _column(daily, "weather_code", n)
    highs = _column(daily, "temperature_2m_max", n)
    lows = _column(daily, "temperature_2m_min", n)
    probs = _column(daily, "precipitation_probability_max", n)
    winds = _column(daily, "wind_speed_10m_max", n)
    feels = _column(daily, "apparent_temperature_max", n)
    uvs = _column(daily, "uv_index_max", n)

    out: List[DayEntry] = []
    for i, raw_day in enumerate(times):
        day = dt.date.fromisoformat(raw_day[:10])
        code = _code(codes[i])
        prob = as_float(probs[i], 0.0)
        high = as_float(highs[i], current_temp)
        low = as_float(lows[i], current_temp - TONIGHT_LOW_OFFSET)
        out.append(
            DayEntry(
                day=day_label(i, day),
                date_label=date_label(day),
                calendar_date=day,
                weather_code=code,
                high=round_int(high),
                low=round_int(low),
                feels_like_max=round_int(as_float(feels[i], high)),
                uv_index_max=round_int(as_float(uvs[i], 0.0)),
                precipitation_probability_max=prob,
                wind_max=round_int(as_float(winds[i], 0.0)),
                icon=classify_condition(code, True, prob),
                condition=condition_text(code),
            )
        )
    return out


def normalize_forecast(
    city: str,
    payload: Dict[str, Any],
    *,
    aqi: int,
    max_hours: int = MAX_HOURLY_ENTRIES,
) -> WeatherModel:
    """Build a WeatherModel from one forecast payload.

    "Now" is the first hourly slot at or after ``current.time``; the hourly
    buffer runs from there for at most ``max_hours`` entries.
    """
    current = payload["current"]
    hourly = payload["hourly"]
    daily = payload["daily"]

    times = hourly.get("time") or []
    now_index = locate_now_index(times, current["time"]) if times else 0

    current_temp = as_float(current.get("temperature_2m"), 0.0)
    current_code = _code(current.get("weather_code"))
    is_day = current.get("is_day") == 1
    current_prob = as_float(_column(hourly, "precipitation_probability", len(times))[now_index], 0.0) if times else 0.0
    uv_now = as_float(_column(hourly, "uv_index", len(times))[now_index], 0.0) if times else 0.0
    wind_now = as_float(current.get("wind_speed_10m"), 0.0)

    highs = daily.get("temperature_2m_max") or []
    lows = daily.get("temperature_2m_min") or []
    sunrises = daily.get("sunrise") or []
    sunsets = daily.get("sunset") or []

    model = WeatherModel(
        city=city,
        coord=Coordinate(lat=payload.get("latitude", 0.0), lon=payload.get("longitude", 0.0)),
        current_temp=current_temp,
        feels_like=as_float(current.get("apparent_temperature"), current_temp),
        humidity=as_float(current.get("relative_humidity_2m"), DEFAULT_HUMIDITY),
        pressure=as_float(current.get("surface_pressure"), DEFAULT_PRESSURE_HPA),
        wind_speed=wind_now,
        wind_direction=as_float(current.get("wind_direction_10m"), 0.0),
        uv_index=uv_now,
        aqi=aqi,
        cloud_cover=as_float(current.get("cloud_cover"), 0.0),
        precipitation_volume=as_float(current.get("precipitation"), 0.0),
        precipitation_probability=current_prob,
        condition=condition_text(current_code),
        icon=classify_condition(current_code, is_day, current_prob),
        smart_phrase=generate_smart_phrase(current_temp, current_code, wind_now, uv_now),
        high=as_float(highs[0] if highs else None, current_temp),
        low=as_float(lows[0] if lows else None, current_temp - TONIGHT_LOW_OFFSET),
        sunrise=_clock(sunrises[0] if sunrises else None),
        sunset=_clock(sunsets[0] if sunsets else None),
        hourly=_build_hourly(hourly, now_index, max_hours),
        daily=_build_daily(daily, current_temp),
    )
    logger.debug(
        "Normalized forecast",
        extra={"city": city, "now_index": now_index, "hours": len(model.hourly), "days": len(model.daily)},
    )
    return model


def _slug(text: str) -> str:
    return text.strip().casefold()


def resolve_location(
    city: str,
    latitude: Optional[float],
    longitude: Optional[float],
    *,
    data_source: WeatherDataSource,
    settings: config.Settings,
) -> Tuple[str, float, float]:
    """Pick coordinates for a city: explicit > preloaded > geocoded > default."""
    if latitude is not None and longitude is not None:
        return city, latitude, longitude

    if (
        settings.preloaded_city
        and settings.preloaded_latitude is not None
        and settings.preloaded_longitude is not None
        and _slug(settings.preloaded_city) == _slug(city)
    ):
        return settings.preloaded_city, settings.preloaded_latitude, settings.preloaded_longitude

    try:
        match = data_source.fetch_geocoding(city, timeout=settings.request_timeout_seconds)
    except ProviderError as exc:
        logger.warning("Geocoding failed; using default coordinates", extra={"city": city, "error": str(exc)})
        match = None
    if match is not None:
        return match.name, match.lat, match.lon

    return city, settings.default_latitude, settings.default_longitude


def _fetch_aqi(data_source: WeatherDataSource, lat: float, lon: float, settings: config.Settings) -> int:
    """Current AQI, or the configured neutral default when the provider has nothing."""
    if not settings.air_quality_enabled:
        return settings.default_aqi
    try:
        aqi = data_source.fetch_air_quality(lat, lon, timeout=settings.request_timeout_seconds)
    except ProviderError as exc:
        logger.warning("Air-quality fetch failed; using default AQI", extra={"error": str(exc)})
        return settings.default_aqi
    aqi = as_float(aqi)
    return settings.default_aqi if aqi is None else round_int(aqi)


def get_weather(
    city: str,
    *,
    latitude: float | None = None,
    longitude: float | None = None,
    data_source: WeatherDataSource | None = None,
    fallback_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
) -> WeatherModel:
    """Fetch and normalize the forecast for a city or coordinate.

    Never raises for provider trouble: a failed or malformed forecast response
    is replaced by the fallback source's payload, which goes through the same
    normalization, so callers cannot tell the two apart structurally.
    """
    settings = settings or config.settings
    ds = data_source or build_data_source(settings)
    name, lat, lon = resolve_location(city, latitude, longitude, data_source=ds, settings=settings)

    logger.info("Fetching forecast", extra={"city": name, "latitude": lat, "longitude": lon, "source": ds.name})
    # Air quality never decides between live and fallback data.
    aqi = _fetch_aqi(ds, lat, lon, settings)
    try:
        payload = ds.fetch_forecast(
            lat,
            lon,
            forecast_days=settings.forecast_days,
            forecast_hours=settings.forecast_hours,
            timeout=settings.request_timeout_seconds,
        )
        return normalize_forecast(name, payload, aqi=aqi, max_hours=settings.forecast_hours)
    except ProviderError as exc:
        logger.warning("Forecast provider failed; using synthetic data", extra={"city": name, "error": str(exc)})
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Forecast payload malformed; using synthetic data", extra={"city": name, "error": repr(exc)})

    fallback = fallback_source or build_fallback_source()
    payload = fallback.fetch_forecast(
        lat,
        lon,
        forecast_days=settings.forecast_days,
        forecast_hours=settings.forecast_hours,
        timeout=settings.request_timeout_seconds,
    )
    return normalize_forecast(name, payload, aqi=settings.default_aqi, max_hours=settings.forecast_hours)
