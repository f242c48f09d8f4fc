"""Synthetic weather data source.

Produces provider-shaped payloads from a seed and a clock, so the rest of the
system runs through exactly the same normalization path whether the data is
live or generated. Used as the fallback when the live provider fails and as a
stand-alone source for development (``TEDDER_FORECAST_SOURCE=synthetic``).
"""

from __future__ import annotations

import datetime as dt
import math
import random
from typing import Any, Callable, Dict, List, Optional

from tedder.domain import GeoMatch
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="synthetic_source")

BASE_TEMP_C = 18.0
DAY_START_HOUR = 6
DAY_END_HOUR = 20
# Mostly fair weather; the generator never produces severe codes.
FAIR_WEATHER_CODES = (0, 0, 1, 1, 2, 3)


def _iso_minute(value: dt.datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M")


class SyntheticWeatherDataSource:
    """Deterministic stand-in for the live provider.

    Two instances with the same seed and clock return identical payloads.
    """

    name = "synthetic"

    def __init__(self, seed: int = 42, now: Callable[[], dt.datetime] | None = None) -> None:
        self.seed = seed
        self._now = now or dt.datetime.now

    def _rng(self, *salt: Any) -> random.Random:
        return random.Random(f"{self.seed}:{':'.join(str(s) for s in salt)}")

    def _current_hour(self) -> dt.datetime:
        return self._now().replace(minute=0, second=0, microsecond=0, tzinfo=None)

    @staticmethod
    def _diurnal(base: float, hour: int, amplitude: float = 5.0) -> float:
        """Temperature curve peaking mid-afternoon."""
        return round(base + amplitude * math.sin((hour - 9) / 24 * 2 * math.pi), 1)

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
        """Return a complete forecast payload starting at the current hour."""
        start = self._current_hour()
        today = start.date()
        rng = self._rng("forecast", round(latitude, 2), round(longitude, 2), today.isoformat())

        day_codes = [rng.choice(FAIR_WEATHER_CODES) for _ in range(forecast_days)]
        day_offsets = [rng.uniform(-3.0, 3.0) for _ in range(forecast_days)]

        hourly: Dict[str, List[Any]] = {
            "time": [],
            "temperature_2m": [],
            "relative_humidity_2m": [],
            "apparent_temperature": [],
            "precipitation_probability": [],
            "precipitation": [],
            "weather_code": [],
            "surface_pressure": [],
            "wind_speed_10m": [],
            "wind_direction_10m": [],
            "uv_index": [],
            "is_day": [],
        }
        for i in range(forecast_hours):
            ts = start + dt.timedelta(hours=i)
            day_idx = min((ts.date() - today).days, forecast_days - 1)
            temp = self._diurnal(BASE_TEMP_C + day_offsets[day_idx], ts.hour)
            is_day = DAY_START_HOUR <= ts.hour < DAY_END_HOUR
            hourly["time"].append(_iso_minute(ts))
            hourly["temperature_2m"].append(temp)
            hourly["relative_humidity_2m"].append(50)
            hourly["apparent_temperature"].append(round(temp - 0.8, 1))
            hourly["precipitation_probability"].append(10)
            hourly["precipitation"].append(0.0)
            hourly["weather_code"].append(day_codes[day_idx])
            hourly["surface_pressure"].append(1012.0)
            hourly["wind_speed_10m"].append(10.0)
            hourly["wind_direction_10m"].append(45)
            hourly["uv_index"].append(5.0 if is_day else 0.0)
            hourly["is_day"].append(1 if is_day else 0)

        daily: Dict[str, List[Any]] = {
            "time": [],
            "weather_code": [],
            "temperature_2m_max": [],
            "temperature_2m_min": [],
            "sunrise": [],
            "sunset": [],
            "precipitation_sum": [],
            "precipitation_probability_max": [],
            "wind_speed_10m_max": [],
            "apparent_temperature_max": [],
            "uv_index_max": [],
        }
        for i in range(forecast_days):
            day = today + dt.timedelta(days=i)
            base = BASE_TEMP_C + day_offsets[i]
            daily["time"].append(day.isoformat())
            daily["weather_code"].append(day_codes[i])
            daily["temperature_2m_max"].append(round(base + 5, 1))
            daily["temperature_2m_min"].append(round(base - 5, 1))
            daily["sunrise"].append(f"{day.isoformat()}T{DAY_START_HOUR:02d}:00")
            daily["sunset"].append(f"{day.isoformat()}T{DAY_END_HOUR:02d}:00")
            daily["precipitation_sum"].append(0.0)
            daily["precipitation_probability_max"].append(10)
            daily["wind_speed_10m_max"].append(15.0)
            daily["apparent_temperature_max"].append(round(base + 6, 1))
            daily["uv_index_max"].append(5.0)

        current_temp = hourly["temperature_2m"][0] if forecast_hours else BASE_TEMP_C
        is_day_now = DAY_START_HOUR <= start.hour < DAY_END_HOUR
        return {
            "latitude": latitude,
            "longitude": longitude,
            "timezone": "GMT" if timezone == "auto" else timezone,
            "current": {
                "time": _iso_minute(start),
                "temperature_2m": current_temp,
                "relative_humidity_2m": 50,
                "apparent_temperature": round(current_temp + 1, 1),
                "is_day": 1 if is_day_now else 0,
                "precipitation": 0.0,
                "weather_code": day_codes[0],
                "surface_pressure": 1012.0,
                "wind_speed_10m": 15.0,
                "wind_direction_10m": 45,
                "cloud_cover": 25,
            },
            "hourly": hourly,
            "daily": daily,
        }

    def fetch_geocoding(self, name: str, *, timeout: float = 10) -> Optional[GeoMatch]:
        """The synthetic source knows no places; callers fall back to default coordinates."""
        return None

    def fetch_archive_daily(
        self,
        latitude: float,
        longitude: float,
        start_date: dt.date,
        end_date: dt.date,
        *,
        timeout: float = 10,
    ) -> Dict[str, Any]:
        """Return a seasonal curve for every day in [start_date, end_date]."""
        rng = self._rng("archive", round(latitude, 2), round(longitude, 2), start_date.isoformat())
        daily: Dict[str, List[Any]] = {
            "time": [],
            "temperature_2m_max": [],
            "temperature_2m_min": [],
            "precipitation_sum": [],
        }
        day = start_date
        while day <= end_date:
            doy = day.timetuple().tm_yday
            season = -math.cos((doy - 15) / 365.25 * 2 * math.pi)  # coldest mid-January
            high = 17 + 11 * season + rng.uniform(-2, 2)
            daily["time"].append(day.isoformat())
            daily["temperature_2m_max"].append(round(high, 1))
            daily["temperature_2m_min"].append(round(high - 9, 1))
            daily["precipitation_sum"].append(round(max(0.0, rng.gauss(1.2 - season, 1.5)), 1))
            day += dt.timedelta(days=1)
        return daily

    def fetch_air_quality(self, latitude: float, longitude: float, *, timeout: float = 10) -> Optional[int]:
        """Return a constant moderate AQI."""
        return 40

    def fetch_marine(self, latitude: float, longitude: float, *, timeout: float = 10) -> Dict[str, Any]:
        """Return calm-sea conditions for the current day."""
        start = self._current_hour().replace(hour=0)
        return {
            "latitude": latitude,
            "longitude": longitude,
            "current": {
                "time": _iso_minute(self._current_hour()),
                "wave_height": 0.4,
                "wave_direction": 220,
                "wave_period": 4.0,
                "wind_wave_height": 0.2,
                "swell_wave_height": 0.3,
            },
            "hourly": {
                "time": [_iso_minute(start + dt.timedelta(hours=h)) for h in range(24)],
                "sea_surface_temperature": [21.0] * 24,
            },
        }

    def fetch_soil(self, latitude: float, longitude: float, *, timeout: float = 10) -> Dict[str, Any]:
        """Return three days of mild, moist topsoil readings."""
        start = self._current_hour().replace(hour=0)
        hours = 72
        return {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": {
                "time": [_iso_minute(start + dt.timedelta(hours=h)) for h in range(hours)],
                "soil_temperature_0_to_7cm": [16.0] * hours,
                "soil_moisture_0_to_7cm": [0.3] * hours,
                "et0_fao_evapotranspiration": [0.12] * hours,
            },
            "daily": {
                "time": [(start.date() + dt.timedelta(days=d)).isoformat() for d in range(3)],
                "temperature_2m_min": [8.0, 7.5, 9.0],
            },
        }
