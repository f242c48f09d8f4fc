"""Topsoil conditions, irrigation demand and frost outlook for farmland."""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, List, Optional

from tedder import config
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import AgricultureData, Coordinate, IrrigationNeed, MoistureLabel
from tedder.errors import ProviderError
from tedder.forecast_service import locate_now_index, parse_local_time
from tedder.numeric import as_float, round_half_up
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agriculture")

DEFAULT_SOIL_TEMP = 15.0
DEFAULT_SOIL_MOISTURE = 0.3
DEFAULT_ET0_MM_DAY = 3.0

DRY_MOISTURE = 0.2  # m³/m³
WET_MOISTURE = 0.5
HIGH_ET0_MM_DAY = 5.0
LOW_ET0_MM_DAY = 2.0

ADVICE_FROST = "Frost risk ahead. Protect sensitive plants."
ADVICE_FROZEN = "Soil is very cold. Wait for spring before sowing."
ADVICE_COLD = "Soil is cool. Cold-hardy crops can be sown."
ADVICE_DRY = "Soil is dry. Irrigate before sowing."
ADVICE_WET = "Soil is waterlogged. Let it dry out first."
ADVICE_IDEAL = "Ideal sowing conditions for most crops."
ADVICE_HOT = "Soil is very hot. Water in the late afternoon."
ADVICE_NORMAL = "Field conditions are normal."


def moisture_label(moisture: float) -> MoistureLabel:
    if moisture < DRY_MOISTURE:
        return MoistureLabel.DRY
    if moisture > WET_MOISTURE:
        return MoistureLabel.WET
    return MoistureLabel.NORMAL


def irrigation_need(et0_mm_day: float) -> IrrigationNeed:
    if et0_mm_day > HIGH_ET0_MM_DAY:
        return IrrigationNeed.HIGH
    if et0_mm_day < LOW_ET0_MM_DAY:
        return IrrigationNeed.LOW
    return IrrigationNeed.MEDIUM


def generate_planting_advice(soil_temp: float, moisture: MoistureLabel, frost_risk: bool) -> str:
    """First matching rule wins; frost outranks everything."""
    if frost_risk:
        return ADVICE_FROST
    if soil_temp < 5:
        return ADVICE_FROZEN
    if soil_temp < 10:
        return ADVICE_COLD
    if moisture is MoistureLabel.DRY:
        return ADVICE_DRY
    if moisture is MoistureLabel.WET:
        return ADVICE_WET
    if 15 <= soil_temp <= 25:
        return ADVICE_IDEAL
    if soil_temp > 30:
        return ADVICE_HOT
    return ADVICE_NORMAL


def _value_at(values: List[Any], idx: int, default: float) -> float:
    return as_float(values[idx] if idx < len(values) else None, default)


def daily_et0(times: List[str], et0_hourly: List[Any], day: dt.date) -> Optional[float]:
    """Sum of hourly reference evapotranspiration over ``day`` (mm/day); None without data."""
    total = 0.0
    seen = 0
    for t, value in zip(times, et0_hourly):
        v = as_float(value)
        if v is None or parse_local_time(t).date() != day:
            continue
        total += v
        seen += 1
    return total if seen else None


def build_agriculture_data(
    latitude: float, longitude: float, payload: Dict[str, Any], now: dt.datetime
) -> AgricultureData:
    hourly = payload.get("hourly") or {}
    times = hourly.get("time") or []
    idx = locate_now_index(times, now.strftime("%Y-%m-%dT%H:00")) if times else 0

    soil_temp = _value_at(hourly.get("soil_temperature_0_to_7cm") or [], idx, DEFAULT_SOIL_TEMP)
    soil_moisture = _value_at(hourly.get("soil_moisture_0_to_7cm") or [], idx, DEFAULT_SOIL_MOISTURE)
    et0 = daily_et0(times, hourly.get("et0_fao_evapotranspiration") or [], now.date())
    if et0 is None:
        et0 = DEFAULT_ET0_MM_DAY

    minima = [as_float(v) for v in (payload.get("daily") or {}).get("temperature_2m_min") or []]
    frost_nights = sum(1 for v in minima if v is not None and v < 0)
    frost_risk = frost_nights > 0
    label = moisture_label(soil_moisture)

    return AgricultureData(
        coord=Coordinate(lat=latitude, lon=longitude),
        soil_temp=round_half_up(soil_temp, 1),
        soil_moisture=round_half_up(soil_moisture, 2),
        moisture_label=label,
        evapotranspiration=round_half_up(et0, 1),
        irrigation_need=irrigation_need(et0),
        frost_risk=frost_risk,
        frost_nights=frost_nights,
        planting_advice=generate_planting_advice(soil_temp, label, frost_risk),
        fetched_at=now,
    )


def get_agriculture_data(
    latitude: float,
    longitude: float,
    *,
    data_source: WeatherDataSource | None = None,
    settings: config.Settings | None = None,
    now: Callable[[], dt.datetime] = dt.datetime.now,
) -> Optional[AgricultureData]:
    """Soil conditions for a coordinate, or None when the provider fails."""
    settings = settings or config.settings
    ds = data_source or build_data_source(settings)
    try:
        payload = ds.fetch_soil(latitude, longitude, timeout=settings.request_timeout_seconds)
    except ProviderError as exc:
        logger.warning("Soil fetch failed", extra={"latitude": latitude, "longitude": longitude, "error": str(exc)})
        return None
    return build_agriculture_data(latitude, longitude, payload, now())
