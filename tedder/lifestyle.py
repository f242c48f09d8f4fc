"""Rule-based lifestyle advisories derived from current conditions.

Each advisory is a small threshold table evaluated in order: the first "bad"
condition wins, then the first "moderate" one, otherwise the verdict is good.
Inputs are cleaned once up front; missing or NaN values are replaced with
neutral defaults so a partial forecast still produces all nine advisories.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from tedder.domain import LifestyleIndex, LifestyleStatus, WeatherModel
from tedder.numeric import as_float
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="lifestyle")

NEUTRAL_TEMPERATURE = 20.0
NEUTRAL_WIND = 0.0
NEUTRAL_HUMIDITY = 50.0
NEUTRAL_UV = 0.0
NEUTRAL_AQI = 40.0
NEUTRAL_PROBABILITY = 0.0
NEUTRAL_PRESSURE = 1013.0


@dataclass(frozen=True)
class LifestyleInputs:
    """Cleaned inputs shared by every advisory rule."""

    temperature: float
    wind_speed: float
    humidity: float
    uv_index: float
    aqi: float
    precipitation_probability: float
    pressure: float
    rain_prob_today: float
    rain_prob_tomorrow: float
    rain_volume: float


def _running(x: LifestyleInputs) -> LifestyleStatus:
    if x.aqi > 100 or x.temperature < 5 or x.temperature > 35 or x.precipitation_probability > 50:
        return LifestyleStatus.BAD
    if x.aqi > 50 or x.temperature > 30 or x.wind_speed > 25 or x.humidity > 80:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _outdoor_kids(x: LifestyleInputs) -> LifestyleStatus:
    if x.aqi > 100 or x.uv_index > 8 or x.temperature < 5 or x.temperature > 35 or x.precipitation_probability > 40:
        return LifestyleStatus.BAD
    if x.aqi > 50 or x.uv_index > 6 or x.temperature > 30:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _allergy(x: LifestyleInputs) -> LifestyleStatus:
    # warm, humid, still air keeps pollen suspended
    if (x.humidity > 70 and x.wind_speed < 10 and 15 < x.temperature < 30) or x.aqi > 100:
        return LifestyleStatus.BAD
    if x.humidity > 50 and 10 < x.temperature < 28:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _sensitive_groups(x: LifestyleInputs) -> LifestyleStatus:
    if x.aqi > 100 or (x.humidity > 80 and x.temperature > 30):
        return LifestyleStatus.BAD
    if x.aqi > 50 or x.pressure < 1005 or x.temperature < 5 or x.temperature > 32:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _barbecue(x: LifestyleInputs) -> LifestyleStatus:
    if x.rain_prob_today > 30 or x.wind_speed > 25:
        return LifestyleStatus.BAD
    if x.temperature < 15 or x.wind_speed > 15:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _fishing(x: LifestyleInputs) -> LifestyleStatus:
    if x.wind_speed > 25 or x.pressure < 1005:
        return LifestyleStatus.BAD
    if x.pressure > 1025 or x.pressure < 1010:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _car_wash(x: LifestyleInputs) -> LifestyleStatus:
    if x.rain_prob_today > 40 or x.rain_prob_tomorrow > 50:
        return LifestyleStatus.BAD
    if x.rain_prob_today > 20 or x.rain_prob_tomorrow > 30:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _gardening(x: LifestyleInputs) -> LifestyleStatus:
    # "bad" means watering is pointless: the sky will do it
    if x.rain_volume > 2 or x.rain_prob_tomorrow > 60:
        return LifestyleStatus.BAD
    if x.temperature > 30 and x.uv_index > 7:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


def _cycling(x: LifestyleInputs) -> LifestyleStatus:
    if x.precipitation_probability > 40 or x.wind_speed > 30 or x.temperature < 5:
        return LifestyleStatus.BAD
    if x.wind_speed > 20 or x.temperature > 32:
        return LifestyleStatus.MODERATE
    return LifestyleStatus.GOOD


Rule = Callable[[LifestyleInputs], LifestyleStatus]


# (id, name, icon, rule, labels by status), in display order.
ADVISORIES: Tuple[Tuple[str, str, str, Rule, Dict[LifestyleStatus, str]], ...] = (
    ("run", "Running", "footprints", _running, {
        LifestyleStatus.GOOD: "Great for a run",
        LifestyleStatus.MODERATE: "Run with care",
        LifestyleStatus.BAD: "Skip the run",
    }),
    ("kids", "Outdoor Play", "baby", _outdoor_kids, {
        LifestyleStatus.GOOD: "Good for the park",
        LifestyleStatus.MODERATE: "Keep outings short",
        LifestyleStatus.BAD: "Stay indoors",
    }),
    ("allergy", "Allergy", "flower", _allergy, {
        LifestyleStatus.GOOD: "Low risk",
        LifestyleStatus.MODERATE: "Moderate risk",
        LifestyleStatus.BAD: "High risk",
    }),
    ("sensitive", "Sensitive Groups", "heart", _sensitive_groups, {
        LifestyleStatus.GOOD: "No concerns",
        LifestyleStatus.MODERATE: "Take precautions",
        LifestyleStatus.BAD: "Limit time outside",
    }),
    ("bbq", "Barbecue", "flame", _barbecue, {
        LifestyleStatus.GOOD: "Fire up the grill",
        LifestyleStatus.MODERATE: "Possible, dress warm",
        LifestyleStatus.BAD: "Not a grill day",
    }),
    ("fish", "Fishing", "fish", _fishing, {
        LifestyleStatus.GOOD: "Fish are biting",
        LifestyleStatus.MODERATE: "Average catch",
        LifestyleStatus.BAD: "Poor conditions",
    }),
    ("car", "Car Wash", "car", _car_wash, {
        LifestyleStatus.GOOD: "Good day to wash",
        LifestyleStatus.MODERATE: "Rain may follow",
        LifestyleStatus.BAD: "Rain expected, wait",
    }),
    ("garden", "Gardening", "sprout", _gardening, {
        LifestyleStatus.GOOD: "Good for watering",
        LifestyleStatus.MODERATE: "Water in the evening",
        LifestyleStatus.BAD: "No watering needed",
    }),
    ("bike", "Cycling", "bike", _cycling, {
        LifestyleStatus.GOOD: "Ideal for a ride",
        LifestyleStatus.MODERATE: "Ride with caution",
        LifestyleStatus.BAD: "Not recommended",
    }),
)


def calculate_lifestyle_indexes(
    temperature: Optional[float],
    wind_speed: Optional[float],
    humidity: Optional[float],
    uv_index: Optional[float],
    aqi: Optional[float],
    precipitation_probability: Optional[float],
    *,
    pressure: Optional[float] = None,
    rain_prob_today: Optional[float] = None,
    rain_prob_tomorrow: Optional[float] = None,
    rain_volume: Optional[float] = None,
) -> List[LifestyleIndex]:
    """Evaluate all nine advisories, always in the same order.

    ``rain_prob_today`` defaults to the current precipitation probability;
    ``rain_prob_tomorrow`` and ``rain_volume`` default to zero.
    """
    prob = as_float(precipitation_probability, NEUTRAL_PROBABILITY)
    inputs = LifestyleInputs(
        temperature=as_float(temperature, NEUTRAL_TEMPERATURE),
        wind_speed=as_float(wind_speed, NEUTRAL_WIND),
        humidity=as_float(humidity, NEUTRAL_HUMIDITY),
        uv_index=as_float(uv_index, NEUTRAL_UV),
        aqi=as_float(aqi, NEUTRAL_AQI),
        precipitation_probability=prob,
        pressure=as_float(pressure, NEUTRAL_PRESSURE),
        rain_prob_today=as_float(rain_prob_today, prob),
        rain_prob_tomorrow=as_float(rain_prob_tomorrow, NEUTRAL_PROBABILITY),
        rain_volume=as_float(rain_volume, 0.0),
    )

    out: List[LifestyleIndex] = []
    for advisory_id, name, icon, rule, labels in ADVISORIES:
        status = rule(inputs)
        out.append(LifestyleIndex(id=advisory_id, name=name, status=status, label=labels[status], icon=icon))
    logger.debug(
        "Computed lifestyle indexes",
        extra={"bad": sum(1 for i in out if i.status is LifestyleStatus.BAD)},
    )
    return out


def lifestyle_for_model(model: WeatherModel) -> List[LifestyleIndex]:
    """Advisories for a (possibly projected) WeatherModel."""
    today = model.daily[0] if model.daily else None
    tomorrow = model.daily[1] if len(model.daily) > 1 else None
    return calculate_lifestyle_indexes(
        model.current_temp,
        model.wind_speed,
        model.humidity,
        model.uv_index,
        model.aqi,
        model.precipitation_probability,
        pressure=model.pressure,
        rain_prob_today=today.precipitation_probability_max if today else None,
        rain_prob_tomorrow=tomorrow.precipitation_probability_max if tomorrow else None,
        rain_volume=model.precipitation_volume,
    )
