"""WMO weather-code classification into the canonical icon vocabulary.

The classifier is a precedence-ordered rule list: the first matching rule
decides the icon. Precipitation probability can override the raw code in both
directions, so a "clear" hour with a 60% rain chance renders as rain and a
"light rain" hour the model itself gives 15% renders as cloud.
"""

from __future__ import annotations

import math
from typing import Optional

from tedder.domain import IconKey

CLEAR_CODES = frozenset({0, 1})
PARTLY_CLOUDY_CODE = 2
OVERCAST_CODE = 3
FOG_CODES = frozenset({45, 48})
RAIN_CODES = frozenset({51, 53, 55, 61, 63, 65, 80, 81, 82})
FREEZING_CODES = frozenset({56, 57, 66, 67})
SNOW_CODES = frozenset({71, 73, 75, 85, 86})
SNOW_GRAINS_CODE = 77
STORM_CODES = frozenset({95, 96, 99})
HAIL_STORM_CODES = frozenset({96, 99})
UNKNOWN_CODE = -1  # stands in for a missing code; classifies as cloudy

RAIN_OVERRIDE_PROBABILITY = 40
AMBIGUOUS_PROBABILITY = 25

WMO_CONDITIONS = {
    0: "Clear",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Rime fog",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Rain showers",
    81: "Heavy rain showers",
    82: "Violent rain showers",
    85: "Light snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Severe thunderstorm with hail",
}
UNKNOWN_CONDITION = "Unknown"


def _clean_probability(value: Optional[float]) -> float:
    """Treat missing or NaN probabilities as zero."""
    if value is None:
        return 0.0
    try:
        prob = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(prob):
        return 0.0
    return prob


def _cloud(is_day: bool) -> IconKey:
    return IconKey.CLOUDY if is_day else IconKey.CLOUDY_NIGHT


def classify_condition(code: int, is_day: bool = True, precipitation_probability: Optional[float] = 0) -> IconKey:
    """Map (WMO code, day/night, precipitation %) to an IconKey.

    Rules, first match wins:
      1. thunderstorm codes -> storm (hail codes -> hail)
      2. snow codes -> snow, snow grains -> sleet
      3. freezing drizzle/rain -> freezing-rain
      4. fog codes -> fog
      5. probability >= 40 -> rain, whatever the code says
      6. 25 <= probability < 40 on a clear code -> cloudy
      7. probability < 25 on a rain code -> cloudy
      8. base mapping of clear / partly cloudy / overcast / rain codes
      9. cloudy
    """
    prob = _clean_probability(precipitation_probability)

    if code in STORM_CODES:
        return IconKey.HAIL if code in HAIL_STORM_CODES else IconKey.STORM
    if code in SNOW_CODES:
        return IconKey.SNOW
    if code == SNOW_GRAINS_CODE:
        return IconKey.SLEET
    if code in FREEZING_CODES:
        return IconKey.FREEZING_RAIN
    if code in FOG_CODES:
        return IconKey.FOG

    if prob >= RAIN_OVERRIDE_PROBABILITY:
        return IconKey.RAIN
    if prob >= AMBIGUOUS_PROBABILITY and code in CLEAR_CODES:
        return _cloud(is_day)
    if prob < AMBIGUOUS_PROBABILITY and code in RAIN_CODES:
        return _cloud(is_day)

    if code in CLEAR_CODES:
        return IconKey.SUNNY if is_day else IconKey.MOON
    if code == PARTLY_CLOUDY_CODE:
        return _cloud(is_day)
    if code == OVERCAST_CODE:
        return IconKey.OVERCAST
    if code in RAIN_CODES:
        return IconKey.RAIN

    return IconKey.CLOUDY


def condition_text(code: Optional[int]) -> str:
    """Human-readable description for a WMO code."""
    if code is None:
        return UNKNOWN_CONDITION
    return WMO_CONDITIONS.get(code, UNKNOWN_CONDITION)
