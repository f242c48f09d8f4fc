"""Small numeric helpers shared by the normalizers and aggregations."""

from __future__ import annotations

import math
from typing import Any, Optional


def as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Return ``value`` as a float, or ``default`` when it is missing, NaN or not numeric."""
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves towards +infinity (2.5 -> 3, -2.5 -> -2), unlike Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """round_half_up() to an int."""
    return int(round_half_up(value))
