"""Derive "tomorrow" and "weekend" views from a normalized WeatherModel.

Day boundaries are found with calendar arithmetic: the reference day is
``daily[0].calendar_date`` and the start of a target day is located in the
hourly buffer by bisecting on timestamps. Every projection returns a new
model; fields a view does not override pass through untouched.
"""

from __future__ import annotations

import datetime as dt
from bisect import bisect_left
from typing import List, Sequence

from tedder.domain import DayEntry, ForecastView, HourEntry, WeatherModel
from tedder.forecast_service import generate_smart_phrase
from tedder.numeric import round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="projections")

HOURS_PER_DAY = 24
WEEKEND_HOURS = 48
SATURDAY = 5  # date.weekday()
FALLBACK_WEEK_DAYS = 7


def days_until_saturday(today: dt.date) -> int:
    """0 on Saturday, 6 on Sunday, 1 on Friday, ..."""
    return (SATURDAY - today.weekday()) % 7


def hours_for_days(hourly: Sequence[HourEntry], first_day: dt.date, day_count: int = 1) -> List[HourEntry]:
    """Entries whose timestamps fall within ``day_count`` days starting at ``first_day`` 00:00."""
    start = dt.datetime.combine(first_day, dt.time.min)
    end = start + dt.timedelta(days=day_count)
    stamps = [h.timestamp for h in hourly]
    i = bisect_left(stamps, start)
    out: List[HourEntry] = []
    limit = day_count * HOURS_PER_DAY
    while i < len(hourly) and hourly[i].timestamp < end and len(out) < limit:
        out.append(hourly[i])
        i += 1
    return out


def to_tomorrow(model: WeatherModel) -> WeatherModel:
    """View of the next calendar day: ``daily[1]`` scalars plus its (at most 24) hourly entries."""
    if len(model.daily) < 2:
        logger.debug("No daily entry for tomorrow; returning model unchanged", extra={"city": model.city})
        return model

    tomorrow = model.daily[1]
    hourly = hours_for_days(model.hourly, tomorrow.calendar_date)
    if not hourly:
        # No midnight in the buffer at all: assume tomorrow starts a day after "now".
        hourly = list(model.hourly[HOURS_PER_DAY:2 * HOURS_PER_DAY])

    return model.model_copy(
        update={
            "view": ForecastView.TOMORROW,
            "current_temp": float(tomorrow.high),
            "condition": tomorrow.condition,
            "icon": tomorrow.icon,
            "smart_phrase": generate_smart_phrase(
                tomorrow.high, tomorrow.weather_code, tomorrow.wind_max, tomorrow.uv_index_max
            ),
            "high": float(tomorrow.high),
            "low": float(tomorrow.low),
            "wind_speed": float(tomorrow.wind_max),
            "precipitation_probability": tomorrow.precipitation_probability_max,
            "humidity": float(tomorrow.humidity),
            "hourly": hourly,
        }
    )


def _weekend_days(daily: Sequence[DayEntry], today: dt.date) -> List[DayEntry]:
    """Saturday and Sunday of the coming (or current) weekend."""
    offset = days_until_saturday(today)
    saturday = today + dt.timedelta(days=offset)
    wanted = (saturday, saturday + dt.timedelta(days=1))
    days = [d for d in daily if d.calendar_date in wanted]
    if days:
        return days
    # Dates missing from the buffer: fall back to positional lookup.
    return [daily[i] for i in (offset, offset + 1) if i < len(daily)]


def to_weekend(model: WeatherModel, *, today: dt.date | None = None) -> WeatherModel:
    """Aggregate view of Saturday and Sunday.

    High/low are the rounded means of the weekend days, precipitation is the
    maximum, icon and condition come from Saturday. The hourly slice covers at
    most 48 hours starting Saturday 00:00 (or "now" when today is Saturday).
    """
    if not model.daily:
        return model
    today = today or model.daily[0].calendar_date

    weekend = _weekend_days(model.daily, today)
    if not weekend:
        logger.debug("No weekend days in forecast; returning model unchanged", extra={"city": model.city})
        return model

    saturday = today + dt.timedelta(days=days_until_saturday(today))
    hourly = hours_for_days(model.hourly, saturday, day_count=2)
    if not hourly:
        hourly = list(model.hourly[:WEEKEND_HOURS])

    avg_high = round_int(sum(d.high for d in weekend) / len(weekend))
    avg_low = round_int(sum(d.low for d in weekend) / len(weekend))
    max_prob = max(d.precipitation_probability_max for d in weekend)
    first = weekend[0]

    return model.model_copy(
        update={
            "view": ForecastView.WEEKEND,
            "current_temp": float(avg_high),
            "condition": first.condition,
            "icon": first.icon,
            "smart_phrase": generate_smart_phrase(avg_high, first.weather_code, first.wind_max, first.uv_index_max),
            "high": float(avg_high),
            "low": float(avg_low),
            "precipitation_probability": max_prob,
            "hourly": hourly,
            "daily": weekend if len(weekend) >= 2 else list(model.daily[:FALLBACK_WEEK_DAYS]),
        }
    )


def project(model: WeatherModel, view: ForecastView | str) -> WeatherModel:
    """Dispatch to the projection for ``view``; "today" returns the model itself."""
    view = ForecastView(view)
    if view is ForecastView.TOMORROW:
        return to_tomorrow(model)
    if view is ForecastView.WEEKEND:
        return to_weekend(model)
    return model
