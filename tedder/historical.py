"""Trailing-year observations and a sampled multi-year climatology, cached per city.

The climatology is a cheap approximation of a ten-year normal: three full
calendar years (3, 6 and 9 years back) are fetched from the archive and
averaged per day of year. Days without any sample (Feb 29 outside leap years)
carry the previous day's average forward.
"""

from __future__ import annotations

import datetime as dt
import json
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from tedder import config
from tedder.cache_store import KeyValueStore, build_cache_store
from tedder.data_sources import WeatherDataSource, build_data_source
from tedder.domain import ClimatologyPoint, HistoricalData, HistoricalDayPoint
from tedder.errors import CacheCorruptError, ProviderError
from tedder.numeric import as_float, round_half_up, round_int
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="historical")

ARCHIVE_LAG_DAYS = 5
SAMPLE_YEARS_AGO = (3, 6, 9)
DAYS_IN_CLIMATOLOGY = 366
SEED_AVG_HIGH = 15
SEED_AVG_LOW = 5
SEED_AVG_PRECIP = 1.0


@dataclass
class _DayAccumulator:
    highs: List[float] = field(default_factory=list)
    lows: List[float] = field(default_factory=list)
    precips: List[float] = field(default_factory=list)


def years_before(day: dt.date, years: int) -> dt.date:
    """Same calendar day ``years`` earlier; Feb 29 maps to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def trailing_window(today: dt.date) -> Tuple[dt.date, dt.date]:
    """One year ago through five days ago (the archive lags real time)."""
    return years_before(today, 1), today - dt.timedelta(days=ARCHIVE_LAG_DAYS)


def sample_year_ranges(today: dt.date, offsets: Iterable[int] = SAMPLE_YEARS_AGO) -> List[Tuple[dt.date, dt.date]]:
    """Jan 1 .. Dec 31 of each sampled year."""
    ranges = []
    for years_ago in offsets:
        year = today.year - years_ago
        ranges.append((dt.date(year, 1, 1), dt.date(year, 12, 31)))
    return ranges


def build_trailing_series(daily: Dict[str, Any]) -> List[HistoricalDayPoint]:
    """Convert archive arrays into one day point per date; missing readings become 0."""
    times = daily.get("time") or []
    highs = daily.get("temperature_2m_max") or []
    lows = daily.get("temperature_2m_min") or []
    precips = daily.get("precipitation_sum") or []

    out: List[HistoricalDayPoint] = []
    for i, day in enumerate(times):
        high = as_float(highs[i] if i < len(highs) else None, 0.0)
        low = as_float(lows[i] if i < len(lows) else None, 0.0)
        precip = as_float(precips[i] if i < len(precips) else None, 0.0)
        out.append(
            HistoricalDayPoint(
                date=day,
                high=round_int(high),
                low=round_int(low),
                precipitation=round_half_up(precip, 1),
            )
        )
    return out


def accumulate_samples(samples: Iterable[Dict[str, Any]]) -> Dict[int, _DayAccumulator]:
    """Group sampled daily values by day of year."""
    acc: Dict[int, _DayAccumulator] = {}
    for daily in samples:
        times = daily.get("time") or []
        highs = daily.get("temperature_2m_max") or []
        lows = daily.get("temperature_2m_min") or []
        precips = daily.get("precipitation_sum") or []
        for i, raw in enumerate(times):
            doy = dt.date.fromisoformat(raw[:10]).timetuple().tm_yday
            slot = acc.setdefault(doy, _DayAccumulator())
            high = as_float(highs[i] if i < len(highs) else None)
            low = as_float(lows[i] if i < len(lows) else None)
            precip = as_float(precips[i] if i < len(precips) else None)
            if high is not None:
                slot.highs.append(high)
            if low is not None:
                slot.lows.append(low)
            if precip is not None:
                slot.precips.append(precip)
    return acc


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def build_climatology(acc: Dict[int, _DayAccumulator]) -> List[ClimatologyPoint]:
    """Average each day of year 1..366, carrying the previous day forward over gaps."""
    out: List[ClimatologyPoint] = []
    prev_high, prev_low, prev_precip = SEED_AVG_HIGH, SEED_AVG_LOW, SEED_AVG_PRECIP
    for doy in range(1, DAYS_IN_CLIMATOLOGY + 1):
        slot = acc.get(doy)
        if slot is not None and slot.highs:
            high = round_int(_mean(slot.highs))
            low_mean = _mean(slot.lows)
            precip_mean = _mean(slot.precips)
            low = round_int(low_mean) if low_mean is not None else prev_low
            precip = round_half_up(precip_mean, 1) if precip_mean is not None else prev_precip
        else:
            high, low, precip = prev_high, prev_low, prev_precip
        out.append(ClimatologyPoint(day_of_year=doy, avg_high=high, avg_low=low, avg_precipitation=precip))
        prev_high, prev_low, prev_precip = high, low, precip
    return out


class HistoricalAveragingEngine:
    """Fetch, average and cache historical data for one city at a time.

    The cache holds a single entry ``{city, timestamp, data}``; a read for the
    same city inside the TTL costs no network calls, anything else refetches
    and overwrites it.
    """

    def __init__(
        self,
        data_source: WeatherDataSource | None = None,
        store: KeyValueStore | None = None,
        *,
        settings: config.Settings | None = None,
        clock: Callable[[], float] = time.time,
        today: Callable[[], dt.date] = dt.date.today,
    ) -> None:
        self.settings = settings or config.settings
        self.data_source = data_source or build_data_source(self.settings)
        self.store = store if store is not None else build_cache_store(self.settings)
        self._clock = clock
        self._today = today

    @property
    def cache_key(self) -> str:
        return self.settings.historical_cache_key

    def get_historical(self, latitude: float, longitude: float, city: str) -> HistoricalData:
        """Return cached data for ``city`` if fresh, otherwise fetch and cache.

        Provider failures yield an empty HistoricalData, which is not cached.
        """
        cached = self._read_cache(city)
        if cached is not None:
            logger.info("Historical data loaded from cache", extra={"city": city})
            return cached

        try:
            data = self._fetch(latitude, longitude)
        except ProviderError as exc:
            logger.warning("Historical data fetch failed", extra={"city": city, "error": str(exc)})
            return HistoricalData()

        self._write_cache(city, data)
        return data

    def _fetch(self, latitude: float, longitude: float) -> HistoricalData:
        today = self._today()
        timeout = self.settings.request_timeout_seconds

        start, end = trailing_window(today)
        trailing = self.data_source.fetch_archive_daily(latitude, longitude, start, end, timeout=timeout)
        last_12_months = build_trailing_series(trailing)

        samples = []
        for sample_start, sample_end in sample_year_ranges(today):
            samples.append(
                self.data_source.fetch_archive_daily(latitude, longitude, sample_start, sample_end, timeout=timeout)
            )
        climatology = build_climatology(accumulate_samples(samples))

        logger.debug(
            "Computed historical data",
            extra={"days": len(last_12_months), "sample_years": len(samples)},
        )
        return HistoricalData(last_12_months=last_12_months, climatology=climatology)

    @staticmethod
    def decode_entry(raw: str) -> Tuple[str, float, HistoricalData]:
        """Parse a stored cache entry; raises CacheCorruptError when it is unusable."""
        try:
            entry = json.loads(raw)
            city = entry["city"]
            timestamp = float(entry["timestamp"])
            if not math.isfinite(timestamp):
                raise ValueError(f"timestamp is not finite: {timestamp}")
            data = HistoricalData.model_validate(entry["data"])
        except (ValueError, TypeError, KeyError, ValidationError) as exc:
            raise CacheCorruptError(f"unreadable historical cache entry: {exc}") from exc
        if not isinstance(city, str):
            raise CacheCorruptError("historical cache entry has no city")
        return city, timestamp, data

    def _read_cache(self, city: str) -> Optional[HistoricalData]:
        try:
            raw = self.store.get(self.cache_key)
        except Exception as exc:  # backend outage degrades to a miss
            logger.warning("Historical cache read failed", extra={"error": str(exc)})
            return None
        if raw is None:
            return None

        try:
            cached_city, timestamp, data = self.decode_entry(raw)
        except CacheCorruptError as exc:
            logger.warning("Discarding corrupt historical cache entry", extra={"error": str(exc)})
            return None

        if cached_city != city:
            logger.debug("Historical cache holds another city", extra={"cached_city": cached_city, "city": city})
            return None
        if self._clock() - timestamp >= self.settings.historical_cache_ttl_seconds:
            logger.debug("Historical cache entry expired", extra={"city": city})
            return None
        return data

    def _write_cache(self, city: str, data: HistoricalData) -> None:
        entry = {"city": city, "timestamp": self._clock(), "data": data.model_dump(mode="json")}
        try:
            self.store.set(self.cache_key, json.dumps(entry, ensure_ascii=False))
        except Exception as exc:  # the data is still returned to the caller
            logger.warning("Historical cache write failed", extra={"error": str(exc)})
            return
        logger.info("Historical data cached", extra={"city": city})
