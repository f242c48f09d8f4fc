"""Canonical weather vocabulary and immutable schemas.

This module is the contract between the provider-facing normalizers and every
consumer (projections, lifestyle scoring, the HTTP surface). Models are frozen:
a derived view such as "tomorrow" is always a new value built with
``model_copy(update=...)``. No interpretation logic lives here.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _FrozenModel(BaseModel):
    """Base model: immutable and strict about unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class IconKey(str, Enum):
    """Closed set of condition identifiers consumed by display code."""
    SUNNY = "sunny"
    MOON = "moon"
    CLOUDY = "cloudy"
    CLOUDY_NIGHT = "cloudy-night"
    OVERCAST = "overcast"
    RAIN = "rain"
    DRIZZLE = "drizzle"
    FREEZING_RAIN = "freezing-rain"
    SNOW = "snow"
    SLEET = "sleet"
    HAIL = "hail"
    STORM = "storm"
    FOG = "fog"


class ForecastView(str, Enum):
    """Which time window a WeatherModel describes."""
    TODAY = "today"
    TOMORROW = "tomorrow"
    WEEKEND = "weekend"


class LifestyleStatus(str, Enum):
    """Three-level verdict for a lifestyle advisory."""
    GOOD = "good"
    MODERATE = "moderate"
    BAD = "bad"


class Capability(str, Enum):
    """Feature a regional hub can serve to surrounding towns."""
    MARINE = "marine"
    TRAFFIC = "traffic"
    SKI = "ski"


class Coordinate(_FrozenModel):
    """Latitude/longitude pair in decimal degrees."""
    lat: float
    lon: float


class GeoMatch(_FrozenModel):
    """Best geocoding hit for a free-text place name."""
    name: str
    lat: float
    lon: float


class HourEntry(_FrozenModel):
    """One hour of the rolling forecast buffer."""
    timestamp: datetime  # naive, location-local
    time: str  # "HH:MM"
    temperature: float
    feels_like: float
    wind_speed: float
    precipitation_probability: float = Field(ge=0, le=100)
    icon: IconKey
    is_day: bool


class DayEntry(_FrozenModel):
    """One calendar day of the daily forecast."""
    day: str  # "Today", "Tomorrow", or "Mon".."Sun"
    date_label: str  # "5 Dec"
    calendar_date: date
    weather_code: int
    high: int
    low: int
    feels_like_max: int
    uv_index_max: int
    precipitation_probability_max: float
    wind_max: int
    humidity: int = 50
    icon: IconKey
    condition: str


class WeatherModel(_FrozenModel):
    """Canonical forecast for one place.

    ``hourly`` is a contiguous, time-ordered run of hours starting at "now";
    ``daily[0]`` is the current calendar day.
    """
    city: str
    coord: Coordinate
    view: ForecastView = ForecastView.TODAY
    current_temp: float
    feels_like: float
    humidity: float
    pressure: float
    wind_speed: float
    wind_direction: float
    uv_index: float
    aqi: int
    cloud_cover: float
    precipitation_volume: float
    precipitation_probability: float
    condition: str
    icon: IconKey
    smart_phrase: str
    high: float
    low: float
    sunrise: str
    sunset: str
    hourly: List[HourEntry] = Field(default_factory=list)
    daily: List[DayEntry] = Field(default_factory=list)


class HistoricalDayPoint(_FrozenModel):
    """Observed daily extremes for one date of the trailing window."""
    date: str  # YYYY-MM-DD
    high: int
    low: int
    precipitation: float


class ClimatologyPoint(_FrozenModel):
    """Multi-year average for one calendar day."""
    day_of_year: int = Field(ge=1, le=366)
    avg_high: int
    avg_low: int
    avg_precipitation: float


class HistoricalData(_FrozenModel):
    """Trailing ~12 months of observations plus the 366-day climatology."""
    last_12_months: List[HistoricalDayPoint] = Field(default_factory=list)
    climatology: List[ClimatologyPoint] = Field(default_factory=list)


class LifestyleIndex(_FrozenModel):
    """Categorical advisory for one outdoor activity."""
    id: str
    name: str
    status: LifestyleStatus
    label: str
    icon: str


class Hub(_FrozenModel):
    """Regional data hub serving nearby towns within ``radius_km``."""
    id: str
    name: str
    coord: Coordinate
    capabilities: FrozenSet[Capability]
    radius_km: float


class HubMatch(_FrozenModel):
    """Resolved hub and its great-circle distance from the query point."""
    hub: Hub
    distance_km: float


class FerryStatus(str, Enum):
    """Ferry operation status derived from wave height."""
    NORMAL = "normal"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class SwimSafety(str, Enum):
    """Swimming safety derived from waves and sea temperature."""
    SAFE = "safe"
    CAUTION = "caution"
    DANGEROUS = "dangerous"


class MarineData(_FrozenModel):
    """Sea state near a coastal city."""
    city: str
    coord: Coordinate
    sea_temp: float
    wave_height: float
    wave_period: int
    wave_direction: float
    swell_height: float
    wind_wave_height: float
    ferry_status: FerryStatus
    swim_safety: SwimSafety
    fetched_at: datetime
    narrative: str = ""
    beach_score: Optional[int] = None


class MoistureLabel(str, Enum):
    """Topsoil moisture band."""
    DRY = "dry"
    NORMAL = "normal"
    WET = "wet"


class IrrigationNeed(str, Enum):
    """Irrigation demand band from reference evapotranspiration."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AgricultureData(_FrozenModel):
    """Soil conditions and frost outlook for a coordinate."""
    coord: Coordinate
    soil_temp: float
    soil_moisture: float
    moisture_label: MoistureLabel
    evapotranspiration: float
    irrigation_need: IrrigationNeed
    frost_risk: bool
    frost_nights: int
    planting_advice: str
    fetched_at: datetime


class SnowCondition(str, Enum):
    """Piste surface estimated from summit temperature and snow."""
    POWDER = "powder"
    PACKED = "packed"
    ICY = "icy"
    SLUSHY = "slushy"
    CLOSED = "closed"


class AvalancheRisk(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    CONSIDERABLE = "considerable"
    HIGH = "high"


class Visibility(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"


class SkiResort(_FrozenModel):
    """Static resort metadata; the season may wrap the new year (Nov-Apr)."""
    key: str
    name: str
    city: str
    coord: Coordinate
    base_elevation: int  # metres
    summit_elevation: int
    total_lifts: int
    season_start: int  # month, 1-12
    season_end: int


class SkiData(_FrozenModel):
    """Ski conditions derived from the resort's forecast."""
    resort: str
    city: str
    snow_depth: int  # cm
    fresh_snow_24h: int
    base_temp: float
    summit_temp: int
    lifts_open: int
    lifts_total: int
    avalanche_risk: AvalancheRisk
    snow_condition: SnowCondition
    visibility: Visibility
    narrative: str
    fetched_at: datetime


class CongestionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


class RouteStatus(str, Enum):
    NORMAL = "normal"
    SLOW = "slow"
    CONGESTED = "congested"


class TrafficRoute(_FrozenModel):
    name: str
    delay_minutes: int
    status: RouteStatus


class TrafficData(_FrozenModel):
    """Estimated road congestion for a metro city."""
    city: str
    congestion_level: CongestionLevel
    congestion_percent: int = Field(ge=0, le=100)
    main_routes: List[TrafficRoute] = Field(default_factory=list)
    average_speed: int  # km/h
    narrative: str
    fetched_at: datetime


class FireRiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"
    EXTREME = "extreme"


class FireRiskData(_FrozenModel):
    """Fire weather index on a 1-5 scale for forest-heavy provinces."""
    city: str
    fire_index: int = Field(ge=1, le=5)
    risk_level: FireRiskLevel
    humidity: int
    wind_speed: int
    precip_last_7_days: float
    drought_indicator: bool
    is_fire_season: bool
    advice: str
    fetched_at: datetime
