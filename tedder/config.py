"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_url
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the Tedder weather data layer.

    Components take a Settings value in their constructor or keyword
    arguments; the module-level ``settings`` instance is only the default.
    """
    model_config = SettingsConfigDict(env_prefix="TEDDER_", extra="ignore")

    forecast_source: str = "open_meteo"  # options: open_meteo, synthetic
    forecast_days: int = 15
    forecast_hours: int = 168
    request_timeout_seconds: float = 10.0
    http_cache_seconds: int = 600

    default_city: str = "Ankara"
    default_latitude: float = 39.9208
    default_longitude: float = 32.8541
    preloaded_city: str | None = None
    preloaded_latitude: float | None = None
    preloaded_longitude: float | None = None

    default_aqi: int = 40
    air_quality_enabled: bool = True

    historical_cache_backend: str = "memory"  # options: memory, redis
    historical_cache_redis_url: str | None = None
    historical_cache_key: str = "tg_historical_data"
    historical_cache_ttl_seconds: int = 24 * 60 * 60

    api_key: str | None = None

    @field_validator("forecast_source", "historical_cache_backend", mode="after")
    @classmethod
    def lower_case_choice(cls, v: str) -> str:
        """Normalize backend names so env values are case-insensitive."""
        return str(v).strip().lower()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    dumped = settings.model_dump()
    if dumped.get("historical_cache_redis_url"):
        dumped["historical_cache_redis_url"] = mask_url(dumped["historical_cache_redis_url"])
    logger.debug(f"Loaded settings: {dumped}")
