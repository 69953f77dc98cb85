"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the SkyCast service."""
    model_config = SettingsConfigDict(env_prefix="SKYCAST_", env_file=".env", extra="ignore")

    data_source: str = "openweather"  # options: openweather
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org"
    units: str = "imperial"
    http_timeout_seconds: float = 10.0
    http_retries: int = 3
    http_backoff_factor: float = 0.2
    geocode_cache_seconds: int = 86400
    weather_cache_ttl_seconds: int = 600
    suggestion_fetch_limit: int = 10
    suggestion_limit: int = 5
    min_suggest_query_chars: int = 2
    log_level: str = "INFO"

    @field_validator("openweather_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()

if not settings.openweather_api_key:
    logger.warning("No OpenWeatherMap API key found. Set SKYCAST_OPENWEATHER_API_KEY.")


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_api_key'})}")
