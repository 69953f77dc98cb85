"""Factory helpers for choosing a weather data source at startup."""

from __future__ import annotations

from skycast import config
from skycast.data_sources.base import CallableWeatherDataSource, WeatherDataSource
from skycast.data_sources.openweather_client import OpenWeatherClient, build_session
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "openweather"


def build_data_source(settings: config.Settings | None = None) -> WeatherDataSource:
    """Instantiate the configured weather data source."""
    settings = settings or config.settings
    source = (settings.data_source or DEFAULT_SOURCE_NAME).lower()

    if source == "openweather":
        logger.info("Using OpenWeatherMap data source", extra={"base_url": mask_url(settings.openweather_base_url)})
        session = build_session(
            retries=settings.http_retries,
            backoff_factor=settings.http_backoff_factor,
            geocode_cache_seconds=settings.geocode_cache_seconds,
        )
        client = OpenWeatherClient(
            settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            units=settings.units,
            timeout_s=settings.http_timeout_seconds,
            session=session,
        )
        return CallableWeatherDataSource(
            direct=client.geocode_direct,
            zip=client.geocode_zip,
            reverse=client.geocode_reverse,
            current=client.fetch_current,
            forecast=client.fetch_forecast,
        )

    raise ValueError(f"Unknown weather data source '{source}'")
