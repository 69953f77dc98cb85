"""Upstream geocoding and weather data sources."""

from .base import CallableWeatherDataSource, WeatherDataSource
from .factory import build_data_source
from .openweather_client import OpenWeatherClient, build_session

__all__ = [
    "build_data_source",
    "build_session",
    "CallableWeatherDataSource",
    "OpenWeatherClient",
    "WeatherDataSource",
]
