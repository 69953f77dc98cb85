"""Interfaces and helpers for upstream geocoding and weather data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from skycast.domain import RawLocationCandidate


class WeatherDataSource(Protocol):
    """Interface for anything that can geocode places and provide weather payloads."""

    def geocode_direct(self, query: str, limit: int = 1) -> List[RawLocationCandidate]:
        """Return up to `limit` candidates for a place name."""
        ...

    def geocode_zip(self, formatted_zip: str) -> Optional[RawLocationCandidate]:
        """Return the location for a postal code like "90210,US", or None if unknown."""
        ...

    def geocode_reverse(self, lat: float, lon: float, limit: int = 1) -> List[RawLocationCandidate]:
        """Return candidates near a coordinate, best first."""
        ...

    def fetch_current(self, lat: float, lon: float) -> Dict[str, Any]:
        """Return the raw current-conditions record."""
        ...

    def fetch_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        """Return the raw forecast payload (`list` of samples plus `city`)."""
        ...


@dataclass
class CallableWeatherDataSource(WeatherDataSource):
    """Wrap five callables so they can be swapped for different backends or tests."""

    direct: Callable[..., List[RawLocationCandidate]]
    zip: Callable[..., Optional[RawLocationCandidate]]
    reverse: Callable[..., List[RawLocationCandidate]]
    current: Callable[..., Dict[str, Any]]
    forecast: Callable[..., Dict[str, Any]]

    def geocode_direct(self, *args, **kwargs) -> List[RawLocationCandidate]:
        return self.direct(*args, **kwargs)

    def geocode_zip(self, *args, **kwargs) -> Optional[RawLocationCandidate]:
        return self.zip(*args, **kwargs)

    def geocode_reverse(self, *args, **kwargs) -> List[RawLocationCandidate]:
        return self.reverse(*args, **kwargs)

    def fetch_current(self, *args, **kwargs) -> Dict[str, Any]:
        return self.current(*args, **kwargs)

    def fetch_forecast(self, *args, **kwargs) -> Dict[str, Any]:
        return self.forecast(*args, **kwargs)
