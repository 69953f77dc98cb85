"""TTL cache for assembled weather results.

Entries expire a fixed time after they are written. Expiry is checked on read;
an expired entry is evicted at that point and reported as absent. There is no
background sweep.

Two concurrent misses for the same key may both fetch upstream and both write;
the second write wins. Writes for a key within one TTL window are equivalent,
so this costs an extra upstream call, not correctness.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Protocol

from skycast.domain import WeatherResult
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache/in_memory_weather_cache")

DEFAULT_TTL_SECONDS = 10 * 60
_COORD_QUANTUM = Decimal("0.01")


def search_cache_key(query: str) -> str:
    """Key for a place-name or postal search."""
    return f"search:{query.lower()}"


def _two_places(value: float) -> str:
    # exact binary value, ties away from zero: 40.125 -> "40.13", -74.125 -> "-74.13"
    return str(Decimal(value).quantize(_COORD_QUANTUM, rounding=ROUND_HALF_UP))


def coords_cache_key(lat: float, lon: float) -> str:
    """Key for a coordinate lookup; points within ~0.01° share an entry."""
    return f"coords:{_two_places(lat)},{_two_places(lon)}"


@dataclass(frozen=True)
class CacheEntry:
    """A cached result and the clock reading at which it was written."""
    key: str
    value: WeatherResult
    created_at: float


class WeatherCache(Protocol):
    """Protocol for weather result caches."""

    def get(self, key: str) -> Optional[WeatherResult]:
        """Return the cached result, or None if missing or expired."""

    def put(self, key: str, value: WeatherResult) -> None:
        """Store a result, replacing any existing entry and resetting its age."""


class InMemoryWeatherCache(WeatherCache):
    """Process-local, TTL-aware weather cache with an injectable clock."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        logger.debug(f"Initializing InMemoryWeatherCache (ttl={ttl_seconds}s)")
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.created_at > self.ttl

    def get(self, key: str) -> Optional[WeatherResult]:
        """Return the cached result, evicting it first if it has expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: {key}")
                return None
            if self._expired(entry):
                self._entries.pop(key, None)
                logger.debug(f"Cache entry expired: {key}")
                return None
            logger.debug(f"Cache hit: {key}")
            return entry.value

    def put(self, key: str, value: WeatherResult) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock())

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet read."""
        with self._lock:
            return len(self._entries)
