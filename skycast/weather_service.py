"""Resolve location queries into cached weather results and rank city suggestions."""
from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from skycast import config
from skycast.cache import InMemoryWeatherCache, WeatherCache, coords_cache_key, search_cache_key
from skycast.data_sources import WeatherDataSource, build_data_source
from skycast.data_sources.openweather_client import UNKNOWN_LOCATION
from skycast.domain import CitySuggestion, RawLocationCandidate, WeatherResult
from skycast.errors import InvalidInput, LocationNotFound, UpstreamUnavailable
from skycast.input_classifier import Zipcode, classify
from skycast.query_formatter import format_query
from skycast.suggestion_ranker import MAX_SUGGESTIONS, rank
from skycast.weather_assembler import assemble_from_payloads
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_service")

MIN_SUGGEST_QUERY_CHARS = 2
SUGGESTION_FETCH_LIMIT = 10


class WeatherResolver:
    """
    Entry point for the three lookups the API exposes.

    - resolve_by_search: place name or postal code -> WeatherResult
    - resolve_by_coordinates: lat/lon -> WeatherResult
    - suggest: partial place name -> ranked CitySuggestion list

    The cache and data source are injected so tests can supply fakes and a
    fake clock.
    """

    def __init__(
        self,
        data_source: WeatherDataSource,
        cache: WeatherCache,
        *,
        suggestion_fetch_limit: int = SUGGESTION_FETCH_LIMIT,
        suggestion_limit: int = MAX_SUGGESTIONS,
        min_suggest_query_chars: int = MIN_SUGGEST_QUERY_CHARS,
        now: Callable[[], dt.datetime] = lambda: dt.datetime.now(dt.timezone.utc),
    ) -> None:
        self.data_source = data_source
        self.cache = cache
        self.suggestion_fetch_limit = suggestion_fetch_limit
        self.suggestion_limit = suggestion_limit
        self.min_suggest_query_chars = min_suggest_query_chars
        self._now = now

    # -- geocoding -------------------------------------------------------

    def _geocode(self, query: str) -> RawLocationCandidate:
        """Classify the query and resolve it to a single location."""
        kind = classify(query)
        formatted = format_query(query, kind)
        if isinstance(kind, Zipcode):
            logger.debug(f"Treating '{query}' as {kind.region.value} postal code -> '{formatted}'")
            location = self.data_source.geocode_zip(formatted)
            if location is None:
                raise LocationNotFound("Zipcode not found")
            return location

        candidates = self.data_source.geocode_direct(formatted, limit=1)
        if not candidates:
            raise LocationNotFound("Location not found")
        return candidates[0]

    def _reverse_geocode(self, lat: float, lon: float) -> Tuple[str, str]:
        candidates = self.data_source.geocode_reverse(lat, lon, limit=1)
        if not candidates:
            return UNKNOWN_LOCATION, ""
        best = candidates[0]
        return best.name or UNKNOWN_LOCATION, best.country or ""

    # -- weather ---------------------------------------------------------

    def _fetch_weather(self, lat: float, lon: float, city: str, country: str) -> WeatherResult:
        """Fetch current conditions and forecast concurrently, then assemble."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            current_future = pool.submit(self.data_source.fetch_current, lat, lon)
            forecast_future = pool.submit(self.data_source.fetch_forecast, lat, lon)
            # allow UpstreamUnavailable to propagate from either call
            raw_current = current_future.result()
            raw_forecast = forecast_future.result()

        if not isinstance(raw_current, dict) or not isinstance(raw_forecast, dict):
            raise UpstreamUnavailable("Weather payload was not a JSON object")
        return assemble_from_payloads(lat, lon, city, country, raw_current, raw_forecast, now=self._now())

    # -- public operations -----------------------------------------------

    def resolve_by_search(self, query: str) -> WeatherResult:
        """Resolve a city name or postal code. Raises LocationNotFound / UpstreamUnavailable."""
        if not query or not query.strip():
            raise InvalidInput("Please enter a location")

        key = search_cache_key(query)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        location = self._geocode(query)
        logger.info(f"Resolved '{query}' to {location.name}, {location.country} ({location.lat}, {location.lon})")
        result = self._fetch_weather(location.lat, location.lon, location.name, location.country)
        self.cache.put(key, result)
        return result

    def resolve_by_coordinates(self, lat: float, lon: float) -> WeatherResult:
        """Resolve a coordinate pair. Raises UpstreamUnavailable, or InvalidInput if out of range."""
        if not -90.0 <= lat <= 90.0:
            raise InvalidInput("Invalid latitude. Must be between -90 and 90.")
        if not -180.0 <= lon <= 180.0:
            raise InvalidInput("Invalid longitude. Must be between -180 and 180.")

        key = coords_cache_key(lat, lon)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        city, country = self._reverse_geocode(lat, lon)
        logger.info(f"Reverse geocoded ({lat}, {lon}) to {city}, {country or '-'}")
        result = self._fetch_weather(lat, lon, city, country)
        self.cache.put(key, result)
        return result

    def suggest(self, query: str) -> List[CitySuggestion]:
        """Ranked suggestions for a partial query. Upstream failures yield an empty list."""
        if len(query) < self.min_suggest_query_chars:
            return []
        try:
            candidates = self.data_source.geocode_direct(query, limit=self.suggestion_fetch_limit)
        except UpstreamUnavailable as exc:
            logger.warning("Autocomplete lookup failed; returning no suggestions", extra={"error": str(exc)})
            return []
        return rank(candidates, query, limit=self.suggestion_limit)


def build_resolver(
    settings: config.Settings | None = None,
    data_source: Optional[WeatherDataSource] = None,
) -> WeatherResolver:
    """Construct a resolver from configuration with an in-memory result cache."""
    settings = settings or config.settings
    return WeatherResolver(
        data_source or build_data_source(settings),
        InMemoryWeatherCache(ttl_seconds=settings.weather_cache_ttl_seconds),
        suggestion_fetch_limit=settings.suggestion_fetch_limit,
        suggestion_limit=settings.suggestion_limit,
        min_suggest_query_chars=settings.min_suggest_query_chars,
    )
