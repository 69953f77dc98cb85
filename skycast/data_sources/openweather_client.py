"""Helpers for geocoding and fetching weather from the OpenWeatherMap APIs.

Endpoints used:
- Geocoding:        /geo/1.0/direct, /geo/1.0/zip, /geo/1.0/reverse
- Current weather:  /data/2.5/weather
- 5 day / 3 hour:   /data/2.5/forecast

Every failure (connection error, timeout, non-2xx status, undecodable body)
surfaces as UpstreamUnavailable. The zip endpoint's 404 is the one exception:
it means "no such postal code" and is returned as None.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
import requests_cache
from pydantic import ValidationError
from requests_cache import DO_NOT_CACHE
from retry_requests import retry

from skycast.domain import RawLocationCandidate
from skycast.errors import UpstreamUnavailable
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="openweather_client")

DEFAULT_BASE_URL = "https://api.openweathermap.org"
UNKNOWN_LOCATION = "Unknown Location"

GEOCODE_DIRECT_PATH = "/geo/1.0/direct"
GEOCODE_ZIP_PATH = "/geo/1.0/zip"
GEOCODE_REVERSE_PATH = "/geo/1.0/reverse"
CURRENT_WEATHER_PATH = "/data/2.5/weather"
FORECAST_PATH = "/data/2.5/forecast"


def build_session(
    *,
    retries: int = 3,
    backoff_factor: float = 0.2,
    geocode_cache_seconds: int = 86400,
) -> requests.Session:
    """
    Build a retrying HTTP session that caches geocoding responses in memory.

    Weather endpoints are never HTTP-cached; freshness of weather results is
    owned by the result cache.
    """
    cache_session = requests_cache.CachedSession(
        "skycast_http_cache",
        backend="memory",
        expire_after=DO_NOT_CACHE,
        urls_expire_after={"*/geo/1.0/*": geocode_cache_seconds},
        ignored_parameters=["appid"],
    )
    return retry(cache_session, retries=retries, backoff_factor=backoff_factor)


class OpenWeatherClient:
    """OpenWeatherMap wrapper implementing the WeatherDataSource protocol."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        units: str = "imperial",
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.units = units
        self.timeout_s = timeout_s
        self.session = session if session is not None else build_session()

    def _get(self, path: str, params: Dict[str, Any], *, allow_not_found: bool = False) -> Any:
        """GET a JSON document, translating every failure into UpstreamUnavailable."""
        url = f"{self.base_url}{path}"
        full_params = {**params, "appid": self.api_key}
        logger.debug(f"GET {mask_url(f'{url}?{urlencode(full_params)}')}")
        try:
            resp = self.session.get(url, params=full_params, timeout=self.timeout_s)
            if allow_not_found and resp.status_code == 404:
                logger.info(f"{path} returned 404", extra={"params": params})
                return None
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            logger.warning(f"OpenWeatherMap request to {path} failed", extra={"error": str(exc)})
            raise UpstreamUnavailable(f"OpenWeatherMap request to {path} failed") from exc
        except ValueError as exc:
            logger.warning(f"OpenWeatherMap returned invalid JSON for {path}", extra={"error": str(exc)})
            raise UpstreamUnavailable(f"OpenWeatherMap returned invalid JSON for {path}") from exc

    @staticmethod
    def _parse_candidates(data: Any, *, context: str) -> List[RawLocationCandidate]:
        """Validate a geocoding array, skipping malformed entries."""
        if not isinstance(data, list):
            raise UpstreamUnavailable(f"Unexpected {context} payload shape")
        out: List[RawLocationCandidate] = []
        for item in data:
            try:
                out.append(RawLocationCandidate.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed geocoding record", extra={"context": context, "error": str(exc)})
        return out

    def geocode_direct(self, query: str, limit: int = 1) -> List[RawLocationCandidate]:
        data = self._get(GEOCODE_DIRECT_PATH, {"q": query, "limit": limit})
        return self._parse_candidates(data, context="geocode_direct")

    def geocode_zip(self, formatted_zip: str) -> Optional[RawLocationCandidate]:
        """Resolve "90210,US"-style input. Returns None when the code is unknown."""
        data = self._get(GEOCODE_ZIP_PATH, {"zip": formatted_zip}, allow_not_found=True)
        if not isinstance(data, dict) or data.get("lat") is None or data.get("lon") is None:
            return None
        return RawLocationCandidate(
            name=data.get("name") or UNKNOWN_LOCATION,
            country=data.get("country") or "",
            lat=float(data["lat"]),
            lon=float(data["lon"]),
        )

    def geocode_reverse(self, lat: float, lon: float, limit: int = 1) -> List[RawLocationCandidate]:
        data = self._get(GEOCODE_REVERSE_PATH, {"lat": lat, "lon": lon, "limit": limit})
        return self._parse_candidates(data, context="geocode_reverse")

    def fetch_current(self, lat: float, lon: float) -> Dict[str, Any]:
        """Retrieve current conditions for a lat/lon."""
        return self._get(CURRENT_WEATHER_PATH, {"lat": lat, "lon": lon, "units": self.units})

    def fetch_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        """Retrieve the 5-day forecast in 3-hour steps."""
        return self._get(FORECAST_PATH, {"lat": lat, "lon": lon, "units": self.units})
