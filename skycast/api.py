"""HTTP API for weather lookups and city autocomplete."""

from typing import List

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from .config import settings
from .domain import CitySuggestion, WeatherResult
from .errors import InvalidInput, LocationNotFound, UpstreamUnavailable, WeatherLookupError
from .weather_service import build_resolver
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="skycast/api")

router = APIRouter()
RESOLVER = build_resolver(settings)


class LocationSearchRequest(BaseModel):
    """City name or postal code to look up."""
    query: str = Field(..., min_length=1, max_length=255)


class CoordinatesRequest(BaseModel):
    """Coordinates to look up, typically from browser geolocation."""
    lat: float
    lon: float


class AutocompleteRequest(BaseModel):
    """Partial city name typed so far."""
    query: str = Field(default="", max_length=255)


class AutocompleteResponse(BaseModel):
    """Ranked suggestions, best match first."""
    suggestions: List[CitySuggestion]


def _to_http_error(exc: WeatherLookupError) -> HTTPException:
    """Map lookup errors onto status codes the client renders differently."""
    if isinstance(exc, LocationNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, InvalidInput):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, UpstreamUnavailable):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch weather data")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch weather data")


@router.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


@router.post("/weather/search", response_model=WeatherResult)
def search_weather(req: LocationSearchRequest):
    """Weather for a city name or postal code."""
    try:
        return RESOLVER.resolve_by_search(req.query)
    except WeatherLookupError as exc:
        logger.warning(f"Weather search failed for '{req.query}': {exc}")
        raise _to_http_error(exc) from exc


@router.post("/weather/coordinates", response_model=WeatherResult)
def coordinates_weather(req: CoordinatesRequest):
    """Weather for a lat/lon pair."""
    try:
        return RESOLVER.resolve_by_coordinates(req.lat, req.lon)
    except WeatherLookupError as exc:
        logger.warning(f"Weather lookup failed for ({req.lat}, {req.lon}): {exc}")
        raise _to_http_error(exc) from exc


@router.post("/weather/autocomplete", response_model=AutocompleteResponse, response_model_exclude_none=True)
def autocomplete(req: AutocompleteRequest):
    """City suggestions as the user types. Never fails because of the provider."""
    return AutocompleteResponse(suggestions=RESOLVER.suggest(req.query))
