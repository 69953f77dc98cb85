"""Domain vocabulary and response schemas for weather lookups.

These models are the stable contract between the resolution engine and any
caller: raw geocoding candidates coming in, ranked suggestions and assembled
weather results going out. Serialized field names are camelCase to match what
the browser client consumes. No interpretation logic lives here.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Base model serializing with camelCase aliases, populated by field name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawLocationCandidate(BaseModel):
    """One record returned by a geocoding call, before ranking."""

    model_config = ConfigDict(extra="ignore")

    name: str
    country: str = ""
    state: Optional[str] = None
    lat: float
    lon: float

    @field_validator("state", mode="before")
    @classmethod
    def blank_state_is_absent(cls, v):
        """Treat an empty state string the same as a missing one."""
        return v or None


class CitySuggestion(_CamelModel):
    """A ranked autocomplete suggestion. Carries no scoring metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str
    country: str
    state: Optional[str] = None
    lat: float
    lon: float


class ResolvedLocation(_CamelModel):
    """Outcome of classification plus upstream lookup."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    city: str
    country: str
    lat: float
    lon: float


class CurrentConditions(_CamelModel):
    """Current conditions in imperial units, rounded to whole numbers."""

    temperature: int
    feels_like: int
    description: str
    icon: str
    humidity: int | float
    wind_speed: int
    visibility: Optional[int] = None  # OpenWeatherMap omits it for some stations
    uv_index: int | float = 0
    date_time: str


class ForecastDay(_CamelModel):
    """One calendar day of the reduced 5-day forecast."""

    date: str
    day_name: str
    temp_high: int
    temp_low: int
    description: str
    icon: str


class WeatherResult(_CamelModel):
    """Location, current conditions and up to five forecast days."""

    location: ResolvedLocation
    current: CurrentConditions
    forecast: List[ForecastDay]
