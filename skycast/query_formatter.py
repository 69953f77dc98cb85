"""Turn a classified query into the string the geocoding endpoints expect."""
from __future__ import annotations

from skycast.input_classifier import FreeText, InputKind, Region, Zipcode

# ISO country code appended to a bare postal code, per region.
COUNTRY_SUFFIX: dict[Region, str] = {
    Region.US: "US",
    Region.UK: "GB",
    Region.CANADA: "CA",
    Region.GENERIC_NUMERIC: "US",
}


def format_postal_query(query: str, region: Region) -> str:
    """
    Append the region's country code unless the caller already supplied one.

    "90210" -> "90210,US", "SW1A 1AA" -> "SW1A 1AA,GB", "90210,MX" unchanged.
    """
    trimmed = query.strip()
    if "," in trimmed:
        return trimmed
    return f"{trimmed},{COUNTRY_SUFFIX[region]}"


def format_query(query: str, kind: InputKind) -> str:
    """Format postal codes; free text passes through unchanged."""
    if isinstance(kind, Zipcode):
        return format_postal_query(query, kind.region)
    if isinstance(kind, FreeText):
        return query
    raise TypeError(f"Unknown input kind: {kind!r}")
