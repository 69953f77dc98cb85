"""Classify a raw location query as a postal code (with region) or free text."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Region(str, Enum):
    """Postal code formats we recognize."""
    US = "us"
    UK = "uk"
    CANADA = "canada"
    GENERIC_NUMERIC = "generic_numeric"


@dataclass(frozen=True)
class Zipcode:
    """Input that looks like a postal code from `region`."""
    region: Region


@dataclass(frozen=True)
class FreeText:
    """Input treated as a place name."""


InputKind = Union[Zipcode, FreeText]

# Evaluated in order; first match wins.
POSTAL_PATTERNS: tuple[tuple[Region, re.Pattern], ...] = (
    (Region.US, re.compile(r"^\d{5}(-\d{4})?$")),
    (Region.UK, re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}$", re.IGNORECASE)),
    (Region.CANADA, re.compile(r"^[A-Z]\d[A-Z]\s?\d[A-Z]\d$", re.IGNORECASE)),
    (Region.GENERIC_NUMERIC, re.compile(r"^\d{4,6}$")),
)


def classify(query: str) -> InputKind:
    """Return `Zipcode(region)` for a recognized postal format, else `FreeText()`."""
    trimmed = query.strip()
    for region, pattern in POSTAL_PATTERNS:
        if pattern.match(trimmed):
            return Zipcode(region)
    return FreeText()

