"""Error taxonomy for weather lookups.

Resolution operations raise these so the transport layer can tell a location
that does not exist apart from a provider that is down. A missing UV index is
not represented here: it is defaulted silently.
"""


class WeatherLookupError(RuntimeError):
    """Base class for user-facing weather lookup failures."""


class InvalidInput(WeatherLookupError):
    """The query was empty, too short, or the coordinates were out of range."""


class LocationNotFound(WeatherLookupError):
    """Geocoding returned no candidates for a search or postal lookup."""


class UpstreamUnavailable(WeatherLookupError):
    """An upstream call failed, timed out, returned non-success, or a malformed payload."""
