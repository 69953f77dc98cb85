"""Merge raw current-conditions and forecast payloads into a WeatherResult."""
from __future__ import annotations

import datetime as dt
import math
from typing import Any, List, Mapping, Optional, Sequence

from skycast.domain import CurrentConditions, ForecastDay, ResolvedLocation, WeatherResult
from skycast.errors import UpstreamUnavailable
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_assembler")

METERS_PER_MILE = 1609.34
FORECAST_DAYS = 5
TODAY_LABEL = "Today"
# OpenWeatherMap does not include UV in /data/2.5/weather; it needs a separate call.
DEFAULT_UV_INDEX = 0


def round_half_up(value: float) -> int:
    """Round halves toward +infinity (21.5 -> 22, -3.5 -> -3) instead of banker's rounding."""
    return int(math.floor(float(value) + 0.5))


def meters_to_miles(meters: Optional[float]) -> Optional[int]:
    """Whole miles, or None when the provider left the distance out."""
    if meters is None:
        return None
    return round_half_up(meters / METERS_PER_MILE)


def _to_iso(moment: dt.datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    utc = moment.astimezone(dt.timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def build_current_conditions(raw_current: Mapping[str, Any], now: dt.datetime) -> CurrentConditions:
    """Map a raw /data/2.5/weather record onto CurrentConditions."""
    try:
        main = raw_current["main"]
        weather = raw_current["weather"][0]
        return CurrentConditions(
            temperature=round_half_up(main["temp"]),
            feels_like=round_half_up(main["feels_like"]),
            description=weather["description"],
            icon=weather["icon"],
            humidity=main["humidity"],
            wind_speed=round_half_up(raw_current["wind"]["speed"]),
            visibility=meters_to_miles(raw_current.get("visibility")),
            uv_index=DEFAULT_UV_INDEX,
            date_time=_to_iso(now),
        )
    except (KeyError, IndexError, TypeError) as exc:
        logger.error("Current conditions payload missing required fields", extra={"error": repr(exc)})
        raise UpstreamUnavailable("Current conditions payload is missing required fields") from exc


def reduce_forecast(
    samples: Sequence[Mapping[str, Any]],
    *,
    utc_offset_seconds: int = 0,
    max_days: int = FORECAST_DAYS,
) -> List[ForecastDay]:
    """
    Collapse 3-hourly samples into one record per local calendar date.

    Dates are taken in first-encounter order and capped at `max_days`. The
    first record is labeled "Today"; the rest use the short weekday name.

    High/low come from the first sample of each date (its own temp_max and
    temp_min), not from the extremes across every sample that day. This is a
    known approximation kept deliberately.
    """
    tz = dt.timezone(dt.timedelta(seconds=utc_offset_seconds))
    days: List[ForecastDay] = []
    seen_dates = set()

    try:
        for sample in samples:
            if len(days) >= max_days:
                break
            moment = dt.datetime.fromtimestamp(int(sample["dt"]), tz=tz)
            local_date = moment.date()
            if local_date in seen_dates:
                continue
            seen_dates.add(local_date)
            weather = sample["weather"][0]
            days.append(
                ForecastDay(
                    date=_to_iso(moment),
                    day_name=TODAY_LABEL if not days else moment.strftime("%a"),
                    temp_high=round_half_up(sample["main"]["temp_max"]),
                    temp_low=round_half_up(sample["main"]["temp_min"]),
                    description=weather["description"],
                    icon=weather["icon"],
                )
            )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("Forecast sample missing required fields", extra={"error": repr(exc)})
        raise UpstreamUnavailable("Forecast payload is missing required fields") from exc

    return days


def forecast_utc_offset(raw_forecast: Mapping[str, Any]) -> int:
    """Seconds east of UTC for the forecast city, 0 when the payload omits it."""
    city = raw_forecast.get("city") or {}
    try:
        return int(city.get("timezone") or 0)
    except (TypeError, ValueError):
        return 0


def assemble(
    lat: float,
    lon: float,
    city: str,
    country: str,
    raw_current: Mapping[str, Any],
    raw_forecast_samples: Sequence[Mapping[str, Any]],
    *,
    utc_offset_seconds: int = 0,
    now: Optional[dt.datetime] = None,
) -> WeatherResult:
    """Build the normalized WeatherResult for a resolved location."""
    now = now or dt.datetime.now(dt.timezone.utc)
    location = ResolvedLocation(city=city, country=country, lat=lat, lon=lon)
    current = build_current_conditions(raw_current, now)
    forecast = reduce_forecast(raw_forecast_samples, utc_offset_seconds=utc_offset_seconds)
    logger.debug(f"Assembled weather for {city}, {country}: {len(forecast)} forecast days")
    return WeatherResult(location=location, current=current, forecast=forecast)


def assemble_from_payloads(
    lat: float,
    lon: float,
    city: str,
    country: str,
    raw_current: Mapping[str, Any],
    raw_forecast: Mapping[str, Any],
    *,
    now: Optional[dt.datetime] = None,
) -> WeatherResult:
    """Assemble straight from a full /data/2.5/forecast payload (uses its `list` and city offset)."""
    samples: Any = raw_forecast.get("list") if isinstance(raw_forecast, Mapping) else None
    if not isinstance(samples, list):
        raise UpstreamUnavailable("Forecast payload has no sample list")
    return assemble(
        lat,
        lon,
        city,
        country,
        raw_current,
        samples,
        utc_offset_seconds=forecast_utc_offset(raw_forecast),
        now=now,
    )
