import datetime as dt
import unittest

from skycast.errors import UpstreamUnavailable
from skycast.weather_assembler import (
    assemble,
    assemble_from_payloads,
    build_current_conditions,
    forecast_utc_offset,
    reduce_forecast,
    round_half_up,
)

UTC = dt.timezone.utc
NOW = dt.datetime(2024, 1, 1, 8, 30, tzinfo=UTC)


def make_current(**overrides):
    payload = {
        "main": {"temp": 71.6, "feels_like": 70.4, "humidity": 55, "temp_min": 65.0, "temp_max": 75.0},
        "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
        "wind": {"speed": 5.5, "deg": 180},
        "visibility": 16093,
        "name": "Beverly Hills",
    }
    payload.update(overrides)
    return payload


def make_samples(count=40, start=dt.datetime(2024, 1, 1, 6, 0, tzinfo=UTC), step_hours=3):
    samples = []
    for i in range(count):
        moment = start + dt.timedelta(hours=step_hours * i)
        samples.append(
            {
                "dt": int(moment.timestamp()),
                "main": {"temp": 60.0 + i, "temp_min": 50.4 + i, "temp_max": 70.5 + i},
                "weather": [{"description": f"sample {i}", "icon": "02d"}],
            }
        )
    return samples


class TestCurrentConditions(unittest.TestCase):
    def test_rounding_and_unit_conversion(self):
        current = build_current_conditions(make_current(), NOW)
        self.assertEqual(current.temperature, 72)
        self.assertEqual(current.feels_like, 70)
        self.assertEqual(current.wind_speed, 6)
        self.assertEqual(current.humidity, 55)
        self.assertEqual(current.visibility, 10)
        self.assertEqual(current.description, "clear sky")
        self.assertEqual(current.icon, "01d")

    def test_uv_index_defaults_to_zero(self):
        current = build_current_conditions(make_current(), NOW)
        self.assertEqual(current.uv_index, 0)

    def test_date_time_is_assembly_time(self):
        current = build_current_conditions(make_current(), NOW)
        self.assertEqual(current.date_time, "2024-01-01T08:30:00.000Z")

    def test_missing_fields_raise_upstream_unavailable(self):
        payload = make_current()
        del payload["wind"]
        with self.assertRaises(UpstreamUnavailable):
            build_current_conditions(payload, NOW)
        with self.assertRaises(UpstreamUnavailable):
            build_current_conditions(make_current(weather=[]), NOW)

    def test_missing_visibility_is_none(self):
        payload = make_current()
        del payload["visibility"]
        current = build_current_conditions(payload, NOW)
        self.assertIsNone(current.visibility)
        self.assertEqual(current.temperature, 72)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(21.5), 22)
        self.assertEqual(round_half_up(22.5), 23)
        self.assertEqual(round_half_up(-3.5), -3)
        self.assertEqual(round_half_up(-3.6), -4)


class TestForecastReduction(unittest.TestCase):
    def test_forty_samples_over_six_dates_yield_five_days(self):
        days = reduce_forecast(make_samples())
        self.assertEqual(len(days), 5)
        self.assertEqual(days[0].day_name, "Today")
        self.assertEqual([d.day_name for d in days[1:]], ["Tue", "Wed", "Thu", "Fri"])
        dates = [d.date for d in days]
        self.assertEqual(dates, sorted(dates))
        self.assertEqual(len({d[:10] for d in dates}), 5)

    def test_high_low_come_from_first_sample_of_each_date(self):
        days = reduce_forecast(make_samples())
        # day 1 starts at sample 0 (06:00); day 2 starts at sample 6 (00:00 next day)
        self.assertEqual((days[0].temp_high, days[0].temp_low), (71, 50))
        self.assertEqual((days[1].temp_high, days[1].temp_low), (77, 56))
        self.assertEqual(days[1].description, "sample 6")
        self.assertEqual(days[1].date, "2024-01-02T00:00:00.000Z")

    def test_utc_offset_moves_calendar_boundaries(self):
        # UTC midnight (sample 6) is still the previous evening at UTC-5
        days = reduce_forecast(make_samples(count=10), utc_offset_seconds=-5 * 3600)
        self.assertEqual(days[1].description, "sample 8")

    def test_first_entry_is_today_even_on_other_weekday(self):
        start = dt.datetime(2024, 1, 3, 21, 0, tzinfo=UTC)
        days = reduce_forecast(make_samples(count=3, start=start))
        self.assertEqual([d.day_name for d in days], ["Today", "Thu"])

    def test_empty_samples(self):
        self.assertEqual(reduce_forecast([]), [])

    def test_malformed_sample_raises(self):
        samples = make_samples(count=2)
        del samples[1]["main"]
        samples[1]["dt"] += 86400
        with self.assertRaises(UpstreamUnavailable):
            reduce_forecast(samples)


class TestAssemble(unittest.TestCase):
    def test_assemble_shape_and_camel_case(self):
        result = assemble(34.09, -118.41, "Beverly Hills", "US", make_current(), make_samples(), now=NOW)
        self.assertEqual(result.location.city, "Beverly Hills")
        self.assertEqual(result.location.lat, 34.09)
        self.assertEqual(len(result.forecast), 5)

        data = result.model_dump(by_alias=True)
        self.assertEqual(set(data["current"].keys()), {
            "temperature", "feelsLike", "description", "icon", "humidity",
            "windSpeed", "visibility", "uvIndex", "dateTime",
        })
        self.assertEqual(set(data["forecast"][0].keys()), {
            "date", "dayName", "tempHigh", "tempLow", "description", "icon",
        })

    def test_assemble_from_payloads_uses_city_offset(self):
        raw_forecast = {"list": make_samples(count=10), "city": {"name": "Somewhere", "timezone": -18000}}
        result = assemble_from_payloads(1.0, 2.0, "Somewhere", "US", make_current(), raw_forecast, now=NOW)
        self.assertEqual(result.forecast[1].description, "sample 8")

    def test_assemble_from_payloads_requires_list(self):
        with self.assertRaises(UpstreamUnavailable):
            assemble_from_payloads(1.0, 2.0, "X", "US", make_current(), {"cod": "200"}, now=NOW)

    def test_forecast_utc_offset_defaults_to_zero(self):
        self.assertEqual(forecast_utc_offset({}), 0)
        self.assertEqual(forecast_utc_offset({"city": {"timezone": 3600}}), 3600)


if __name__ == "__main__":
    unittest.main()
