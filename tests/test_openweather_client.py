import unittest

import requests
import requests_cache

from skycast.data_sources import openweather_client
from skycast.data_sources.openweather_client import OpenWeatherClient
from skycast.errors import UpstreamUnavailable


class DummyResp:
    def __init__(self, payload, status_code=200, invalid_json=False):
        self._payload = payload
        self.status_code = status_code
        self._invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, resp=None, exc=None):
        self.resp = resp
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.resp


def make_client(session):
    return OpenWeatherClient("test-key", base_url="https://owm.test/", timeout_s=3.0, session=session)


class TestOpenWeatherClient(unittest.TestCase):
    def test_geocode_direct_parses_candidates(self):
        payload = [
            {"name": "Paris", "local_names": {"fr": "Paris"}, "lat": 48.85, "lon": 2.35, "country": "FR"},
            {"name": "Paris", "lat": 33.66, "lon": -95.55, "country": "US", "state": "Texas"},
        ]
        session = FakeSession(DummyResp(payload))
        candidates = make_client(session).geocode_direct("Paris", limit=10)

        self.assertEqual([(c.country, c.state) for c in candidates], [("FR", None), ("US", "Texas")])
        call = session.calls[0]
        self.assertEqual(call["url"], "https://owm.test/geo/1.0/direct")
        self.assertEqual(call["params"], {"q": "Paris", "limit": 10, "appid": "test-key"})
        self.assertEqual(call["timeout"], 3.0)

    def test_geocode_direct_skips_malformed_records(self):
        payload = [{"name": "Nowhere"}, {"name": "Lyon", "lat": 45.76, "lon": 4.83, "country": "FR"}]
        candidates = make_client(FakeSession(DummyResp(payload))).geocode_direct("lyon")
        self.assertEqual([c.name for c in candidates], ["Lyon"])

    def test_geocode_direct_rejects_non_list(self):
        with self.assertRaises(UpstreamUnavailable):
            make_client(FakeSession(DummyResp({"cod": 401}))).geocode_direct("lyon")

    def test_geocode_zip(self):
        payload = {"zip": "90210", "name": "Beverly Hills", "lat": 34.09, "lon": -118.41, "country": "US"}
        session = FakeSession(DummyResp(payload))
        location = make_client(session).geocode_zip("90210,US")
        self.assertEqual(location.name, "Beverly Hills")
        self.assertEqual(location.country, "US")
        self.assertEqual(session.calls[0]["params"]["zip"], "90210,US")

    def test_geocode_zip_not_found(self):
        resp = DummyResp({"cod": "404", "message": "not found"}, status_code=404)
        self.assertIsNone(make_client(FakeSession(resp)).geocode_zip("00000,US"))

    def test_geocode_zip_without_name(self):
        payload = {"lat": 1.5, "lon": 2.5, "country": "US"}
        location = make_client(FakeSession(DummyResp(payload))).geocode_zip("12345,US")
        self.assertEqual(location.name, "Unknown Location")

    def test_geocode_reverse(self):
        payload = [{"name": "Manhattan", "lat": 40.71, "lon": -74.0, "country": "US", "state": "New York"}]
        session = FakeSession(DummyResp(payload))
        candidates = make_client(session).geocode_reverse(40.7128, -74.0059)
        self.assertEqual(candidates[0].name, "Manhattan")
        self.assertEqual(session.calls[0]["params"]["limit"], 1)

    def test_weather_calls_request_imperial_units(self):
        session = FakeSession(DummyResp({"main": {}}))
        client = make_client(session)
        client.fetch_current(1.0, 2.0)
        client.fetch_forecast(1.0, 2.0)
        self.assertEqual(session.calls[0]["url"], "https://owm.test/data/2.5/weather")
        self.assertEqual(session.calls[1]["url"], "https://owm.test/data/2.5/forecast")
        self.assertTrue(all(c["params"]["units"] == "imperial" for c in session.calls))

    def test_server_error_is_upstream_unavailable(self):
        resp = DummyResp({"message": "boom"}, status_code=500)
        with self.assertRaises(UpstreamUnavailable):
            make_client(FakeSession(resp)).fetch_current(1.0, 2.0)

    def test_not_found_outside_zip_is_upstream_unavailable(self):
        resp = DummyResp({"message": "nope"}, status_code=404)
        with self.assertRaises(UpstreamUnavailable):
            make_client(FakeSession(resp)).fetch_forecast(1.0, 2.0)

    def test_timeout_is_upstream_unavailable(self):
        session = FakeSession(exc=requests.Timeout("read timed out"))
        with self.assertRaises(UpstreamUnavailable):
            make_client(session).geocode_direct("Paris")

    def test_connection_error_is_upstream_unavailable(self):
        session = FakeSession(exc=requests.ConnectionError("refused"))
        with self.assertRaises(UpstreamUnavailable):
            make_client(session).geocode_reverse(1.0, 2.0)

    def test_invalid_json_is_upstream_unavailable(self):
        session = FakeSession(DummyResp(None, invalid_json=True))
        with self.assertRaises(UpstreamUnavailable):
            make_client(session).fetch_current(1.0, 2.0)


class TestBuildSession(unittest.TestCase):
    def test_build_session_caches_in_memory(self):
        session = openweather_client.build_session(retries=1, backoff_factor=0.1, geocode_cache_seconds=60)
        self.assertIsInstance(session, requests_cache.CachedSession)


if __name__ == "__main__":
    unittest.main()
