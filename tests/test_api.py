import datetime as dt
import unittest

from fastapi.testclient import TestClient

from tedder.cache_store import InMemoryKeyValueStore
from tedder.data_sources import CallableWeatherDataSource, SyntheticWeatherDataSource
from tedder.errors import ProviderError
from tedder.historical import HistoricalAveragingEngine
from tedder.main import app as fastapi_app

NOW = dt.datetime(2025, 7, 14, 12, 0)


class TestApi(unittest.TestCase):
    def setUp(self):
        import tedder.api as api_mod
        from tedder.config import settings

        self.api_mod = api_mod
        self.settings = settings
        self._orig_source = api_mod.DATA_SOURCE
        self._orig_engine = api_mod.HISTORICAL_ENGINE
        self._orig_api_key = settings.api_key

        synthetic = SyntheticWeatherDataSource(now=lambda: NOW)
        api_mod.DATA_SOURCE = synthetic
        api_mod.HISTORICAL_ENGINE = HistoricalAveragingEngine(
            synthetic, InMemoryKeyValueStore(), settings=settings, today=NOW.date
        )
        settings.api_key = None
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        self.api_mod.DATA_SOURCE = self._orig_source
        self.api_mod.HISTORICAL_ENGINE = self._orig_engine
        self.settings.api_key = self._orig_api_key

    def test_healthz(self):
        self.assertEqual(self.client.get("/healthz").json(), {"status": "ok"})

    def test_weather_today(self):
        resp = self.client.get("/v1/weather", params={"city": "Ankara", "lat": 39.92, "lon": 32.85})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["city"], "Ankara")
        self.assertEqual(data["view"], "today")
        self.assertEqual(len(data["hourly"]), 168)
        self.assertEqual(data["daily"][0]["day"], "Today")

    def test_weather_weekend(self):
        resp = self.client.get("/v1/weather", params={"city": "Ankara", "lat": 39.92, "lon": 32.85, "view": "weekend"})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["view"], "weekend")
        self.assertLessEqual(len(data["hourly"]), 48)

    def test_weather_rejects_unknown_view(self):
        resp = self.client.get("/v1/weather", params={"city": "Ankara", "view": "fortnight"})
        self.assertEqual(resp.status_code, 422)

    def test_weather_falls_back_when_provider_fails(self):
        def fail(*a, **kw):
            raise ProviderError("open_meteo_forecast", "down", status_code=500)

        synthetic = self.api_mod.DATA_SOURCE
        self.api_mod.DATA_SOURCE = CallableWeatherDataSource(
            forecast=fail,
            geocoding=synthetic.fetch_geocoding,
            archive_daily=synthetic.fetch_archive_daily,
            air_quality=synthetic.fetch_air_quality,
            marine=synthetic.fetch_marine,
            soil=synthetic.fetch_soil,
        )
        resp = self.client.get("/v1/weather", params={"city": "Ankara", "lat": 39.92, "lon": 32.85})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()["daily"]), self.settings.forecast_days)

    def test_lifestyle(self):
        resp = self.client.get("/v1/lifestyle", params={"city": "Ankara", "lat": 39.92, "lon": 32.85})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([i["id"] for i in resp.json()][:3], ["run", "kids", "allergy"])
        self.assertEqual(len(resp.json()), 9)

    def test_historical(self):
        resp = self.client.get("/v1/historical", params={"city": "İstanbul", "lat": 41.01, "lon": 28.98})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(len(data["climatology"]), 366)
        self.assertTrue(data["last_12_months"])

    def test_nearest_hub(self):
        resp = self.client.get("/v1/hubs/nearest", params={"lat": 36.8625, "lon": 31.0556, "capability": "marine"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["hub"]["id"], "antalya")

    def test_nearest_hub_none(self):
        resp = self.client.get("/v1/hubs/nearest", params={"lat": 39.92, "lon": 32.85, "capability": "ski"})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.json())

    def test_marine(self):
        resp = self.client.get("/v1/marine", params={"city": "Bodrum"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["ferry_status"], "normal")
        self.assertIsInstance(resp.json()["beach_score"], int)
        self.assertTrue(resp.json()["narrative"])
        self.assertIsNone(self.client.get("/v1/marine", params={"city": "Ankara"}).json())

    def test_ski(self):
        resp = self.client.get("/v1/ski", params={"city": "Erzurum"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["resort"], "Palandöken")
        self.assertIsNone(self.client.get("/v1/ski", params={"city": "Ankara"}).json())

    def test_traffic(self):
        resp = self.client.get("/v1/traffic", params={"city": "Ankara", "lat": 39.92, "lon": 32.85})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["city"], "Ankara")
        self.assertIn(resp.json()["congestion_level"], {"low", "medium", "high", "severe"})
        self.assertIsNone(self.client.get("/v1/traffic", params={"city": "Konya"}).json())

    def test_fire_risk(self):
        resp = self.client.get("/v1/fire-risk", params={"city": "Antalya", "lat": 36.9, "lon": 30.7})
        self.assertEqual(resp.status_code, 200)
        self.assertIn(resp.json()["fire_index"], range(1, 6))
        self.assertIsNone(self.client.get("/v1/fire-risk", params={"city": "Ankara"}).json())

    def test_agriculture(self):
        resp = self.client.get("/v1/agriculture", params={"lat": 37.87, "lon": 32.48})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["moisture_label"], "normal")

    def test_api_key_required_when_configured(self):
        self.settings.api_key = "s3cret"
        resp = self.client.get("/v1/hubs/nearest", params={"lat": 36.9, "lon": 30.7})
        self.assertEqual(resp.status_code, 401)
        resp = self.client.get("/v1/hubs/nearest", params={"lat": 36.9, "lon": 30.7}, headers={"X-API-Key": "nope"})
        self.assertEqual(resp.status_code, 401)
        resp = self.client.get("/v1/hubs/nearest", params={"lat": 36.9, "lon": 30.7}, headers={"X-API-Key": "s3cret"})
        self.assertEqual(resp.status_code, 200)


if __name__ == "__main__":
    unittest.main()
