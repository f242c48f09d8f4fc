import datetime as dt
import unittest

from tedder import forecast_service
from tedder.config import Settings
from tedder.data_sources import CallableWeatherDataSource, SyntheticWeatherDataSource, open_meteo_client
from tedder.domain import ForecastView, GeoMatch, IconKey
from tedder.errors import ProviderError
from tedder.forecast_service import (
    PHRASE_COLD,
    PHRASE_HEAT,
    PHRASE_NEUTRAL,
    PHRASE_UMBRELLA,
    PHRASE_UV,
    PHRASE_WIND,
    generate_smart_phrase,
    get_weather,
    locate_now_index,
    normalize_forecast,
    resolve_location,
)


def make_forecast_payload(start=dt.datetime(2025, 12, 5, 0, 0), hours=240, days=15, current_time="2025-12-05T10:30"):
    """Provider-shaped payload; Dec 5 2025 is a Friday."""
    times = [(start + dt.timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)]
    day0 = start.date()
    dates = [(day0 + dt.timedelta(days=i)).isoformat() for i in range(days)]
    return {
        "latitude": 39.92,
        "longitude": 32.85,
        "current": {
            "time": current_time,
            "temperature_2m": 12.4,
            "relative_humidity_2m": 61,
            "apparent_temperature": 10.9,
            "is_day": 1,
            "precipitation": 0.0,
            "weather_code": 2,
            "surface_pressure": 1009.5,
            "wind_speed_10m": 14.0,
            "wind_direction_10m": 200,
            "cloud_cover": 40,
        },
        "hourly": {
            "time": times,
            "temperature_2m": [10.0 + (i % 24) / 4 for i in range(hours)],
            "apparent_temperature": [9.0 + (i % 24) / 4 for i in range(hours)],
            "precipitation_probability": [60 if i == 12 else 5 for i in range(hours)],
            "weather_code": [0] * hours,
            "wind_speed_10m": [12.4] * hours,
            "uv_index": [3.0] * hours,
            "is_day": [1 if 7 <= (i % 24) < 17 else 0 for i in range(hours)],
        },
        "daily": {
            "time": dates,
            "weather_code": [3] * days,
            "temperature_2m_max": [14.6 + i for i in range(days)],
            "temperature_2m_min": [4.4 + i for i in range(days)],
            "sunrise": [f"{d}T07:12" for d in dates],
            "sunset": [f"{d}T16:41" for d in dates],
            "precipitation_probability_max": [20] * days,
            "wind_speed_10m_max": [22.0] * days,
            "apparent_temperature_max": [13.0 + i for i in range(days)],
            "uv_index_max": [2.6] * days,
        },
    }


def make_source(payload=None, forecast_exc=None, aqi=55, geocode=None):
    def forecast(lat, lon, **kwargs):
        if forecast_exc is not None:
            raise forecast_exc
        return payload

    return CallableWeatherDataSource(
        forecast=forecast,
        geocoding=lambda name, **kw: geocode,
        archive_daily=lambda *a, **kw: {},
        air_quality=lambda *a, **kw: aqi,
        marine=lambda *a, **kw: {},
        soil=lambda *a, **kw: {},
        name="fake",
    )


def fixed_synthetic():
    return SyntheticWeatherDataSource(seed=7, now=lambda: dt.datetime(2025, 12, 5, 10, 30))


class TestNormalizeForecast(unittest.TestCase):
    def setUp(self):
        self.model = normalize_forecast("Ankara", make_forecast_payload(), aqi=55)

    def test_hourly_starts_at_first_slot_after_now(self):
        self.assertEqual(self.model.hourly[0].time, "11:00")
        self.assertEqual(self.model.hourly[0].timestamp, dt.datetime(2025, 12, 5, 11, 0))

    def test_hourly_capped_at_one_week(self):
        self.assertEqual(len(self.model.hourly), 168)

    def test_hourly_is_contiguous(self):
        for prev, cur in zip(self.model.hourly, self.model.hourly[1:]):
            self.assertEqual(cur.timestamp - prev.timestamp, dt.timedelta(hours=1))

    def test_hourly_icons_use_probability(self):
        # hour index 12 in the raw buffer is 12:00 with a 60% chance on a clear code
        self.assertEqual(self.model.hourly[1].icon, IconKey.RAIN)
        self.assertEqual(self.model.hourly[0].icon, IconKey.SUNNY)

    def test_daily_labels(self):
        labels = [d.day for d in self.model.daily[:4]]
        self.assertEqual(labels, ["Today", "Tomorrow", "Sun", "Mon"])
        self.assertEqual(self.model.daily[0].date_label, "5 Dec")
        self.assertEqual(self.model.daily[0].calendar_date, dt.date(2025, 12, 5))
        self.assertEqual(len(self.model.daily), 15)

    def test_daily_rounding_is_half_up(self):
        self.assertEqual(self.model.daily[0].high, 15)
        self.assertEqual(self.model.daily[0].low, 4)
        self.assertEqual(self.model.daily[0].uv_index_max, 3)

    def test_current_scalars(self):
        m = self.model
        self.assertEqual(m.view, ForecastView.TODAY)
        self.assertEqual(m.current_temp, 12.4)
        self.assertEqual(m.pressure, 1009.5)
        self.assertEqual(m.aqi, 55)
        self.assertEqual(m.sunrise, "07:12")
        self.assertEqual(m.sunset, "16:41")
        self.assertEqual(m.condition, "Partly cloudy")
        self.assertEqual(m.coord.lat, 39.92)

    def test_missing_fields_get_local_defaults(self):
        payload = make_forecast_payload()
        del payload["current"]["surface_pressure"]
        del payload["daily"]["temperature_2m_min"]
        del payload["daily"]["sunrise"]
        model = normalize_forecast("Ankara", payload, aqi=40)
        self.assertEqual(model.pressure, 1013.0)
        self.assertAlmostEqual(model.low, 12.4 - 5)
        self.assertEqual(model.sunrise, "--:--")

    def test_now_after_every_slot_uses_first_index(self):
        self.assertEqual(locate_now_index(["2025-12-05T00:00", "2025-12-05T01:00"], "2025-12-06T00:00"), 0)


class TestSmartPhrase(unittest.TestCase):
    def test_rules_in_order(self):
        self.assertEqual(generate_smart_phrase(35, 61, 40, 9), PHRASE_UMBRELLA)
        self.assertEqual(generate_smart_phrase(35, 0, 40, 9), PHRASE_WIND)
        self.assertEqual(generate_smart_phrase(35, 0, 10, 9), PHRASE_HEAT)
        self.assertEqual(generate_smart_phrase(25, 0, 10, 9), PHRASE_UV)
        self.assertEqual(generate_smart_phrase(2, 0, 10, 1), PHRASE_COLD)
        self.assertEqual(generate_smart_phrase(22, 0, 10, 1), PHRASE_NEUTRAL)


class TestResolveLocation(unittest.TestCase):
    def test_explicit_coordinates_win(self):
        ds = make_source(geocode=GeoMatch(name="X", lat=1, lon=1))
        self.assertEqual(
            resolve_location("Kaş", 36.2, 29.6, data_source=ds, settings=Settings()), ("Kaş", 36.2, 29.6)
        )

    def test_preloaded_city_skips_geocoding(self):
        def boom(name, **kw):
            raise AssertionError("geocoding should not be called")

        ds = make_source()
        ds.geocoding = boom
        settings = Settings(preloaded_city="Bodrum", preloaded_latitude=37.03, preloaded_longitude=27.43)
        self.assertEqual(
            resolve_location("bodrum", None, None, data_source=ds, settings=settings), ("Bodrum", 37.03, 27.43)
        )

    def test_geocoded(self):
        ds = make_source(geocode=GeoMatch(name="İzmir", lat=38.42, lon=27.14))
        self.assertEqual(resolve_location("izmir", None, None, data_source=ds, settings=Settings()), ("İzmir", 38.42, 27.14))

    def test_geocoding_failure_uses_defaults(self):
        ds = make_source()

        def fail(name, **kw):
            raise ProviderError("open_meteo_geocoding", "down")

        ds.geocoding = fail
        settings = Settings()
        name, lat, lon = resolve_location("Nowhere", None, None, data_source=ds, settings=settings)
        self.assertEqual((name, lat, lon), ("Nowhere", settings.default_latitude, settings.default_longitude))


class TestGetWeather(unittest.TestCase):
    def test_live_payload(self):
        model = get_weather(
            "Ankara", latitude=39.92, longitude=32.85, data_source=make_source(make_forecast_payload()),
            settings=Settings(),
        )
        self.assertEqual(model.aqi, 55)
        self.assertEqual(model.current_temp, 12.4)

    def test_air_quality_failure_uses_default(self):
        ds = make_source(make_forecast_payload())

        def fail(*a, **kw):
            raise ProviderError("open_meteo_air", "down")

        ds.air_quality = fail
        model = get_weather("Ankara", latitude=39.92, longitude=32.85, data_source=ds, settings=Settings())
        self.assertEqual(model.aqi, 40)

    def test_non_numeric_air_quality_keeps_live_forecast(self):
        class AirSession:
            def get(self, url, params=None, timeout=None):
                return AirResp()

        class AirResp:
            status_code = 200

            def raise_for_status(self):
                pass

            def json(self):
                return {"current": {"us_aqi": "n/a"}}

        ds = make_source(make_forecast_payload())
        ds.air_quality = open_meteo_client.fetch_air_quality
        orig_session = open_meteo_client.session
        open_meteo_client.session = AirSession()
        try:
            model = get_weather(
                "Ankara", latitude=39.92, longitude=32.85, data_source=ds, fallback_source=fixed_synthetic(),
                settings=Settings(),
            )
        finally:
            open_meteo_client.session = orig_session
        self.assertEqual(model.current_temp, 12.4)
        self.assertEqual(model.hourly[0].timestamp, dt.datetime(2025, 12, 5, 11, 0))
        self.assertEqual(model.aqi, 40)

    def test_air_quality_garbage_from_source_uses_default(self):
        ds = make_source(make_forecast_payload(), aqi="unknown")
        model = get_weather("Ankara", latitude=39.92, longitude=32.85, data_source=ds, settings=Settings())
        self.assertEqual(model.current_temp, 12.4)
        self.assertEqual(model.aqi, 40)

    def test_provider_failure_falls_back_to_synthetic(self):
        ds = make_source(forecast_exc=ProviderError("open_meteo_forecast", "down", status_code=500))
        model = get_weather(
            "Ankara", latitude=39.92, longitude=32.85, data_source=ds, fallback_source=fixed_synthetic(),
            settings=Settings(),
        )
        self.assertEqual(model.city, "Ankara")
        self.assertEqual(len(model.hourly), 168)
        self.assertEqual(len(model.daily), 15)
        self.assertEqual(model.daily[0].day, "Today")
        self.assertEqual(model.hourly[0].timestamp, dt.datetime(2025, 12, 5, 10, 0))
        self.assertEqual(model.aqi, 40)

    def test_malformed_payload_falls_back_to_synthetic(self):
        payload = make_forecast_payload()
        del payload["current"]
        ds = make_source(payload)
        model = get_weather(
            "Ankara", latitude=39.92, longitude=32.85, data_source=ds, fallback_source=fixed_synthetic(),
            settings=Settings(),
        )
        self.assertEqual(len(model.daily), 15)

    def test_module_logger_is_tagged(self):
        self.assertEqual(forecast_service.logger.extra["tag"], "forecast_service")


if __name__ == "__main__":
    unittest.main()
