import datetime as dt
import unittest

from tedder.domain import ForecastView
from tedder.forecast_service import normalize_forecast
from tedder.projections import days_until_saturday, hours_for_days, project, to_tomorrow, to_weekend
from tedder.numeric import round_int

from test_forecast_service import make_forecast_payload


def _model(start=dt.datetime(2025, 12, 5), current_time="2025-12-05T10:30"):
    return normalize_forecast("Ankara", make_forecast_payload(start=start, current_time=current_time), aqi=40)


class TestDaysUntilSaturday(unittest.TestCase):
    def test_offsets(self):
        self.assertEqual(days_until_saturday(dt.date(2025, 12, 5)), 1)  # Friday
        self.assertEqual(days_until_saturday(dt.date(2025, 12, 6)), 0)  # Saturday
        self.assertEqual(days_until_saturday(dt.date(2025, 12, 7)), 6)  # Sunday
        self.assertEqual(days_until_saturday(dt.date(2025, 12, 8)), 5)  # Monday


class TestTomorrow(unittest.TestCase):
    def setUp(self):
        self.model = _model()
        self.tomorrow = to_tomorrow(self.model)

    def test_hourly_is_exactly_next_calendar_day(self):
        hours = self.tomorrow.hourly
        self.assertLessEqual(len(hours), 24)
        self.assertEqual(len(hours), 24)
        self.assertTrue(all(h.timestamp.date() == dt.date(2025, 12, 6) for h in hours))
        self.assertEqual(hours[0].time, "00:00")

    def test_scalars_come_from_second_day(self):
        day = self.model.daily[1]
        self.assertEqual(self.tomorrow.view, ForecastView.TOMORROW)
        self.assertEqual(self.tomorrow.high, float(day.high))
        self.assertEqual(self.tomorrow.low, float(day.low))
        self.assertEqual(self.tomorrow.current_temp, float(day.high))
        self.assertEqual(self.tomorrow.precipitation_probability, day.precipitation_probability_max)
        self.assertEqual(self.tomorrow.icon, day.icon)

    def test_passthrough_and_source_untouched(self):
        self.assertEqual(self.tomorrow.city, self.model.city)
        self.assertEqual(self.tomorrow.sunrise, self.model.sunrise)
        self.assertEqual(self.tomorrow.daily, self.model.daily)
        self.assertEqual(self.model.view, ForecastView.TODAY)
        self.assertEqual(len(self.model.hourly), 168)

    def test_short_buffer_falls_back_to_fixed_offset(self):
        short = self.model.model_copy(update={"hourly": self.model.hourly[:5]})
        self.assertEqual(to_tomorrow(short).hourly, [])

    def test_single_day_returns_model(self):
        single = self.model.model_copy(update={"daily": self.model.daily[:1]})
        self.assertIs(to_tomorrow(single), single)


class TestWeekend(unittest.TestCase):
    def test_friday_uses_saturday_and_sunday(self):
        model = _model()
        weekend = to_weekend(model)
        sat, sun = model.daily[1], model.daily[2]

        self.assertEqual(weekend.view, ForecastView.WEEKEND)
        self.assertEqual([d.calendar_date for d in weekend.daily], [dt.date(2025, 12, 6), dt.date(2025, 12, 7)])
        self.assertEqual(weekend.high, float(round_int((sat.high + sun.high) / 2)))
        # 16 and 17 average to 16.5, which rounds up
        self.assertEqual(weekend.high, 17.0)
        self.assertEqual(weekend.icon, sat.icon)
        self.assertEqual(weekend.condition, sat.condition)

    def test_hourly_covers_weekend_only(self):
        weekend = to_weekend(_model())
        self.assertEqual(len(weekend.hourly), 48)
        self.assertEqual(weekend.hourly[0].timestamp, dt.datetime(2025, 12, 6, 0, 0))
        self.assertTrue(all(h.timestamp.weekday() in (5, 6) for h in weekend.hourly))

    def test_saturday_starts_at_now(self):
        model = _model(start=dt.datetime(2025, 12, 6), current_time="2025-12-06T10:30")
        weekend = to_weekend(model)
        self.assertEqual(weekend.daily[0].calendar_date, dt.date(2025, 12, 6))
        self.assertEqual(weekend.hourly[0].timestamp, dt.datetime(2025, 12, 6, 11, 0))
        self.assertLessEqual(len(weekend.hourly), 48)

    def test_sunday_looks_ahead_to_next_weekend(self):
        model = _model(start=dt.datetime(2025, 12, 7), current_time="2025-12-07T10:30")
        weekend = to_weekend(model)
        self.assertEqual([d.calendar_date for d in weekend.daily], [dt.date(2025, 12, 13), dt.date(2025, 12, 14)])
        self.assertLessEqual(len(weekend.hourly), 48)

    def test_max_probability(self):
        model = _model()
        days = list(model.daily)
        days[2] = days[2].model_copy(update={"precipitation_probability_max": 70})
        weekend = to_weekend(model.model_copy(update={"daily": days}))
        self.assertEqual(weekend.precipitation_probability, 70)


class TestHoursForDays(unittest.TestCase):
    def test_limit_and_range(self):
        model = _model()
        self.assertEqual(len(hours_for_days(model.hourly, dt.date(2025, 12, 6), 2)), 48)
        self.assertEqual(hours_for_days(model.hourly, dt.date(2026, 1, 1)), [])


class TestProject(unittest.TestCase):
    def test_dispatch(self):
        model = _model()
        self.assertIs(project(model, "today"), model)
        self.assertEqual(project(model, "tomorrow").view, ForecastView.TOMORROW)
        self.assertEqual(project(model, ForecastView.WEEKEND).view, ForecastView.WEEKEND)


if __name__ == "__main__":
    unittest.main()
