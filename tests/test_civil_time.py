"""Tests for the civil_time module."""

import datetime
import unittest

from waqt.civil_time import (
    ZERO_COUNTDOWN,
    anchor,
    format_clock,
    format_countdown,
    parse_12_hour,
    to_12_hour,
)
from waqt.errors import TimingsFormatError


class TestTo12Hour(unittest.TestCase):
    def test_morning_and_evening(self):
        self.assertEqual(to_12_hour("04:32"), "04:32 AM")
        self.assertEqual(to_12_hour("18:12"), "06:12 PM")

    def test_midnight_and_noon(self):
        self.assertEqual(to_12_hour("00:05"), "12:05 AM")
        self.assertEqual(to_12_hour("12:00"), "12:00 PM")
        self.assertEqual(to_12_hour("23:59"), "11:59 PM")

    def test_strips_zone_suffix(self):
        self.assertEqual(to_12_hour("04:30 (+06)"), "04:30 AM")

    def test_rejects_garbage(self):
        for bad in ("", "25:00", "ab:cd", "12:60", None):
            with self.assertRaises(TimingsFormatError):
                to_12_hour(bad)


class TestParse12Hour(unittest.TestCase):
    def test_midnight_hour_is_zero(self):
        self.assertEqual(parse_12_hour("12:05 AM"), (0, 5))

    def test_noon_hour_stays_twelve(self):
        self.assertEqual(parse_12_hour("12:30 PM"), (12, 30))

    def test_pm_adds_twelve(self):
        self.assertEqual(parse_12_hour("01:00 PM"), (13, 0))
        self.assertEqual(parse_12_hour("06:45 pm"), (18, 45))

    def test_am_unchanged(self):
        self.assertEqual(parse_12_hour("04:30 AM"), (4, 30))

    def test_rejects_24_hour_and_bad_marker(self):
        for bad in ("18:12", "13:00 PM", "00:10 AM", "04:30 XM", ""):
            with self.assertRaises(TimingsFormatError):
                parse_12_hour(bad)

    def test_every_minute_survives_conversion(self):
        for hour in range(24):
            for minute in (0, 1, 30, 59):
                self.assertEqual(parse_12_hour(to_12_hour(f"{hour:02d}:{minute:02d}")), (hour, minute))


class TestAnchor(unittest.TestCase):
    def test_same_day(self):
        now = datetime.datetime(2025, 3, 1, 5, 0, 42)
        self.assertEqual(anchor("06:12 PM", now), datetime.datetime(2025, 3, 1, 18, 12))

    def test_next_day_crosses_month(self):
        now = datetime.datetime(2025, 2, 28, 23, 0)
        self.assertEqual(anchor("04:31 AM", now, days=1), datetime.datetime(2025, 3, 1, 4, 31))


class TestFormatCountdown(unittest.TestCase):
    def test_formats_hours_minutes_seconds(self):
        self.assertEqual(format_countdown(datetime.timedelta(hours=13, minutes=12)), "13h 12m 00s")
        self.assertEqual(format_countdown(datetime.timedelta(seconds=3725)), "01h 02m 05s")

    def test_negative_and_missing_read_zero(self):
        self.assertEqual(format_countdown(datetime.timedelta(seconds=-5)), ZERO_COUNTDOWN)
        self.assertEqual(format_countdown(None), ZERO_COUNTDOWN)
        self.assertEqual(format_countdown(datetime.timedelta(0)), "00h 00m 00s")

    def test_format_clock(self):
        self.assertEqual(format_clock(datetime.datetime(2025, 3, 1, 0, 7, 9)), "12:07:09 AM")


if __name__ == "__main__":
    unittest.main()
