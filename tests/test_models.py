"""Tests for the models module."""

import unittest

from waqt.errors import InvalidCoordinatesError, ProviderError, TimingsFormatError
from waqt.models import SOURCE_OFFLINE, Coordinates, TimingResult

TIMINGS = dict(
    fajr="04:32 AM",
    sunrise="05:47 AM",
    dhuhr="11:43 AM",
    asr="04:01 PM",
    maghrib="06:12 PM",
    isha="07:27 PM",
    next_sehri="04:31 AM",
    timezone="Asia/Dhaka",
    hijri_date="1 Ramadan 1446",
    date="2025-03-01",
)


class TestCoordinates(unittest.TestCase):
    def test_valid_coordinates_pass(self):
        coords = Coordinates(23.8103, 90.4125)
        self.assertIs(coords.validate(), coords)

    def test_out_of_range(self):
        for lat, lon in ((91, 0), (-90.5, 0), (0, 181), (0, -180.1), (float("nan"), 0)):
            with self.assertRaises(InvalidCoordinatesError):
                Coordinates(lat, lon).validate()

    def test_invalid_coordinates_are_provider_errors(self):
        with self.assertRaises(ProviderError):
            Coordinates("north", 0).validate()


class TestTimingResult(unittest.TestCase):
    def test_aliases(self):
        timing = TimingResult(**TIMINGS)
        self.assertEqual(timing.sehri, "04:32 AM")
        self.assertEqual(timing.iftar, "06:12 PM")

    def test_slots_are_ordered_and_mark_sunrise(self):
        slots = TimingResult(**TIMINGS).slots()
        self.assertEqual([s.id for s in slots], ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"])
        self.assertEqual([s.id for s in slots if s.is_system], ["sunrise"])
        self.assertEqual(slots[4].time, "06:12 PM")

    def test_dict_round_trip_keeps_source(self):
        timing = TimingResult(source=SOURCE_OFFLINE, **TIMINGS)
        self.assertEqual(TimingResult.from_dict(timing.to_dict()), timing)

    def test_from_dict_rejects_missing_fields(self):
        blob = dict(TIMINGS)
        blob["next_sehri"] = ""
        with self.assertRaises(TimingsFormatError):
            TimingResult.from_dict(blob)
        with self.assertRaises(TimingsFormatError):
            TimingResult.from_dict(["not", "a", "dict"])

    def test_from_dict_rejects_unparseable_times(self):
        for key, value in (("fajr", "garbage"), ("isha", "19:27"), ("next_sehri", "13:05 PM")):
            with self.subTest(key=key):
                with self.assertRaises(TimingsFormatError):
                    TimingResult.from_dict(dict(TIMINGS, **{key: value}))


if __name__ == "__main__":
    unittest.main()
