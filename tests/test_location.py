"""Tests for the location module."""

import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

import waqt.location as loc_mod
from waqt.errors import InvalidCoordinatesError
from waqt.location import (
    DEFAULT_LOCATION,
    clear_manual_location,
    coordinates_of,
    get_location,
    load_manual_location,
    manual_location,
    save_manual_location,
)
from waqt.models import Coordinates


class TestGetLocation(unittest.TestCase):
    @patch("waqt.location.requests.get")
    def test_returns_location_on_success(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.json.return_value = {
            "status": "success",
            "city": "Jakarta",
            "regionName": "Jakarta",
            "country": "Indonesia",
            "lat": -6.2,
            "lon": 106.8,
            "timezone": "Asia/Jakarta",
        }
        mock_resp.raise_for_status = MagicMock()
        mock_get.return_value = mock_resp

        loc = get_location()
        self.assertEqual(loc["city"], "Jakarta")
        self.assertAlmostEqual(loc["lat"], -6.2)
        self.assertEqual(loc["timezone"], "Asia/Jakarta")

    @patch("waqt.location.requests.get")
    def test_falls_back_on_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("Network error")
        with self.assertLogs("waqt.location", level="WARNING"):
            loc = get_location()
        self.assertEqual(loc["city"], DEFAULT_LOCATION["city"])

    @patch("waqt.location.requests.get")
    def test_falls_back_on_api_error_status(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.json.return_value = {"status": "fail", "message": "reserved range"}
        mock_resp.raise_for_status = MagicMock()
        mock_get.return_value = mock_resp

        loc = get_location()
        self.assertEqual(loc["city"], DEFAULT_LOCATION["city"])

    @patch("waqt.location.requests.get")
    def test_default_is_a_copy(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        loc = get_location()
        loc["city"] = "Elsewhere"
        self.assertEqual(DEFAULT_LOCATION["city"], "Dhaka")


class TestCoordinates(unittest.TestCase):
    def test_manual_location_names_itself(self):
        loc = manual_location("21.4225", "39.8262")
        self.assertEqual(loc["city"], "21.4225, 39.8262")
        self.assertTrue(loc["is_manual"])

    def test_manual_location_keeps_name(self):
        loc = manual_location(21.4225, 39.8262, "Makkah")
        self.assertEqual(loc["city"], "Makkah")

    def test_manual_location_rejects_out_of_range(self):
        with self.assertRaises(InvalidCoordinatesError):
            manual_location(91.0, 0.0)

    def test_coordinates_of(self):
        self.assertEqual(coordinates_of(DEFAULT_LOCATION), Coordinates(23.8103, 90.4125))


class TestManualLocation(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self._orig_config_file = loc_mod.CONFIG_FILE
        loc_mod.CONFIG_FILE = os.path.join(self._tmpdir, "nested", "location.json")

    def tearDown(self):
        loc_mod.CONFIG_FILE = self._orig_config_file
        shutil.rmtree(self._tmpdir, ignore_errors=True)

    def test_save_and_load_manual_location(self):
        save_manual_location(manual_location(-6.5567, 106.5614, "Ciseeng"))
        loaded = load_manual_location()
        self.assertIsNotNone(loaded)
        self.assertEqual(loaded["city"], "Ciseeng")
        self.assertAlmostEqual(loaded["lat"], -6.5567)

    def test_load_returns_none_when_no_file(self):
        self.assertIsNone(load_manual_location())

    def test_clear_manual_location(self):
        save_manual_location({"city": "Test", "lat": 0.0, "lon": 0.0})
        self.assertIsNotNone(load_manual_location())
        clear_manual_location()
        self.assertIsNone(load_manual_location())
        clear_manual_location()

    def test_load_returns_none_for_invalid_json(self):
        os.makedirs(os.path.dirname(loc_mod.CONFIG_FILE))
        with open(loc_mod.CONFIG_FILE, "w") as f:
            f.write("not valid json")
        with self.assertLogs("waqt.location", level="WARNING"):
            self.assertIsNone(load_manual_location())

    def test_load_returns_none_for_missing_keys(self):
        os.makedirs(os.path.dirname(loc_mod.CONFIG_FILE))
        with open(loc_mod.CONFIG_FILE, "w") as f:
            json.dump({"city": "Test"}, f)
        self.assertIsNone(load_manual_location())


if __name__ == "__main__":
    unittest.main()
