"""Where the coordinates come from: IP geolocation or a manually saved location."""

import json
import logging
import os

import requests

from waqt.cache import CONFIG_DIR
from waqt.models import Coordinates

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = {
    "city": "Dhaka",
    "region": "Dhaka Division",
    "country": "BD",
    "lat": 23.8103,
    "lon": 90.4125,
    "timezone": "Asia/Dhaka",
}

IPAPI_URL = "http://ip-api.com/json/"

CONFIG_FILE = os.path.join(CONFIG_DIR, "location.json")

REQUIRED_KEYS = ("city", "lat", "lon")


def get_location(timeout: int = 5) -> dict:
    """
    Detect current location via IP geolocation.

    Returns a dict with: city, region, country, lat, lon, timezone.
    Falls back to DEFAULT_LOCATION on failure.
    """
    try:
        resp = requests.get(
            IPAPI_URL,
            params={"fields": "city,regionName,country,lat,lon,timezone,status,message"},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("IP geolocation failed, using default location: %s", exc)
        return dict(DEFAULT_LOCATION)

    if data.get("status") != "success":
        logger.warning("IP geolocation refused: %s", data.get("message"))
        return dict(DEFAULT_LOCATION)
    return {
        "city": data.get("city", DEFAULT_LOCATION["city"]),
        "region": data.get("regionName", DEFAULT_LOCATION["region"]),
        "country": data.get("country", DEFAULT_LOCATION["country"]),
        "lat": float(data.get("lat", DEFAULT_LOCATION["lat"])),
        "lon": float(data.get("lon", DEFAULT_LOCATION["lon"])),
        "timezone": data.get("timezone", DEFAULT_LOCATION["timezone"]),
    }


def manual_location(lat: float, lon: float, name: str = "") -> dict:
    """Location dict for coordinates typed in by the user."""
    coords = Coordinates(float(lat), float(lon)).validate()
    return {
        "city": name or f"{coords.latitude:.4f}, {coords.longitude:.4f}",
        "lat": coords.latitude,
        "lon": coords.longitude,
        "is_manual": True,
    }


def coordinates_of(location: dict) -> Coordinates:
    return Coordinates(float(location["lat"]), float(location["lon"])).validate()


def save_manual_location(location: dict) -> None:
    """Save a manually-set location to the config file."""
    os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(location, f, indent=2)


def load_manual_location() -> dict | None:
    """Load a previously saved manual location, or return None."""
    if not os.path.isfile(CONFIG_FILE):
        return None
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable location file %s: %s", CONFIG_FILE, exc)
        return None
    if isinstance(data, dict) and all(k in data for k in REQUIRED_KEYS):
        return data
    return None


def clear_manual_location() -> None:
    """Remove the saved manual location config."""
    if os.path.isfile(CONFIG_FILE):
        os.remove(CONFIG_FILE)
