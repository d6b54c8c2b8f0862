"""Fetch prayer times and Hijri date from the Aladhan API."""

import datetime
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import pytz
import requests

from waqt.civil_time import to_12_hour
from waqt.errors import NetworkTimeout, ProviderDataError, ProviderError, SecondaryFetchFailure
from waqt.models import SOURCE_REMOTE, Coordinates, TimingResult
from waqt.timesource import resolve_timezone

logger = logging.getLogger(__name__)

ALADHAN_BASE = "https://api.aladhan.com/v1"

PRAYER_NAMES = ["Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"]

# Calculation method: 1 = University of Islamic Sciences, Karachi
# 2 = ISNA, 3 = MWL, 4 = Mecca, 5 = Egypt, 15 = Dubai, 20 = Turkey
DEFAULT_METHOD = 1
# Asr school: 0 = Shafi, 1 = Hanafi
DEFAULT_SCHOOL = 1

REQUEST_TIMEOUT = 4  # seconds
ONE_DAY = 86400


def fetch_timings(
    lat: float,
    lon: float,
    timestamp: int,
    method: int = DEFAULT_METHOD,
    school: int = DEFAULT_SCHOOL,
    timeout: float = REQUEST_TIMEOUT,
) -> dict:
    """
    Fetch the raw ``data`` block for the day containing ``timestamp``.

    Raises NetworkTimeout when the deadline passes and ProviderDataError for
    any other transport failure, a non-200 status or a body whose ``code`` is
    not 200.
    """
    url = f"{ALADHAN_BASE}/timings/{int(timestamp)}"
    params = {
        "latitude": lat,
        "longitude": lon,
        "method": method,
        "school": school,
    }
    try:
        resp = requests.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        body = resp.json()
    except requests.Timeout as exc:
        raise NetworkTimeout(f"Aladhan request timed out after {timeout}s") from exc
    except requests.RequestException as exc:
        raise ProviderDataError(f"Aladhan request failed: {exc}") from exc
    except ValueError as exc:
        raise ProviderDataError("Aladhan returned a non-JSON body") from exc

    if not isinstance(body, dict) or body.get("code") != 200:
        status = body.get("status") if isinstance(body, dict) else None
        raise ProviderDataError(f"Aladhan API error: {status}")
    data = body.get("data")
    if not isinstance(data, dict):
        raise ProviderDataError("Aladhan response has no data block")
    return data


def normalize_timings(data: dict) -> dict:
    """
    Turn an Aladhan ``data`` block into TimingResult fields (without next_sehri).

    The six times become "HH:MM AM/PM"; the Hijri label reads "1 Ramadan 1446".
    """
    try:
        raw = data["timings"]
        timings = {name.lower(): to_12_hour(raw[name]) for name in PRAYER_NAMES}
        hijri = data["date"]["hijri"]
        hijri_label = f"{hijri['day']} {hijri['month']['en']} {hijri['year']}"
        timezone = data["meta"]["timezone"]
        greg = data["date"].get("gregorian", {}).get("date", "")
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ProviderDataError(f"Malformed Aladhan payload: {exc!r}") from exc
    if not timezone:
        raise ProviderDataError("Aladhan payload has no timezone")

    timings["timezone"] = timezone
    timings["hijri_date"] = hijri_label
    timings["date"] = _iso_date(greg)
    return timings


def _iso_date(date_str: str) -> str:
    """Convert "17-10-2026" to "2026-10-17"; empty string if unparseable."""
    try:
        return datetime.datetime.strptime(date_str, "%d-%m-%Y").date().isoformat()
    except (TypeError, ValueError):
        return ""


def _civil_date(timestamp: int, tz_name: str) -> str:
    instant = datetime.datetime.fromtimestamp(timestamp, pytz.utc)
    return instant.astimezone(resolve_timezone(tz_name)).date().isoformat()


class RemoteStrategy:
    """Primary strategy: today's and tomorrow's timings from Aladhan, fetched concurrently."""

    name = "remote"

    def __init__(self, method: int = DEFAULT_METHOD, school: int = DEFAULT_SCHOOL,
                 timeout: float = REQUEST_TIMEOUT, clock=time.time):
        self.method = method
        self.school = school
        self.timeout = timeout
        self.clock = clock

    def _fetch(self, coords: Coordinates, timestamp: int) -> dict:
        return fetch_timings(
            coords.latitude,
            coords.longitude,
            timestamp,
            method=self.method,
            school=self.school,
            timeout=self.timeout,
        )

    def _timestamp(self, date) -> int:
        if date is None:
            return int(self.clock())
        # Noon UTC keeps the request inside the same civil day for every zone
        # between UTC-12 and UTC+11.
        noon = datetime.datetime(date.year, date.month, date.day, 12, tzinfo=datetime.timezone.utc)
        return int(noon.timestamp())

    def resolve(self, coords: Coordinates, date: datetime.date = None) -> TimingResult:
        """
        Resolve today's timings plus tomorrow's fajr.

        ``timeout`` bounds the whole call, not just each socket read: a server
        that keeps trickling bytes is abandoned once the deadline passes.
        """
        timestamp = self._timestamp(date)
        deadline = time.monotonic() + self.timeout
        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="aladhan")
        try:
            today_future = pool.submit(self._fetch, coords, timestamp)
            tomorrow_future = pool.submit(self._fetch, coords, timestamp + ONE_DAY)
            try:
                today_data = today_future.result(timeout=self.timeout)
            except FutureTimeout as exc:
                raise NetworkTimeout(f"Aladhan gave no answer within {self.timeout}s") from exc
            fields = normalize_timings(today_data)
            if not fields["date"]:
                fields["date"] = _civil_date(timestamp, fields["timezone"])
            try:
                fields["next_sehri"] = self._next_sehri(tomorrow_future, max(0.0, deadline - time.monotonic()))
            except SecondaryFetchFailure as exc:
                logger.warning("%s; using today's fajr as next sehri", exc)
                fields["next_sehri"] = fields["fajr"]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        fields["source"] = SOURCE_REMOTE
        return TimingResult(**fields)

    @staticmethod
    def _next_sehri(future, timeout: float) -> str:
        try:
            data = future.result(timeout=timeout)
        except FutureTimeout as exc:
            raise SecondaryFetchFailure("Next-day lookup missed the deadline") from exc
        except ProviderError as exc:
            raise SecondaryFetchFailure(f"Next-day lookup failed: {exc}") from exc
        try:
            return to_12_hour(data["timings"]["Fajr"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SecondaryFetchFailure(f"Next-day payload unusable: {exc!r}") from exc
