"""Offline prayer times: local adhanpy calculation in the device's own timezone."""

import datetime
import logging

import pytz
from adhanpy.PrayerTimes import PrayerTimes
from adhanpy.calculation.CalculationParameters import CalculationParameters
from adhanpy.calculation.Madhab import Madhab
from hijridate import Gregorian
from tzlocal import get_localzone_name

from waqt.civil_time import format_12_hour
from waqt.errors import FallbackComputationError, ProviderError
from waqt.models import SLOT_IDS, SOURCE_OFFLINE, Coordinates, TimingResult

logger = logging.getLogger(__name__)

# Karachi convention, matching the remote method: 18 degrees for Fajr and Isha.
FAJR_ANGLE = 18.0
ISHA_ANGLE = 18.0


def device_timezone() -> str:
    """IANA name of the zone this process runs in, UTC if it cannot be resolved."""
    try:
        tz_name = get_localzone_name()
        pytz.timezone(tz_name)
        logger.debug("Resolved device timezone: %s", tz_name)
        return tz_name
    except Exception:
        logger.warning("Falling back to UTC for device timezone resolution")
        return "UTC"


def hijri_label(date: datetime.date) -> str:
    """Approximate Hijri date for a Gregorian date, e.g. "1 Ramadan 1446"."""
    try:
        hijri = Gregorian(date.year, date.month, date.day).to_hijri()
    except (OverflowError, ValueError) as exc:
        raise FallbackComputationError(f"No Hijri date for {date}: {exc}") from exc
    return f"{hijri.day} {hijri.month_name()} {hijri.year}"


def calculation_parameters() -> CalculationParameters:
    params = CalculationParameters(fajr_angle=FAJR_ANGLE, isha_angle=ISHA_ANGLE)
    params.madhab = Madhab.HANAFI
    return params


def compute_day(coords: Coordinates, date: datetime.date, tz) -> dict:
    """
    Return {slot_id: aware datetime in ``tz``} for one civil date.

    Raises FallbackComputationError when adhanpy fails or yields no instant,
    which happens near the poles when the sun never reaches the Fajr angle, and
    when the times do not land in order on ``date`` in ``tz`` (a device zone far
    from the coordinates).
    """
    try:
        times = PrayerTimes(
            (coords.latitude, coords.longitude),
            datetime.datetime(date.year, date.month, date.day),
            calculation_parameters=calculation_parameters(),
        )
        raw = {slot_id: getattr(times, slot_id) for slot_id in SLOT_IDS}
    except Exception as exc:
        raise FallbackComputationError(f"adhanpy failed for {coords} on {date}: {exc!r}") from exc

    result = {}
    for slot_id, instant in raw.items():
        if not isinstance(instant, datetime.datetime):
            raise FallbackComputationError(f"No {slot_id} time for {coords} on {date}")
        if instant.tzinfo is None:
            instant = pytz.utc.localize(instant)
        result[slot_id] = instant.astimezone(tz)

    # The six times are shown as wall-clock strings of one civil day in ``tz``.
    for slot_id, instant in result.items():
        if instant.date() != date:
            raise FallbackComputationError(
                f"{slot_id} for {coords} falls on {instant.date()} in {tz}, not {date}"
            )
    ordered = [(result[slot_id].hour, result[slot_id].minute) for slot_id in SLOT_IDS]
    if any(earlier >= later for earlier, later in zip(ordered, ordered[1:])):
        raise FallbackComputationError(f"Prayer times out of order for {coords} on {date} in {tz}")
    return result


class OfflineStrategy:
    """Fallback strategy: never touches the network, always uses the device zone."""

    name = "offline"

    def __init__(self, timezone_name: str = None):
        self.timezone_name = timezone_name

    def resolve(self, coords: Coordinates, date: datetime.date = None) -> TimingResult:
        coords.validate()
        tz_name = self.timezone_name or device_timezone()
        try:
            tz = pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError as exc:
            raise FallbackComputationError(f"Unknown timezone for offline calculation: {tz_name!r}") from exc
        if date is None:
            date = datetime.datetime.now(tz).date()

        today = compute_day(coords, date, tz)
        try:
            tomorrow = compute_day(coords, date + datetime.timedelta(days=1), tz)
            next_sehri = format_12_hour(tomorrow["fajr"])
        except ProviderError as exc:
            logger.warning("%s; using today's fajr as next sehri", exc)
            next_sehri = format_12_hour(today["fajr"])

        return TimingResult(
            next_sehri=next_sehri,
            timezone=tz_name,
            hijri_date=hijri_label(date),
            date=date.isoformat(),
            source=SOURCE_OFFLINE,
            **{slot_id: format_12_hour(instant) for slot_id, instant in today.items()},
        )
