"""Wall-clock string handling: 24h/12h conversion, day anchoring, countdown text."""

import datetime
import re

from waqt.errors import TimingsFormatError

ZERO_COUNTDOWN = "00h 00m 00s"

_TIME_24 = re.compile(r"^\s*(\d{1,2}):(\d{2})")
_TIME_12 = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def to_12_hour(time_24: str) -> str:
    """
    Convert an Aladhan "HH:MM" (optionally followed by a zone suffix such as
    "(+06)") into "HH:MM AM/PM".
    """
    match = _TIME_24.match(time_24 or "")
    if not match:
        raise TimingsFormatError(f"Not a 24-hour time: {time_24!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise TimingsFormatError(f"Not a 24-hour time: {time_24!r}")
    marker = "PM" if hour >= 12 else "AM"
    hour = hour % 12 or 12
    return f"{hour:02d}:{minute:02d} {marker}"


def parse_12_hour(time_str: str) -> tuple:
    """Return (hour, minute) on a 24-hour clock for an "HH:MM AM/PM" string."""
    match = _TIME_12.match(time_str or "")
    if not match:
        raise TimingsFormatError(f"Not a 12-hour time: {time_str!r}")
    hour, minute, marker = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or minute > 59:
        raise TimingsFormatError(f"Not a 12-hour time: {time_str!r}")
    # 12 AM is midnight, 12 PM is noon.
    if marker == "AM":
        hour = 0 if hour == 12 else hour
    elif hour != 12:
        hour += 12
    return hour, minute


def format_12_hour(dt: datetime.datetime) -> str:
    return dt.strftime("%I:%M %p")


def anchor(time_str: str, civil_now: datetime.datetime, days: int = 0) -> datetime.datetime:
    """Place a "HH:MM AM/PM" time on civil_now's date shifted by ``days``."""
    hour, minute = parse_12_hour(time_str)
    day = civil_now.date() + datetime.timedelta(days=days)
    return datetime.datetime.combine(day, datetime.time(hour, minute))


def clamp(remaining) -> datetime.timedelta:
    """Never let a countdown go negative."""
    if remaining is None:
        return datetime.timedelta(0)
    if remaining < datetime.timedelta(0):
        return datetime.timedelta(0)
    return remaining


def format_countdown(remaining) -> str:
    """Format a timedelta as "13h 12m 00s"; negative or missing reads as zero."""
    seconds = int(clamp(remaining).total_seconds())
    if seconds <= 0:
        return ZERO_COUNTDOWN
    h = seconds // 3600
    m = (seconds % 3600) // 60
    s = seconds % 60
    return f"{h:02d}h {m:02d}m {s:02d}s"


def format_clock(dt: datetime.datetime) -> str:
    return dt.strftime("%I:%M:%S %p")
