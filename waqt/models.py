"""Value types shared by the provider, the sequencer and the countdown clock."""

import datetime
from dataclasses import asdict, dataclass, field
from typing import NamedTuple, Optional

from waqt.civil_time import parse_12_hour
from waqt.errors import InvalidCoordinatesError, TimingsFormatError

SLOT_IDS = ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"]
SLOT_LABELS = {
    "fajr": "Fajr",
    "sunrise": "Sunrise",
    "dhuhr": "Dhuhr",
    "asr": "Asr",
    "maghrib": "Maghrib",
    "isha": "Isha",
}
# Sunrise ends the Fajr window but is not itself a prayer.
SYSTEM_SLOTS = {"sunrise"}

PRE_DAWN = "pre-dawn"
FASTING = "fasting"
POST_IFTAR = "post-iftar"

PHASE_LABELS = {
    PRE_DAWN: "Sehri ends",
    FASTING: "Iftar starts",
    POST_IFTAR: "Next Sehri",
}

SOURCE_REMOTE = "remote"
SOURCE_OFFLINE = "offline"


class Coordinates(NamedTuple):
    latitude: float
    longitude: float

    def validate(self) -> "Coordinates":
        """Return self, raising InvalidCoordinatesError when out of range."""
        try:
            lat, lon = float(self.latitude), float(self.longitude)
        except (TypeError, ValueError):
            raise InvalidCoordinatesError(f"Non-numeric coordinates: {self!r}")
        if lat != lat or lon != lon:
            raise InvalidCoordinatesError(f"NaN coordinates: {self!r}")
        if not -90.0 <= lat <= 90.0:
            raise InvalidCoordinatesError(f"Latitude out of range: {lat}")
        if not -180.0 <= lon <= 180.0:
            raise InvalidCoordinatesError(f"Longitude out of range: {lon}")
        return self


class PrayerSlot(NamedTuple):
    id: str
    label: str
    time: str
    is_system: bool


class NextEvent(NamedTuple):
    phase: str
    label: str
    target: datetime.datetime
    target_prayer: str


@dataclass(frozen=True)
class TimingResult:
    """
    Six prayer times for one civil date, as "HH:MM AM/PM" strings.

    All times are wall-clock times in ``timezone``. ``next_sehri`` is the
    following day's fajr in the same zone. A result is never patched: each
    resolution replaces the previous one.
    """

    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    next_sehri: str
    timezone: str
    hijri_date: str
    date: str = ""
    source: str = SOURCE_REMOTE

    REQUIRED = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha",
                "next_sehri", "timezone", "hijri_date")

    @property
    def sehri(self) -> str:
        return self.fajr

    @property
    def iftar(self) -> str:
        return self.maghrib

    def slots(self) -> list:
        return [
            PrayerSlot(slot_id, SLOT_LABELS[slot_id], getattr(self, slot_id), slot_id in SYSTEM_SLOTS)
            for slot_id in SLOT_IDS
        ]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TimingResult":
        if not isinstance(data, dict):
            raise TimingsFormatError("Timing blob must be a mapping")
        missing = [key for key in cls.REQUIRED if not data.get(key)]
        if missing:
            raise TimingsFormatError(f"Timing blob missing fields: {', '.join(missing)}")
        # Time fields must read "HH:MM AM/PM".
        for key in SLOT_IDS + ["next_sehri"]:
            parse_12_hour(str(data[key]))
        return cls(
            **{key: str(data[key]) for key in cls.REQUIRED},
            date=str(data.get("date", "")),
            source=str(data.get("source", SOURCE_REMOTE)),
        )


@dataclass(frozen=True)
class CountdownState:
    """One tick's projection of (TimingResult, now). Never persisted."""

    phase: str
    active_phase_label: str
    target_instant: datetime.datetime
    remaining: datetime.timedelta
    target_prayer: str
    countdown: str
    now: datetime.datetime
    active_slot: Optional[str] = None
    next_prayer: Optional[str] = None
    next_prayer_at: Optional[datetime.datetime] = None
    next_prayer_countdown: str = field(default="00h 00m 00s")
