"""Current instant and its projection into a timezone's civil fields."""

import datetime
import logging

import pytz

logger = logging.getLogger(__name__)


def resolve_timezone(name: str):
    """Return the pytz zone for ``name``, or UTC when the name is unknown."""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, using UTC", name)
        return pytz.utc


class TimeSource:
    """
    Wall clock used by the sequencer and the countdown clock.

    ``now`` is an absolute, UTC-aware instant. ``to_civil`` strips the zone after
    converting, so the result carries only the year..second fields a person in
    that zone would read off a clock. Civil datetimes are naive on purpose: the
    sequencer compares them with prayer times anchored on the same fields.
    """

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(pytz.utc)

    def to_civil(self, instant: datetime.datetime, tz_name: str) -> datetime.datetime:
        if instant.tzinfo is None:
            instant = pytz.utc.localize(instant)
        return instant.astimezone(resolve_timezone(tz_name)).replace(tzinfo=None)

    def civil_now(self, tz_name: str) -> datetime.datetime:
        return self.to_civil(self.now(), tz_name)

    def civil_today(self, tz_name: str) -> datetime.date:
        return self.civil_now(tz_name).date()


class FixedTimeSource(TimeSource):
    """A TimeSource frozen at one instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime.datetime):
        if instant.tzinfo is None:
            instant = pytz.utc.localize(instant)
        self.instant = instant

    def now(self) -> datetime.datetime:
        return self.instant

    def advance(self, seconds: float) -> None:
        self.instant = self.instant + datetime.timedelta(seconds=seconds)
