"""
Pure functions over a TimingResult and a civil "now".

``now_civil`` must already be expressed in ``timing.timezone`` (see
TimeSource.to_civil). Prayer times are anchored on now_civil's date, so every
comparison here is between naive wall-clock datetimes of the same zone.
"""

import datetime
from typing import Optional

from waqt.civil_time import anchor, clamp
from waqt.models import (
    FASTING,
    PHASE_LABELS,
    POST_IFTAR,
    PRE_DAWN,
    SLOT_IDS,
    SYSTEM_SLOTS,
    NextEvent,
    TimingResult,
)

ONE_DAY = datetime.timedelta(days=1)


def next_sehri_instant(timing: TimingResult, now_civil: datetime.datetime) -> datetime.datetime:
    """Tomorrow's fajr, pushed one more day if it is somehow not after now."""
    target = anchor(timing.next_sehri, now_civil, days=1)
    if target <= now_civil:
        target += ONE_DAY
    return target


def next_event(timing: TimingResult, now_civil: datetime.datetime) -> NextEvent:
    """
    Which fasting boundary comes next.

    Up to and including fajr the countdown targets the end of Sehri; between
    fajr and maghrib it targets Iftar; from maghrib on it targets the next
    day's Sehri.
    """
    fajr = anchor(timing.sehri, now_civil)
    maghrib = anchor(timing.iftar, now_civil)

    if now_civil <= fajr:
        return NextEvent(PRE_DAWN, PHASE_LABELS[PRE_DAWN], fajr, "fajr")
    if now_civil < maghrib:
        return NextEvent(FASTING, PHASE_LABELS[FASTING], maghrib, "maghrib")
    return NextEvent(POST_IFTAR, PHASE_LABELS[POST_IFTAR], next_sehri_instant(timing, now_civil), "fajr")


def remaining(target: datetime.datetime, now_civil: datetime.datetime) -> datetime.timedelta:
    return clamp(target - now_civil)


def slot_instants(timing: TimingResult, now_civil: datetime.datetime) -> list:
    return [(slot_id, anchor(getattr(timing, slot_id), now_civil)) for slot_id in SLOT_IDS]


def active_slot(timing: TimingResult, now_civil: datetime.datetime) -> Optional[str]:
    """
    The prayer window now_civil falls in, for timeline highlighting.

    Isha stays current until midnight. Between midnight and fajr no slot is
    active; sunrise counts as a window even though it is not a prayer.
    """
    instants = slot_instants(timing, now_civil)
    for (slot_id, start), (_, end) in zip(instants, instants[1:]):
        if start <= now_civil < end:
            return slot_id
    last_id, last_start = instants[-1]
    if now_civil >= last_start:
        return last_id
    return None


def next_prayer(timing: TimingResult, now_civil: datetime.datetime) -> tuple:
    """(slot_id, instant) of the next prayer after now, skipping sunrise; tomorrow's fajr after isha."""
    for slot_id, instant in slot_instants(timing, now_civil):
        if slot_id in SYSTEM_SLOTS:
            continue
        if instant > now_civil:
            return slot_id, instant
    return "fajr", next_sehri_instant(timing, now_civil)
