"""Cancellable 1 Hz ticker that publishes CountdownState to subscribers."""

import logging
import threading
from typing import Callable, Optional

from waqt import sequencer
from waqt.civil_time import format_countdown
from waqt.models import CountdownState, TimingResult
from waqt.timesource import TimeSource

logger = logging.getLogger(__name__)

REFRESH_SECONDS = 1.0


def project(timing: TimingResult, now_civil) -> CountdownState:
    """Everything a countdown widget shows for one instant."""
    event = sequencer.next_event(timing, now_civil)
    left = sequencer.remaining(event.target, now_civil)
    prayer_id, prayer_at = sequencer.next_prayer(timing, now_civil)
    return CountdownState(
        phase=event.phase,
        active_phase_label=event.label,
        target_instant=event.target,
        remaining=left,
        target_prayer=event.target_prayer,
        countdown=format_countdown(left),
        now=now_civil,
        active_slot=sequencer.active_slot(timing, now_civil),
        next_prayer=prayer_id,
        next_prayer_at=prayer_at,
        next_prayer_countdown=format_countdown(sequencer.remaining(prayer_at, now_civil)),
    )


class CountdownClock:
    """
    Re-evaluates the sequencer against the live clock once per interval.

    One clock serves one TimingResult. When the timing changes, stop this clock
    and build a new one. Ticks run on a single background thread and never
    overlap; after ``stop`` returns no further tick is published.
    """

    def __init__(self, timing: TimingResult, time_source: TimeSource = None,
                 interval: float = REFRESH_SECONDS):
        self.timing = timing
        self.time_source = time_source or TimeSource()
        self.interval = interval
        self._subscribers: list = []
        self._state: Optional[CountdownState] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()

    @property
    def state(self) -> Optional[CountdownState]:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self, callback: Callable[[CountdownState], None]) -> Callable[[], None]:
        """Register ``callback`` for every tick; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def tick(self) -> Optional[CountdownState]:
        with self._lock:
            timing = self.timing
            if timing is None:
                return None
            now_civil = self.time_source.civil_now(timing.timezone)
            state = project(timing, now_civil)
            self._state = state
            for callback in list(self._subscribers):
                try:
                    callback(state)
                except Exception:
                    logger.exception("Countdown subscriber %r failed", callback)
            return state

    def start(self) -> "CountdownClock":
        if self.timing is None:
            raise RuntimeError("Cannot start a stopped CountdownClock; create a new one")
        if self.is_running:
            return self
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="countdown-clock", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        """Stop ticking and release the timing. Safe to call more than once."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        with self._lock:
            self._thread = None
            self.timing = None
            self._subscribers.clear()

    def _run(self) -> None:
        logger.debug("Countdown clock started for %s", self.timing.timezone if self.timing else None)
        while not self._stop_event.is_set():
            self.tick()
            if self._stop_event.wait(self.interval):
                break
        logger.debug("Countdown clock stopped")
