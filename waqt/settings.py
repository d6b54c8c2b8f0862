"""
Session state for the prayer-time views: current coordinates, the resolved
TimingResult, its status, and the CountdownClock built from it.

Every change of coordinates bumps a generation counter before a new resolution
starts. A resolution that finishes for an older generation is dropped, so a
slow answer for a previous location can never overwrite the current one.
"""

import logging
import threading
from typing import Callable, Optional

from waqt.cache import TimingsCache
from waqt.countdown import REFRESH_SECONDS, CountdownClock
from waqt.errors import ProviderError
from waqt.models import Coordinates, TimingResult
from waqt.provider import PrayerTimeProvider
from waqt.timesource import TimeSource

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_UNAVAILABLE = "unavailable"


class SettingsStore:
    def __init__(
        self,
        provider: PrayerTimeProvider = None,
        cache: TimingsCache = None,
        time_source: TimeSource = None,
        interval: float = REFRESH_SECONDS,
        start_clock: bool = True,
    ):
        self.provider = provider or PrayerTimeProvider()
        self.cache = cache or TimingsCache()
        self.time_source = time_source or TimeSource()
        self.interval = interval
        self.start_clock = start_clock

        self.coordinates: Optional[Coordinates] = None
        self.timings: Optional[TimingResult] = None
        self.status = STATUS_IDLE
        self.error: Optional[ProviderError] = None
        self.clock: Optional[CountdownClock] = None

        self._generation = 0
        self._in_flight = 0
        self._lock = threading.Lock()
        self._listeners: list = []
        self._countdown_subscribers: list = []

    @property
    def generation(self) -> int:
        return self._generation

    # ──────────────────────────────────────────────────────────────────────
    # Subscriptions
    # ──────────────────────────────────────────────────────────────────────
    def add_listener(self, callback: Callable[["SettingsStore"], None]) -> Callable[[], None]:
        """Called with the store whenever timings or status change."""
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None

    def subscribe_countdown(self, callback) -> Callable[[], None]:
        """Receive every CountdownState, across clock replacements."""
        self._countdown_subscribers.append(callback)
        return lambda: self._countdown_subscribers.remove(callback) if callback in self._countdown_subscribers else None

    def _publish(self, state) -> None:
        for callback in list(self._countdown_subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Countdown subscriber %r failed", callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                logger.exception("Settings listener %r failed", callback)

    # ──────────────────────────────────────────────────────────────────────
    # Coordinate changes and resolution
    # ──────────────────────────────────────────────────────────────────────
    def set_coordinates(self, coords, background: bool = False):
        """
        Switch to new coordinates and resolve timings for them.

        The previous result, its cache entry and its clock are discarded before
        the provider is called. Returns the resolving thread when ``background``
        is set, otherwise the TimingResult (None on failure or when superseded).
        """
        coords = Coordinates(*coords)
        with self._lock:
            if coords == self.coordinates and self.status in (STATUS_LOADING, STATUS_READY):
                logger.debug("Coordinates unchanged: %s", coords)
                return None
            logger.info("Coordinates changed: %s -> %s", self.coordinates, coords)
            self.coordinates = coords
            self.cache.invalidate()
            generation, old_clock = self._begin_loading()
        self._stop(old_clock)
        self._notify()
        return self._dispatch(generation, coords, background)

    def refresh(self, background: bool = False):
        """Resolve the current coordinates again, e.g. once the civil day rolls over."""
        with self._lock:
            coords = self.coordinates
            if coords is None:
                logger.debug("Refresh requested without coordinates")
                return None
            self._generation += 1
            generation = self._generation
        logger.info("Refreshing timings for %s", coords)
        return self._dispatch(generation, coords, background)

    def refresh_if_stale(self, background: bool = False):
        """Soft daily refresh: re-resolve when the cached result is for another day."""
        timings = self.timings
        if timings is None or self.status != STATUS_READY or self._in_flight:
            return None
        today = self.time_source.civil_today(timings.timezone)
        if not self.cache.is_stale(today):
            return None
        logger.info("Timings are for %s, today is %s", timings.date or "an unknown day", today)
        return self.refresh(background=background)

    def restore(self, coords=None, background: bool = False):
        """
        Start from the durable cache.

        Uses the cached result when it belongs to ``coords`` (or to the cached
        coordinates when none are given) and refreshes it if it is from another
        day; otherwise resolves from scratch.
        """
        if coords is None:
            coords = self.cache.coordinates()
            if coords is None:
                logger.debug("Nothing cached to restore")
                return None
        coords = Coordinates(*coords)
        cached = self.cache.get_for(coords)
        if cached is None:
            return self.set_coordinates(coords, background=background)

        with self._lock:
            self.coordinates = coords
            self._generation += 1
            old_clock = self._install(cached)
        self._stop(old_clock)
        logger.info("Restored cached timings for %s (%s)", coords, cached.date or "undated")
        self._notify()
        return self.refresh_if_stale(background=background) or cached

    def close(self) -> None:
        """Stop the clock and drop any in-flight resolution."""
        with self._lock:
            self._generation += 1
            old_clock, self.clock = self.clock, None
        self._stop(old_clock)

    def _dispatch(self, generation: int, coords: Coordinates, background: bool):
        with self._lock:
            self._in_flight += 1
        if background:
            t = threading.Thread(target=self._resolve, args=(generation, coords), daemon=True)
            t.start()
            return t
        return self._resolve(generation, coords)

    def _resolve(self, generation: int, coords: Coordinates) -> Optional[TimingResult]:
        try:
            result, error = self.provider.resolve(coords), None
        except ProviderError as exc:
            result, error = None, exc
        finally:
            with self._lock:
                self._in_flight -= 1

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding resolution for superseded coordinates %s", coords)
                return None
            if error is None:
                try:
                    self.cache.store(result, coords)
                except OSError as exc:
                    logger.warning("Could not write timings cache %s: %s", self.cache.path, exc)
                old_clock = self._install(result)
            else:
                old_clock, self.clock = self.clock, None
                self.timings = None
                self.status = STATUS_UNAVAILABLE
                self.error = error
        self._stop(old_clock)
        self._notify()
        return result

    # Both helpers below run with self._lock held and hand back the clock to stop.
    def _begin_loading(self):
        self._generation += 1
        old_clock, self.clock = self.clock, None
        self.timings = None
        self.error = None
        self.status = STATUS_LOADING
        return self._generation, old_clock

    def _install(self, result: TimingResult):
        old_clock = self.clock
        self.timings = result
        self.status = STATUS_READY
        self.error = None
        clock = CountdownClock(result, self.time_source, self.interval)
        clock.subscribe(self._publish)
        self.clock = clock
        if self.start_clock:
            clock.start()
        return old_clock

    @staticmethod
    def _stop(clock: Optional[CountdownClock]) -> None:
        if clock is not None:
            clock.stop()
