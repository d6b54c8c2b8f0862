#!/usr/bin/env python3
"""
Sehri / Iftar Countdown
Console widget that redraws once per second showing:
  - Current location and date (Gregorian + Hijri)
  - Live clock in the prayer-time zone
  - Daily prayer times with the current window marked
  - Countdown to the next fasting boundary (Sehri ends / Iftar starts / Next Sehri)
  - Countdown to the next prayer
"""

import argparse
import logging
import os
import sys
import threading

from waqt.civil_time import format_clock
from waqt.errors import InvalidCoordinatesError
from waqt.location import (
    clear_manual_location,
    coordinates_of,
    get_location,
    load_manual_location,
    manual_location,
    save_manual_location,
)
from waqt.models import SLOT_LABELS
from waqt.settings import STATUS_LOADING, STATUS_READY, STATUS_UNAVAILABLE, SettingsStore

logger = logging.getLogger("waqt_app")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

CLEAR_SCREEN = "\033[2J\033[H"
DIVIDER = "◇ ─────────────────────────── ◇"
ACTIVE_MARK = "▶"


def setup_logging(level: str = None, log_file: str = None) -> None:
    """Log to stderr (or ``log_file``) so the widget on stdout stays readable."""
    level = (level or os.environ.get("WAQT_LOG_LEVEL") or "WARNING").upper()
    kwargs = {"level": getattr(logging, level, logging.WARNING), "format": LOG_FORMAT}
    if log_file:
        kwargs["filename"] = os.path.expanduser(log_file)
    else:
        kwargs["stream"] = sys.stderr
    logging.basicConfig(**kwargs)


def render(location: dict, store: SettingsStore, state) -> str:
    """One frame of the widget as text."""
    lines = [f"📍 {location.get('city', 'Unknown')}"]

    if store.status == STATUS_UNAVAILABLE:
        lines.append("Prayer times unavailable")
        if store.error:
            lines.append(f"  ({store.error})")
        return "\n".join(lines)
    if store.status != STATUS_READY or store.timings is None or state is None:
        lines.append("Loading prayer times…")
        return "\n".join(lines)

    timings = store.timings
    lines.append(f"📅 {state.now.strftime('%A, %d %B %Y')}")
    lines.append(f"☪  {timings.hijri_date} H")
    lines.append(f"🕐 {format_clock(state.now)}  ({timings.timezone})")
    lines.append(DIVIDER)
    for slot in timings.slots():
        mark = ACTIVE_MARK if slot.id == state.active_slot else " "
        tag = "  (sunrise)" if slot.is_system else ""
        lines.append(f" {mark} {slot.label:<8} {slot.time}{tag}")
    lines.append(DIVIDER)
    lines.append(f"{state.active_phase_label}: {state.countdown}")
    lines.append(f"Sehri {timings.sehri}  ·  Iftar {timings.iftar}  ·  Next Sehri {timings.next_sehri}")
    if state.next_prayer:
        lines.append(f"Next prayer: {SLOT_LABELS[state.next_prayer]} in {state.next_prayer_countdown}")
    if timings.source != "remote":
        lines.append("(offline calculation)")
    return "\n".join(lines)


class WaqtApp:
    def __init__(self, location: dict, store: SettingsStore = None, out=None):
        self.location = location
        self.store = store or SettingsStore()
        self.out = out or sys.stdout
        self._done = threading.Event()
        self._last_frame = ""
        self.store.add_listener(self._on_store_change)
        self.store.subscribe_countdown(self._on_tick)

    # ──────────────────────────────────────────────────────────────────────
    # Data load
    # ──────────────────────────────────────────────────────────────────────
    def start(self, background: bool = True):
        coords = coordinates_of(self.location)
        if self.store.cache.get_for(coords) is not None:
            return self.store.restore(coords, background=background)
        return self.store.set_coordinates(coords, background=background)

    def _on_store_change(self, store: SettingsStore):
        if store.status in (STATUS_LOADING, STATUS_UNAVAILABLE):
            self._draw(render(self.location, store, None))

    def _on_tick(self, state):
        self._draw(render(self.location, self.store, state))
        self.store.refresh_if_stale(background=True)

    def _draw(self, frame: str):
        if frame == self._last_frame:
            return
        self._last_frame = frame
        self.out.write(CLEAR_SCREEN + frame + "\n")
        self.out.flush()

    # ──────────────────────────────────────────────────────────────────────
    # Run modes
    # ──────────────────────────────────────────────────────────────────────
    def run_once(self) -> str:
        """Resolve synchronously and print a single frame."""
        self.store.start_clock = False
        self.start(background=False)
        state = self.store.clock.tick() if self.store.clock else None
        frame = render(self.location, self.store, state)
        self.store.close()
        return frame

    def run_forever(self):
        self.start(background=True)
        try:
            while not self._done.wait(1.0):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            self.store.close()

    def stop(self):
        self._done.set()


def _resolve_location(args) -> dict:
    if args.reset_location:
        clear_manual_location()
    if args.lat is not None and args.lon is not None:
        location = manual_location(args.lat, args.lon, args.name or "")
        if args.save:
            save_manual_location(location)
        return location
    saved = load_manual_location()
    if saved:
        return saved
    return get_location()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sehri / Iftar countdown for your location.")
    parser.add_argument("--lat", type=float, help="latitude of a manual location")
    parser.add_argument("--lon", type=float, help="longitude of a manual location")
    parser.add_argument("--name", help="display name for the manual location")
    parser.add_argument("--save", action="store_true", help="remember the manual location")
    parser.add_argument("--reset-location", action="store_true", help="forget the saved manual location")
    parser.add_argument("--once", action="store_true", help="print one frame and exit")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-file", help="write logs to this file instead of stderr")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    try:
        location = _resolve_location(args)
    except (ValueError, InvalidCoordinatesError) as exc:
        print(f"Invalid location: {exc}", file=sys.stderr)
        return 2

    app = WaqtApp(location)
    if args.once:
        print(app.run_once())
        return 0 if app.store.status == STATUS_READY else 1
    app.run_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
