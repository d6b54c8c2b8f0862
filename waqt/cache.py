"""Durable single-slot store for the last resolved TimingResult."""

import json
import logging
import os
import tempfile
import threading
from typing import Optional

from waqt.models import Coordinates, TimingResult

logger = logging.getLogger(__name__)

CONFIG_DIR = os.environ.get("WAQT_CONFIG_DIR") or os.path.join(os.path.expanduser("~"), ".waqt")
CACHE_FILE = os.path.join(CONFIG_DIR, "timings.json")


class TimingsCache:
    """
    Holds exactly one TimingResult together with the coordinates it was resolved for.

    Readers see either the previous entry or the new one: the in-memory slot is
    swapped with a single assignment and the file is replaced atomically.
    """

    def __init__(self, path: str = None):
        self.path = path or CACHE_FILE
        self._entry = None  # (Coordinates, TimingResult)
        self._loaded = False
        self._write_lock = threading.Lock()

    def store(self, result: TimingResult, coords: Coordinates) -> None:
        entry = (Coordinates(*coords), result)
        with self._write_lock:
            self._entry = entry
            self._loaded = True
            self._write(entry)

    def get(self) -> Optional[TimingResult]:
        entry = self._load()
        return entry[1] if entry else None

    def coordinates(self) -> Optional[Coordinates]:
        entry = self._load()
        return entry[0] if entry else None

    def get_for(self, coords: Coordinates) -> Optional[TimingResult]:
        """Cached result only when it was resolved for ``coords``."""
        entry = self._load()
        if entry and entry[0] == Coordinates(*coords):
            return entry[1]
        return None

    def is_stale(self, today) -> bool:
        """True when the cached result belongs to a different civil date than ``today``."""
        result = self.get()
        if result is None:
            return True
        return result.date != today.isoformat()

    def invalidate(self) -> None:
        with self._write_lock:
            self._entry = None
            self._loaded = True
            if os.path.isfile(self.path):
                try:
                    os.remove(self.path)
                except OSError as exc:
                    logger.warning("Could not remove timings cache %s: %s", self.path, exc)

    def _load(self):
        if self._loaded:
            return self._entry
        self._loaded = True
        if not os.path.isfile(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                blob = json.load(f)
            lat, lon = blob["coordinates"]
            self._entry = (Coordinates(float(lat), float(lon)), TimingResult.from_dict(blob["timings"]))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable timings cache %s: %s", self.path, exc)
            self._entry = None
        return self._entry

    def _write(self, entry) -> None:
        coords, result = entry
        blob = {"coordinates": [coords.latitude, coords.longitude], "timings": result.to_dict()}
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".timings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(blob, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
