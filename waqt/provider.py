"""Resolve coordinates into a TimingResult through an ordered chain of strategies."""

import datetime
import logging

from waqt.errors import ProviderError
from waqt.models import Coordinates, TimingResult
from waqt.offline import OfflineStrategy
from waqt.prayer_api import RemoteStrategy

logger = logging.getLogger(__name__)


class PrayerTimeProvider:
    """
    Try each strategy in order and return the first TimingResult.

    The default chain is remote Aladhan first, local adhanpy second. A failing
    strategy is logged and skipped, never retried. Only the last strategy's
    failure reaches the caller, always as a ProviderError.
    """

    def __init__(self, strategies=None):
        if strategies is None:
            strategies = [RemoteStrategy(), OfflineStrategy()]
        self.strategies = list(strategies)
        if not self.strategies:
            raise ValueError("PrayerTimeProvider needs at least one strategy")

    def resolve(self, coords: Coordinates, date: datetime.date = None) -> TimingResult:
        coords = Coordinates(*coords).validate()
        last_error = None
        for strategy in self.strategies:
            try:
                result = strategy.resolve(coords, date)
            except ProviderError as exc:
                logger.warning("%s strategy failed (%s): %s", strategy.name, type(exc).__name__, exc)
                last_error = exc
                continue
            logger.info("Resolved timings for %s via %s strategy", coords, strategy.name)
            return result

        logger.error("Timings unavailable for %s: %s", coords, last_error)
        raise last_error
