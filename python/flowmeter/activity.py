"""Active/idle segmentation of a flow timeline."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from .summary_statistics import StatisticSummary

logger = logging.getLogger(__name__)


class ActivityTracker:
    """Splits packet timestamps into active bursts separated by idle gaps.

    A burst stays open while consecutive packets are at most
    ``activity_timeout`` seconds apart. A longer gap closes it, records its
    duration (``last_seen - first_seen``) and the idle gap, and opens a new
    burst at the current packet. Timestamps only need to support ordering and
    subtraction yielding seconds, so both :class:`~flowmeter.timestamp.Timestamp`
    and plain numbers work.
    """

    __slots__ = ("activity_timeout", "first_seen", "last_seen", "_durations", "_idle")

    def __init__(self, activity_timeout: float) -> None:
        if activity_timeout <= 0:
            raise ValueError("activity_timeout must be positive")
        self.activity_timeout = activity_timeout
        self.first_seen: Optional[Any] = None
        self.last_seen: Optional[Any] = None
        self._durations: List[float] = []
        self._idle: List[float] = []

    @property
    def is_open(self) -> bool:
        return self.first_seen is not None

    def observe(self, timestamp: Any) -> None:
        if self.first_seen is None:
            self.first_seen = timestamp
            self.last_seen = timestamp
            return

        gap = timestamp - self.last_seen
        if gap < 0:
            logger.debug(
                "Out of order timestamp %s precedes %s, counted in the open burst",
                timestamp,
                self.last_seen,
            )
            return
        if gap <= self.activity_timeout:
            self.last_seen = timestamp
            return

        self._close_burst()
        self._idle.append(float(gap))
        self.first_seen = timestamp
        self.last_seen = timestamp

    def close(self) -> None:
        """Close the open burst, if any. Safe to call more than once."""
        if self.first_seen is not None:
            self._close_burst()

    def _close_burst(self) -> None:
        self._durations.append(float(self.last_seen - self.first_seen))
        self.first_seen = None
        self.last_seen = None

    # Samples ---------------------------------------------------------------
    @property
    def durations(self) -> List[float]:
        return list(self._durations)

    @property
    def idle_gaps(self) -> List[float]:
        return list(self._idle)

    @property
    def settled_durations(self) -> List[float]:
        """Burst durations as if the open burst were closed now."""
        durations = list(self._durations)
        if self.first_seen is not None:
            durations.append(float(self.last_seen - self.first_seen))
        return durations

    @property
    def burst_durations(self) -> StatisticSummary:
        return StatisticSummary.of(self._durations)

    @property
    def idle_times(self) -> StatisticSummary:
        return StatisticSummary.of(self._idle)


__all__ = ["ActivityTracker"]
