"""
One tracking period: a position filter, a distance accumulator and an
optional persistence sink, owned together.

The host application creates a session when tracking starts, feeds it every
location callback through handle_fix(), and calls roll_over()/reset_daily()
at the day boundary. There is no global instance; whoever owns the session
owns its lifecycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from .accumulator import DistanceAccumulator
from .config import TrackerConfig
from .filters import get_filter
from .models import FilteredFix, RawFix, TrackingStatus
from .storage import DistanceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUpdate:
    """Result of feeding one raw fix through the session."""

    filtered: Optional[FilteredFix]
    accepted: bool
    total_distance_m: float
    status: TrackingStatus


class TrackingSession:
    """
    Filter + accumulator pair for one tracking period.

    Calls must be serialized by the caller; nothing here blocks except the
    store, which is only touched when the total or status changes.
    """

    def __init__(self, config: Optional[TrackerConfig] = None,
                 store: Optional[DistanceStore] = None,
                 day: Optional[str] = None):
        self.config = config or TrackerConfig()
        self.store = store
        self.day = day or date.today().isoformat()
        self.position_filter = get_filter(self.config.filter_type,
                                          process_noise=self.config.process_noise)
        self.accumulator = DistanceAccumulator(self.config.accumulator)
        self.is_tracking = False
        self._persisted = None  # (total, status) last written to the store

    def start(self) -> None:
        """Begin tracking, continuing from today's persisted total if any."""
        if self.store is not None:
            try:
                self.accumulator.resume(self.store.load_total(self.day))
            except (OSError, ValueError) as e:
                logger.error(f"Error loading distance for {self.day}: {e}")
                self.accumulator.resume(0.0)
            self._persisted = (self.accumulator.total_distance_m, self.accumulator.status)
        self.is_tracking = True
        logger.info(f"Tracking started for {self.day} with distance: {self.accumulator.total_distance_m:.2f} m")

    def stop(self) -> None:
        self._persist(force=True)
        self.is_tracking = False
        logger.info(f"Tracking stopped at {self.accumulator.total_distance_m:.2f} m")

    def handle_fix(self, fix: RawFix) -> SessionUpdate:
        accumulator = self.accumulator

        if fix.is_mock:
            logger.warning("Mock location detected and ignored.")
            return SessionUpdate(None, False, accumulator.total_distance_m, accumulator.status)

        filtered = self.position_filter.process(fix)
        accepted, total = accumulator.ingest(filtered)
        self._persist()
        return SessionUpdate(filtered, accepted, total, accumulator.status)

    def reset_daily(self, day: Optional[str] = None) -> None:
        """Zero both components and start a new period (defaults to today)."""
        self.position_filter.reset()
        self.accumulator.reset()
        self.day = day or date.today().isoformat()
        self._persist(force=True)
        logger.info(f"Daily data reset. New day: {self.day}")

    def roll_over(self, today: Optional[str] = None) -> bool:
        """Reset when the calendar day changed. Returns True if it did."""
        today = today or date.today().isoformat()
        if today == self.day:
            return False
        self.reset_daily(today)
        return True

    def _persist(self, force: bool = False) -> None:
        if self.store is None:
            return
        current = (self.accumulator.total_distance_m, self.accumulator.status)
        if not force and current == self._persisted:
            return
        try:
            self.store.save(self.day, current[0], current[1])
        except (OSError, ValueError) as e:
            logger.error(f"Error saving distance for {self.day}: {e}")
            return
        self._persisted = current

    def get_state(self) -> Dict[str, Any]:
        state = self.accumulator.get_state()
        state.update({
            'is_tracking': self.is_tracking,
            'day': self.day,
            'filter': self.position_filter.get_state(),
        })
        return state
