"""
Trusted distance accumulation from a stream of filtered fixes.

Each new fix is compared with the last accepted one. Physically implausible
steps (teleports, >200 km/h, duplicate or out-of-order timestamps) are
rejected outright and leave no trace. Plausible steps only count as travel
when they are accurate enough, long enough and fast enough; otherwise they are
GPS drift and feed the stationary timer instead.

Status machine:
    STATIONARY <-> MOVING        on every accepted fix, by the movement gate
    STATIONARY  -> PAUSED        once stationary time exceeds the threshold
    PAUSED      -> MOVING        directly on the next qualifying step
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidParameter
from .filters.utils import haversine_distance
from .models import AccumulatorSnapshot, FilteredFix, TrackingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccumulatorConfig:
    """Gating thresholds, fixed for the lifetime of an accumulator."""

    speed_threshold_mps: float = 1.0  # ~3.6 km/h, slower steps are drift
    outlier_distance_m: float = 1000.0  # single-step jumps beyond this are bad fixes
    max_speed_kmh: float = 200.0
    min_accuracy_m: float = 50.0  # worse fixes never add distance
    min_step_distance_m: float = 0.5
    stationary_threshold_ms: int = 300000  # 5 minutes without movement -> PAUSED

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameter(f"{f.name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise InvalidParameter(f"{f.name} must be finite and >= 0, got {value!r}")

    @property
    def max_speed_mps(self) -> float:
        return self.max_speed_kmh / 3.6


def _validate_total(total_distance_m: float) -> float:
    try:
        total = float(total_distance_m)
    except (TypeError, ValueError):
        raise InvalidParameter(f"total distance must be a number, got {total_distance_m!r}") from None
    if not math.isfinite(total) or total < 0:
        raise InvalidParameter(f"total distance must be finite and >= 0, got {total_distance_m!r}")
    return total


class DistanceAccumulator:
    """
    Running distance total plus movement status for one tracking session.

    Not thread safe; callers serialize ingest() per session.
    """

    def __init__(self, config: Optional[AccumulatorConfig] = None):
        self._config = config or AccumulatorConfig()
        self._last_fix: Optional[FilteredFix] = None
        self._total_distance_m = 0.0
        self._status = TrackingStatus.STATIONARY
        self._stationary_duration_ms = 0

    @property
    def config(self) -> AccumulatorConfig:
        return self._config

    @property
    def total_distance_m(self) -> float:
        return self._total_distance_m

    @property
    def status(self) -> TrackingStatus:
        return self._status

    @property
    def stationary_duration_ms(self) -> int:
        return self._stationary_duration_ms

    @property
    def last_fix(self) -> Optional[FilteredFix]:
        return self._last_fix

    def ingest(self, fix: FilteredFix) -> Tuple[bool, float]:
        """
        Process one filtered fix.

        Returns:
            (accepted, total_distance_m). accepted is False for the baseline
            fix and for rejected outliers, True whenever the fix was taken
            into account, whether or not it counted as movement.
        """
        last = self._last_fix
        if last is None:
            self._last_fix = fix
            logger.debug(f"Baseline fix at ({fix.latitude:.6f}, {fix.longitude:.6f})")
            return False, self._total_distance_m

        cfg = self._config
        delta_ms = fix.timestamp - last.timestamp
        if delta_ms <= 0:
            logger.warning(f"Out-of-order fix rejected: t={fix.timestamp} <= last t={last.timestamp}")
            return False, self._total_distance_m

        distance = haversine_distance(last.latitude, last.longitude, fix.latitude, fix.longitude)
        time_delta_s = delta_ms / 1000.0
        speed = distance / time_delta_s

        if distance >= cfg.outlier_distance_m or speed > cfg.max_speed_mps:
            logger.warning(f"Outlier rejected: distance={distance:.2f} m, speed={speed:.2f} m/s")
            return False, self._total_distance_m

        if self._is_movement(fix, distance, speed):
            self._total_distance_m += distance
            self._status = TrackingStatus.MOVING
            self._stationary_duration_ms = 0
            logger.info(f"Distance added: {distance:.2f} m, Total: {self._total_distance_m:.2f} m, "
                        f"Speed: {speed:.2f} m/s")
        else:
            self._status = TrackingStatus.STATIONARY
            self._stationary_duration_ms += delta_ms
            if self._stationary_duration_ms > cfg.stationary_threshold_ms:
                if self._stationary_duration_ms - delta_ms <= cfg.stationary_threshold_ms:
                    logger.info(f"Stationary for {self._stationary_duration_ms // 1000}s - tracking paused")
                self._status = TrackingStatus.PAUSED

        self._last_fix = fix
        return True, self._total_distance_m

    def _is_movement(self, fix: FilteredFix, distance: float, speed: float) -> bool:
        cfg = self._config
        return (fix.has_accuracy and
                fix.accuracy <= cfg.min_accuracy_m and
                distance > cfg.min_step_distance_m and
                speed >= cfg.speed_threshold_mps)

    def reset(self) -> None:
        """Start a new tracking period (e.g. at the daily boundary)."""
        self._total_distance_m = 0.0
        self._last_fix = None
        self._status = TrackingStatus.STATIONARY
        self._stationary_duration_ms = 0

    def resume(self, total_distance_m: float) -> None:
        """Continue from a persisted total; the next fix becomes a new baseline."""
        self._total_distance_m = _validate_total(total_distance_m)
        logger.info(f"Resumed with total distance {self._total_distance_m:.2f} m")

    def snapshot(self) -> AccumulatorSnapshot:
        return AccumulatorSnapshot(
            total_distance_m=self._total_distance_m,
            status=self._status,
            stationary_duration_ms=self._stationary_duration_ms,
            last_fix=self._last_fix,
        )

    def restore(self, snapshot: AccumulatorSnapshot) -> None:
        if snapshot.stationary_duration_ms < 0:
            raise InvalidParameter(
                f"stationary_duration_ms must be >= 0, got {snapshot.stationary_duration_ms!r}")
        try:
            status = TrackingStatus(snapshot.status)
        except ValueError:
            raise InvalidParameter(f"Unknown tracking status {snapshot.status!r}") from None
        self._total_distance_m = _validate_total(snapshot.total_distance_m)
        self._status = status
        self._stationary_duration_ms = snapshot.stationary_duration_ms
        self._last_fix = snapshot.last_fix

    def get_state(self) -> Dict[str, Any]:
        return {
            'total_distance_m': self._total_distance_m,
            'status': self._status.value,
            'stationary_duration_ms': self._stationary_duration_ms,
            'has_last_fix': self._last_fix is not None,
        }
