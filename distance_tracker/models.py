"""
Value types shared by the filter, the accumulator and the session.

Timestamps are monotonic milliseconds, coordinates are WGS84 degrees and
accuracies are 1-sigma horizontal metres.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

# Measurement sigma used when a fix carries no usable accuracy
UNKNOWN_ACCURACY_M = 1.0e6


def is_valid_accuracy(accuracy: Optional[float]) -> bool:
    """True when accuracy is a finite, non-negative number."""
    return accuracy is not None and math.isfinite(accuracy) and accuracy >= 0


class TrackingStatus(Enum):
    STATIONARY = "STATIONARY"
    MOVING = "MOVING"
    PAUSED = "PAUSED"


@dataclass(frozen=True)
class RawFix:
    """A single location measurement as delivered by the fix source."""

    timestamp: int
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    bearing: Optional[float] = None
    altitude: Optional[float] = None
    provider: Optional[str] = None
    is_mock: bool = False

    @property
    def has_accuracy(self) -> bool:
        return is_valid_accuracy(self.accuracy)


@dataclass(frozen=True)
class FilteredFix:
    """
    Output of a position filter.

    Latitude, longitude and accuracy are the filter's estimate; everything
    else is carried through from the raw fix.
    """

    timestamp: int
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    bearing: Optional[float] = None
    altitude: Optional[float] = None
    provider: Optional[str] = None

    @property
    def has_accuracy(self) -> bool:
        return is_valid_accuracy(self.accuracy)

    @classmethod
    def from_raw(cls, fix: RawFix) -> "FilteredFix":
        return cls(
            timestamp=fix.timestamp,
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy=fix.accuracy,
            speed=fix.speed,
            bearing=fix.bearing,
            altitude=fix.altitude,
            provider=fix.provider,
        )

    def with_estimate(self, latitude: float, longitude: float, accuracy: float) -> "FilteredFix":
        return replace(self, latitude=latitude, longitude=longitude, accuracy=accuracy)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "speed": self.speed,
            "bearing": self.bearing,
            "altitude": self.altitude,
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilteredFix":
        return cls(
            timestamp=int(data["timestamp"]),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=data.get("accuracy"),
            speed=data.get("speed"),
            bearing=data.get("bearing"),
            altitude=data.get("altitude"),
            provider=data.get("provider"),
        )


@dataclass
class FilterState:
    """Mutable estimator state owned by one position filter."""

    timestamp: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    accuracy: float = 1.0
    variance: float = -1.0  # negative means uninitialized
    process_noise: float = 3.0

    @property
    def initialized(self) -> bool:
        return self.variance >= 0


@dataclass(frozen=True)
class AccumulatorSnapshot:
    """Persistable view of a distance accumulator."""

    total_distance_m: float = 0.0
    status: TrackingStatus = TrackingStatus.STATIONARY
    stationary_duration_ms: int = 0
    last_fix: Optional[FilteredFix] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_distance_m": self.total_distance_m,
            "status": self.status.value,
            "stationary_duration_ms": self.stationary_duration_ms,
            "last_fix": self.last_fix.to_dict() if self.last_fix else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccumulatorSnapshot":
        last_fix = data.get("last_fix")
        return cls(
            total_distance_m=float(data.get("total_distance_m", 0.0)),
            status=TrackingStatus(data.get("status", TrackingStatus.STATIONARY.value)),
            stationary_duration_ms=int(data.get("stationary_duration_ms", 0)),
            last_fix=FilteredFix.from_dict(last_fix) if last_fix else None,
        )
