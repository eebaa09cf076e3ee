"""
distance_tracker - GPS noise filtering and trusted distance accumulation.

Raw fixes go through a Kalman-style PositionFilter, then a DistanceAccumulator
that rejects outliers and drift and keeps a monotonically growing total with
a STATIONARY / MOVING / PAUSED status. A TrackingSession owns one of each for
a tracking period and talks to the persistence store.

Example usage:
    session = TrackingSession(store=JsonDistanceStore("distance.json"))
    session.start()
    update = session.handle_fix(RawFix(timestamp=0, latitude=37.0,
                                       longitude=-122.0, accuracy=5.0))
    update.total_distance_m, update.status
"""

__version__ = "0.1.0"

from .accumulator import AccumulatorConfig, DistanceAccumulator
from .config import TrackerConfig, load_config
from .errors import InvalidParameter
from .filters import PositionFilter, get_filter, haversine_distance
from .models import (
    AccumulatorSnapshot,
    FilteredFix,
    FilterState,
    RawFix,
    TrackingStatus,
)
from .session import SessionUpdate, TrackingSession
from .storage import DistanceStore, JsonDistanceStore

__all__ = [
    '__version__',
    'AccumulatorConfig',
    'AccumulatorSnapshot',
    'DistanceAccumulator',
    'DistanceStore',
    'FilterState',
    'FilteredFix',
    'InvalidParameter',
    'JsonDistanceStore',
    'PositionFilter',
    'RawFix',
    'SessionUpdate',
    'TrackerConfig',
    'TrackingSession',
    'TrackingStatus',
    'get_filter',
    'haversine_distance',
    'load_config',
]
