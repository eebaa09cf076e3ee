"""
Shared geodesy helpers for the position filters and the distance accumulator.

Every component measures distance through haversine_distance so that filtered
tracks and accumulated totals stay consistent with each other.
"""

import math

from ..models import UNKNOWN_ACCURACY_M, is_valid_accuracy

EARTH_RADIUS_M = 6371000  # mean Earth radius in meters


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Great-circle distance between two GPS coordinates in meters.

    Args:
        lat1, lon1: First coordinate (latitude, longitude in degrees)
        lat2, lon2: Second coordinate (latitude, longitude in degrees)

    Returns:
        float: Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi/2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda/2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))

    return EARTH_RADIUS_M * c


def measurement_sigma(accuracy):
    """
    Accuracy to use as measurement noise (meters).

    Missing, negative or non-finite accuracy means "we know nothing", which is
    modelled as a huge but finite sigma so the gain stays well defined.
    """
    if is_valid_accuracy(accuracy):
        return float(accuracy)
    return UNKNOWN_ACCURACY_M


def elapsed_seconds(now_ms, last_ms):
    """Elapsed time between two fixes, floored at 1 ms."""
    return max(1, now_ms - last_ms) / 1000.0
