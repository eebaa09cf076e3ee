"""
Scalar Kalman filter for GPS position smoothing.

Latitude and longitude share one isotropic variance, so the whole filter is a
handful of float operations per fix:

    predict:  variance += dt * q²
    gain:     k = variance / (variance + accuracy²)
    update:   lat += k * (z_lat - lat), lng += k * (z_lng - lng)
              accuracy = sqrt((1 - k) * variance), variance *= (1 - k)

q is the process noise (m/√s): how fast uncertainty grows while no fixes
arrive. The first fix after construction or reset initializes the state and
is passed through unchanged.
"""

import logging
import math

from ..models import FilteredFix, FilterState
from .base import PositionFilterBase, validate_process_noise
from .utils import elapsed_seconds, measurement_sigma

logger = logging.getLogger(__name__)

DEFAULT_PROCESS_NOISE = 3.0


def kalman_gain(variance, measurement_variance):
    """Gain in [0, 1]; both variances zero means trust the measurement."""
    total = variance + measurement_variance
    if total <= 0:
        return 1.0
    return variance / total


class PositionFilter(PositionFilterBase):
    """
    Kalman-style position estimator with a single variance term.

    Not thread safe: one instance belongs to one tracking session and must be
    fed serially.
    """

    def __init__(self, process_noise=DEFAULT_PROCESS_NOISE):
        """
        Args:
            process_noise (float): Growth of positional uncertainty per second

        Raises:
            InvalidParameter: If process_noise is negative or not finite
        """
        self.state = FilterState(process_noise=validate_process_noise(process_noise))

    def process(self, fix):
        state = self.state
        sigma = measurement_sigma(fix.accuracy)

        if state.variance < 0:
            state.latitude = fix.latitude
            state.longitude = fix.longitude
            state.accuracy = sigma
            state.variance = sigma * sigma
            state.timestamp = fix.timestamp
            logger.debug(f"Filter initialized at ({fix.latitude:.6f}, {fix.longitude:.6f}) ±{sigma:.1f}m")
            return FilteredFix.from_raw(fix)

        dt = elapsed_seconds(fix.timestamp, state.timestamp)
        state.timestamp = fix.timestamp

        # Predict to now
        state.variance += dt * state.process_noise * state.process_noise

        k = kalman_gain(state.variance, sigma * sigma)

        state.latitude += k * (fix.latitude - state.latitude)
        state.longitude += k * (fix.longitude - state.longitude)
        state.accuracy = math.sqrt((1 - k) * state.variance)
        state.variance *= (1 - k)

        return FilteredFix.from_raw(fix).with_estimate(
            state.latitude, state.longitude, state.accuracy
        )

    def reset(self):
        self.state.variance = -1.0

    def set_process_noise(self, q):
        self.state.process_noise = validate_process_noise(q)

    @property
    def process_noise(self):
        return self.state.process_noise

    def get_state(self):
        state = self.state
        return {
            'initialized': state.initialized,
            'timestamp': state.timestamp,
            'latitude': state.latitude,
            'longitude': state.longitude,
            'accuracy': state.accuracy,
            'variance': state.variance,
            'process_noise': state.process_noise,
        }
