"""
filterpy-backed position filter.

Same model as PositionFilter, written as a 2D linear Kalman filter:
- State: [lat, lng] (degrees)
- F = H = I (random walk, position measured directly)
- Q = dt * q² * I, R = accuracy² * I

Because Q, R and the initial P are all isotropic the covariance stays a scalar
multiple of I, and the numbers agree with the scalar implementation to
floating-point precision. Useful as a reference and as a starting point for
richer motion models (velocity states, anisotropic noise).
"""

import logging
import math

import numpy as np
from filterpy.kalman import KalmanFilter as FilterPyKalmanFilter

from ..models import FilteredFix
from .base import PositionFilterBase, validate_process_noise
from .kalman import DEFAULT_PROCESS_NOISE
from .utils import elapsed_seconds, measurement_sigma

logger = logging.getLogger(__name__)


class FilterPyPositionFilter(PositionFilterBase):
    """Position filter delegating predict/update to filterpy."""

    def __init__(self, process_noise=DEFAULT_PROCESS_NOISE):
        self._process_noise = validate_process_noise(process_noise)
        self.kf = FilterPyKalmanFilter(dim_x=2, dim_z=2)
        self.kf.F = np.eye(2)
        self.kf.H = np.eye(2)
        self.timestamp = 0
        self.accuracy = 1.0
        self._initialized = False

    def process(self, fix):
        sigma = measurement_sigma(fix.accuracy)
        z = np.array([[fix.latitude], [fix.longitude]])

        if not self._initialized:
            self.kf.x = z
            self.kf.P = np.eye(2) * sigma * sigma
            self.accuracy = sigma
            self.timestamp = fix.timestamp
            self._initialized = True
            logger.debug(f"filterpy filter initialized at ({fix.latitude:.6f}, {fix.longitude:.6f}) ±{sigma:.1f}m")
            return FilteredFix.from_raw(fix)

        dt = elapsed_seconds(fix.timestamp, self.timestamp)
        self.timestamp = fix.timestamp

        self.kf.predict(Q=dt * self._process_noise * self._process_noise)

        if self.kf.P[0, 0] + sigma * sigma <= 0:
            # S would be singular: both sides claim certainty, take the measurement
            self.kf.x = z
            self.kf.P = np.zeros((2, 2))
        else:
            self.kf.update(z, R=sigma * sigma)

        self.accuracy = math.sqrt(max(0.0, float(self.kf.P[0, 0])))
        lat, lng = (float(v) for v in self.kf.x[:, 0])

        return FilteredFix.from_raw(fix).with_estimate(lat, lng, self.accuracy)

    def reset(self):
        self._initialized = False

    def set_process_noise(self, q):
        self._process_noise = validate_process_noise(q)

    @property
    def process_noise(self):
        return self._process_noise

    def get_state(self):
        if self._initialized:
            variance = float(self.kf.P[0, 0])
        else:
            variance = -1.0
        return {
            'initialized': self._initialized,
            'timestamp': self.timestamp,
            'latitude': float(self.kf.x[0, 0]),
            'longitude': float(self.kf.x[1, 0]),
            'accuracy': self.accuracy,
            'variance': variance,
            'process_noise': self._process_noise,
        }
