"""
Abstract base class for position filters.

All filter implementations must inherit from PositionFilterBase and implement
the required methods.
"""

import math
from abc import ABC, abstractmethod

from ..errors import InvalidParameter


def validate_process_noise(value):
    """Return value as float, or raise InvalidParameter if unusable."""
    try:
        q = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"process_noise must be a number, got {value!r}") from None
    if not math.isfinite(q) or q < 0:
        raise InvalidParameter(f"process_noise must be finite and >= 0, got {value!r}")
    return q


class PositionFilterBase(ABC):
    """
    Abstract base class for single-fix position estimators.

    All subclasses must implement:
    - process(fix) -> FilteredFix
    - reset() -> None
    - set_process_noise(q) -> None
    - get_state() -> dict

    This interface allows different estimators to be swapped inside a
    tracking session without touching the accumulator.
    """

    @abstractmethod
    def process(self, fix):
        """
        Fold one raw fix into the estimate.

        Args:
            fix (RawFix): Measurement to process

        Returns:
            FilteredFix: Smoothed position with updated accuracy. The first
            fix after construction or reset is returned unchanged.
        """
        pass

    @abstractmethod
    def reset(self):
        """Return the filter to the uninitialized state."""
        pass

    @abstractmethod
    def set_process_noise(self, q):
        """
        Change the process noise used by subsequent process() calls.

        Raises:
            InvalidParameter: If q is negative or not finite
        """
        pass

    @abstractmethod
    def get_state(self):
        """
        Get current filter state.

        Returns:
            dict: State dictionary with at least:
                - 'initialized': whether a fix has been processed since reset
                - 'latitude', 'longitude', 'accuracy': current estimate
                - 'variance': internal uncertainty (negative = uninitialized)
                - 'process_noise': current process noise
                - 'timestamp': timestamp of the last processed fix
        """
        pass
