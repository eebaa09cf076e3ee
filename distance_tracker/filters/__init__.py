"""
Pluggable position filter implementations.

This module provides a factory function to instantiate the position filters,
which all conform to PositionFilterBase so a tracking session can swap them.

Example usage:
    position_filter = get_filter('kalman')
    position_filter = get_filter('kalman-filterpy', process_noise=2.0)

    filtered = position_filter.process(raw_fix)
    state = position_filter.get_state()
"""

from .base import PositionFilterBase
from .kalman import DEFAULT_PROCESS_NOISE, PositionFilter
from .utils import haversine_distance

FILTER_TYPES = ('kalman', 'kalman-filterpy')


def get_filter(filter_type='kalman', **kwargs):
    """
    Factory function to get filter implementation by name.

    Args:
        filter_type (str): Filter type - options:
            - 'kalman': Scalar-variance Kalman filter (RECOMMENDED - no dependencies)
            - 'kalman-filterpy': Same model on top of filterpy (reference implementation)
        **kwargs: Additional arguments passed to filter constructor

    Returns:
        Filter instance with process(), reset(), set_process_noise(), get_state() methods

    Raises:
        ValueError: If filter_type is not recognized
        InvalidParameter: If the constructor arguments are out of range
    """
    if filter_type == 'kalman':
        return PositionFilter(**kwargs)
    elif filter_type == 'kalman-filterpy':
        from .kalman_filterpy import FilterPyPositionFilter
        return FilterPyPositionFilter(**kwargs)
    else:
        raise ValueError(f"Unknown filter type: {filter_type}. Use 'kalman' or 'kalman-filterpy'")


__all__ = [
    'DEFAULT_PROCESS_NOISE',
    'FILTER_TYPES',
    'PositionFilter',
    'PositionFilterBase',
    'get_filter',
    'haversine_distance',
]
