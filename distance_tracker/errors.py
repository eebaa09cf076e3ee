"""
Exceptions raised by the distance tracker.

Data-quality problems in incoming fixes are never errors; they are absorbed by
the filter and the accumulator gates. Only misconfiguration raises.
"""


class InvalidParameter(ValueError):
    """A configuration value is outside its domain (negative, NaN, inf)."""
