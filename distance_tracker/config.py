"""Tracker configuration: filter choice, process noise and accumulator gates."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

from .accumulator import AccumulatorConfig
from .errors import InvalidParameter
from .filters import DEFAULT_PROCESS_NOISE, FILTER_TYPES
from .filters.base import validate_process_noise

_ACCUMULATOR_KEYS = frozenset(f.name for f in fields(AccumulatorConfig))


@dataclass(frozen=True)
class TrackerConfig:
    filter_type: str = "kalman"
    process_noise: float = DEFAULT_PROCESS_NOISE
    accumulator: AccumulatorConfig = field(default_factory=AccumulatorConfig)

    def __post_init__(self):
        if self.filter_type not in FILTER_TYPES:
            raise InvalidParameter(f"filter_type must be one of {FILTER_TYPES}, got {self.filter_type!r}")
        validate_process_noise(self.process_noise)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        """
        Build a config from flat keys, e.g. {"process_noise": 2.0, "max_speed_kmh": 150}.

        Raises:
            InvalidParameter: On unknown keys or out-of-range values
        """
        top: Dict[str, Any] = {}
        gates: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("filter_type", "process_noise"):
                top[key] = value
            elif key in _ACCUMULATOR_KEYS:
                gates[key] = value
            else:
                raise InvalidParameter(f"Unknown configuration key: {key}")
        return cls(accumulator=AccumulatorConfig(**gates), **top)

    def to_dict(self) -> Dict[str, Any]:
        data = {"filter_type": self.filter_type, "process_noise": self.process_noise}
        data.update(asdict(self.accumulator))
        return data

    def with_overrides(self, **overrides: Any) -> "TrackerConfig":
        """Copy with the non-None overrides applied (flat keys, as from_dict)."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return TrackerConfig.from_dict(data)


def load_config(path: Union[str, Path]) -> TrackerConfig:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise InvalidParameter(f"{path}: configuration must be a JSON object")
    return TrackerConfig.from_dict(data)
