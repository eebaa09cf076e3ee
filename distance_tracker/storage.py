"""
Persistence of daily distance totals.

Only the total and the status are stored. Filter state is deliberately not
persisted: after a restart the filter re-initializes from the first new fix.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Protocol, Union

from .models import TrackingStatus

logger = logging.getLogger(__name__)


class DistanceStore(Protocol):
    def load_total(self, day: str) -> float:
        ...

    def save(self, day: str, total_distance_m: float, status: TrackingStatus) -> None:
        ...


class JsonDistanceStore:
    """
    Per-day totals kept in one JSON document:

        {"days": {"2026-10-19": {"total_distance_m": 1234.5,
                                 "status": "MOVING",
                                 "updated_at": "2026-10-19T08:15:00"}}}

    Paths ending in .gz are gzip-compressed.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _opener(self):
        return gzip.open if self.path.suffix == ".gz" else open

    def _read(self) -> Dict:
        if not self.path.exists():
            return {"days": {}}
        with self._opener()(self.path, "rt", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a JSON object")
        data.setdefault("days", {})
        if not isinstance(data["days"], dict):
            raise ValueError(f"{self.path}: 'days' must be a JSON object")
        return data

    def _write(self, data: Dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with self._opener()(tmp_path, "wt", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def load_total(self, day: str) -> float:
        entry = self._read()["days"].get(day)
        if not entry:
            return 0.0
        return float(entry.get("total_distance_m", 0.0))

    def load_status(self, day: str) -> TrackingStatus:
        entry = self._read()["days"].get(day) or {}
        return TrackingStatus(entry.get("status", TrackingStatus.STATIONARY.value))

    def save(self, day: str, total_distance_m: float, status: TrackingStatus) -> None:
        data = self._read()
        data["days"][day] = {
            "total_distance_m": total_distance_m,
            "status": status.value,
            "updated_at": datetime.now().isoformat(timespec="seconds"),
        }
        self._write(data)
        logger.debug(f"Saved {day}: {total_distance_m:.2f} m ({status.value}) to {self.path}")

    def days(self) -> List[str]:
        return sorted(self._read()["days"])
