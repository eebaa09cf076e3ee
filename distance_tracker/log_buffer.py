"""
In-memory ring buffer of recent log lines.

Attach a RecentLogHandler to the "distance_tracker" logger to keep the last
N formatted records around for a diagnostics screen or a bug report export.
"""

import logging
import threading
from collections import deque
from pathlib import Path

DEFAULT_CAPACITY = 1000
DEFAULT_FORMAT = "[%(asctime)s.%(msecs)03d] %(levelname)s %(name)s: %(message)s"


class RecentLogHandler(logging.Handler):
    """Logging handler that keeps the most recent `capacity` lines (FIFO)."""

    def __init__(self, capacity=DEFAULT_CAPACITY, level=logging.NOTSET):
        super().__init__(level)
        self._lines = deque(maxlen=capacity)
        self._buffer_lock = threading.Lock()
        self.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt="%H:%M:%S"))

    def emit(self, record):
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        with self._buffer_lock:
            self._lines.append(line)

    def lines(self):
        with self._buffer_lock:
            return list(self._lines)

    def clear(self):
        with self._buffer_lock:
            self._lines.clear()

    def export(self, path):
        """Write the buffered lines to a text file and return its path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(self.lines()) + "\n", encoding="utf-8")
        return path


def attach(logger_name="distance_tracker", capacity=DEFAULT_CAPACITY, level=logging.DEBUG):
    """Create a RecentLogHandler and attach it to the named logger."""
    handler = RecentLogHandler(capacity=capacity)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    handler.previous_level = target.level
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)
    return handler


def detach(handler, logger_name="distance_tracker"):
    """Remove a handler added by attach() and restore the logger's level."""
    target = logging.getLogger(logger_name)
    target.removeHandler(handler)
    target.setLevel(getattr(handler, "previous_level", target.level))
