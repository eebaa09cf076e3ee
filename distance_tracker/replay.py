#!/usr/bin/env python3
"""
Replay a recorded fix log through a tracking session.

Useful for tuning the process noise and the gating thresholds offline: the
recorded fixes are fed in timestamp order through a fresh TrackingSession and
every step (raw fix, filtered estimate, accepted flag, running total, status)
is written to a CSV. Optionally plots the raw vs filtered track and the
cumulative distance.

Input formats:
    - CSV with columns timestamp, latitude, longitude and optionally
      accuracy, speed, bearing, altitude, provider, is_mock
    - session JSON (.json or .json.gz) with a "gps_samples" list of objects
      using the same keys

Usage:
    python -m distance_tracker.replay drive.csv --out replay.csv --plot replay.png
    python -m distance_tracker.replay session.json.gz --time-unit s --process-noise 2
"""

from __future__ import annotations

import argparse
import gzip
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import TrackerConfig, load_config
from .filters import FILTER_TYPES
from .log_buffer import attach as attach_log_buffer, detach as detach_log_buffer
from .models import RawFix
from .session import TrackingSession

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "latitude", "longitude")
OPTIONAL_COLUMNS = ("accuracy", "speed", "bearing", "altitude", "provider", "is_mock")
OUTPUT_COLUMNS = [
    "timestamp", "raw_lat", "raw_lon", "raw_accuracy",
    "lat", "lon", "accuracy", "accepted", "total_distance_m", "status",
]


def load_fixes(path: Path, time_unit: str = "ms") -> pd.DataFrame:
    """Load a fix log into a DataFrame sorted by timestamp (milliseconds)."""
    if path.suffix == ".csv":
        df = pd.read_csv(path)
    else:
        opener = gzip.open if path.suffix == ".gz" else open
        with opener(path, "rt", encoding="utf-8") as handle:
            data = json.load(handle)
        df = pd.DataFrame(data.get("gps_samples") or [])

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if df.empty or missing:
        raise RuntimeError(f"{path}: no fixes to replay (missing columns: {missing or 'none'})")

    for column in OPTIONAL_COLUMNS:
        if column not in df.columns:
            df[column] = None

    for column in ("timestamp", "latitude", "longitude", "accuracy", "speed", "bearing", "altitude"):
        df[column] = pd.to_numeric(df[column], errors="coerce")
    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    if df.empty:
        raise RuntimeError(f"{path}: no fixes to replay")

    if time_unit == "s":
        df["timestamp"] = (df["timestamp"] * 1000).round()
    df["timestamp"] = df["timestamp"].astype("int64")

    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


def _optional(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _is_mock(value) -> bool:
    if value is None or pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def row_to_fix(row: Dict) -> RawFix:
    provider = row.get("provider")
    return RawFix(
        timestamp=int(row["timestamp"]),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        accuracy=_optional(row.get("accuracy")),
        speed=_optional(row.get("speed")),
        bearing=_optional(row.get("bearing")),
        altitude=_optional(row.get("altitude")),
        provider=provider if isinstance(provider, str) else None,
        is_mock=_is_mock(row.get("is_mock")),
    )


def replay(fixes: pd.DataFrame, config: Optional[TrackerConfig] = None) -> pd.DataFrame:
    """Feed every fix through a fresh session and collect one row per fix."""
    session = TrackingSession(config=config)
    logger.info(f"Replaying {len(fixes)} fixes")
    session.start()

    rows: List[Dict] = []
    for record in fixes.to_dict("records"):
        fix = row_to_fix(record)
        update = session.handle_fix(fix)
        filtered = update.filtered
        rows.append({
            "timestamp": fix.timestamp,
            "raw_lat": fix.latitude,
            "raw_lon": fix.longitude,
            "raw_accuracy": fix.accuracy,
            "lat": filtered.latitude if filtered else None,
            "lon": filtered.longitude if filtered else None,
            "accuracy": filtered.accuracy if filtered else None,
            "accepted": update.accepted,
            "total_distance_m": update.total_distance_m,
            "status": update.status.value,
        })

    session.stop()
    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def plot_replay(result: pd.DataFrame, output_path: Path) -> Path:
    """Raw vs filtered track plus cumulative distance, saved as an image."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, (ax_track, ax_dist) = plt.subplots(1, 2, figsize=(14, 6))

    ax_track.plot(result["raw_lon"], result["raw_lat"], ".", color="lightgray", label="Raw GPS")
    ax_track.plot(result["lon"], result["lat"], "-", color="tab:blue", label="Filtered")
    accepted = result[result["accepted"]]
    ax_track.plot(accepted["lon"], accepted["lat"], ".", color="tab:green", markersize=3,
                  label="Accepted")
    ax_track.set_xlabel("Longitude")
    ax_track.set_ylabel("Latitude")
    ax_track.set_title("Track")
    ax_track.legend()
    ax_track.grid(True, alpha=0.3)

    elapsed_min = (result["timestamp"] - result["timestamp"].iloc[0]) / 60000.0
    ax_dist.plot(elapsed_min, result["total_distance_m"], color="tab:orange")
    ax_dist.set_xlabel("Elapsed (min)")
    ax_dist.set_ylabel("Distance (m)")
    ax_dist.set_title("Cumulative distance")
    ax_dist.grid(True, alpha=0.3)

    fig.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=120)
    plt.close(fig)
    return output_path


def build_config(args: argparse.Namespace) -> TrackerConfig:
    config = load_config(args.config) if args.config else TrackerConfig()
    return config.with_overrides(
        filter_type=args.filter,
        process_noise=args.process_noise,
        min_accuracy_m=args.min_accuracy,
        speed_threshold_mps=args.speed_threshold,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a recorded fix log through the distance tracker")
    parser.add_argument("input", type=Path, help="Fix log (.csv, .json or .json.gz)")
    parser.add_argument("--out", type=Path, default=None, help="Write per-fix results to this CSV")
    parser.add_argument("--plot", type=Path, default=None, help="Save a track/distance plot (PNG)")
    parser.add_argument("--config", type=Path, default=None, help="JSON tracker configuration")
    parser.add_argument("--time-unit", choices=["ms", "s"], default="ms",
                        help="Unit of the input timestamps (default: ms)")
    parser.add_argument("--filter", choices=FILTER_TYPES, default=None, help="Position filter to use")
    parser.add_argument("--process-noise", type=float, default=None, help="Override process noise")
    parser.add_argument("--min-accuracy", type=float, default=None,
                        help="Override accuracy gate (meters)")
    parser.add_argument("--speed-threshold", type=float, default=None,
                        help="Override movement speed threshold (m/s)")
    parser.add_argument("--dump-logs", type=Path, default=None,
                        help="Export the recent tracker log lines to this file")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="-v for info, -vv for per-fix debug output")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    # Console verbosity is independent of what the log buffer captures
    console = logging.StreamHandler()
    console.setLevel(level)
    logging.basicConfig(level=level, handlers=[console],
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = build_config(args)
        fixes = load_fixes(args.input, args.time_unit)
    except (RuntimeError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_buffer = attach_log_buffer() if args.dump_logs else None
    try:
        result = replay(fixes, config)
    finally:
        if log_buffer is not None:
            detach_log_buffer(log_buffer)

    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        result.to_csv(args.out, index=False)
        print(f"✓ Results written to {args.out}")
    if args.plot:
        plot_replay(result, args.plot)
        print(f"✓ Plot saved to {args.plot}")
    if log_buffer is not None:
        log_buffer.export(args.dump_logs)
        print(f"✓ Logs exported to {args.dump_logs}")

    final = result.iloc[-1]
    print(f"Fixes: {len(result)}  accepted: {int(result['accepted'].sum())}  "
          f"distance: {final['total_distance_m']:.1f} m  status: {final['status']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
