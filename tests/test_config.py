"""Tests for tracker configuration loading."""

import json

import pytest

from distance_tracker import AccumulatorConfig, InvalidParameter, TrackerConfig, load_config


def test_defaults():
    config = TrackerConfig()

    assert config.filter_type == "kalman"
    assert config.process_noise == 3.0
    assert config.accumulator == AccumulatorConfig()
    assert config.accumulator.speed_threshold_mps == 1.0
    assert config.accumulator.outlier_distance_m == 1000.0
    assert config.accumulator.max_speed_kmh == 200.0
    assert config.accumulator.min_accuracy_m == 50.0
    assert config.accumulator.min_step_distance_m == 0.5
    assert config.accumulator.stationary_threshold_ms == 300000


def test_load_flat_json(tmp_path):
    path = tmp_path / "tracker.json"
    path.write_text(json.dumps({
        "process_noise": 1.0,
        "max_speed_kmh": 120,
        "stationary_threshold_ms": 60000,
    }), encoding="utf-8")

    config = load_config(path)

    assert config.process_noise == 1.0
    assert config.accumulator.max_speed_kmh == 120
    assert config.accumulator.max_speed_mps == pytest.approx(33.333, abs=0.001)
    assert config.accumulator.stationary_threshold_ms == 60000
    assert config.accumulator.min_accuracy_m == 50.0


def test_round_trip_and_overrides():
    config = TrackerConfig.from_dict({"min_accuracy_m": 20.0})

    assert TrackerConfig.from_dict(config.to_dict()) == config
    overridden = config.with_overrides(process_noise=0.5, min_accuracy_m=None)
    assert overridden.process_noise == 0.5
    assert overridden.accumulator.min_accuracy_m == 20.0


@pytest.mark.parametrize("data", [
    {"process_noise": -3.0},
    {"filter_type": "ukf"},
    {"outlier_distance_m": -1},
    {"unknown_threshold": 1},
])
def test_invalid_values_fail_fast(data):
    with pytest.raises(InvalidParameter):
        TrackerConfig.from_dict(data)


def test_non_object_json_rejected(tmp_path):
    path = tmp_path / "tracker.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(InvalidParameter):
        load_config(path)
