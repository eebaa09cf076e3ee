"""Tests for the Kalman position filters."""

import math

import pytest

from distance_tracker import InvalidParameter, RawFix
from distance_tracker.filters import PositionFilter, get_filter
from distance_tracker.filters.kalman import kalman_gain
from distance_tracker.filters.kalman_filterpy import FilterPyPositionFilter
from distance_tracker.models import UNKNOWN_ACCURACY_M


def make_fix(t, lat=37.0, lon=-122.0, accuracy=5.0, **extra):
    return RawFix(timestamp=t, latitude=lat, longitude=lon, accuracy=accuracy, **extra)


def test_first_fix_passes_through():
    position_filter = PositionFilter()
    fix = make_fix(1000, lat=37.1234567, lon=-122.7654321, accuracy=12.5,
                   speed=3.2, bearing=90.0, altitude=15.0, provider="gps")

    out = position_filter.process(fix)

    assert out.latitude == fix.latitude
    assert out.longitude == fix.longitude
    assert out.accuracy == fix.accuracy
    assert out.timestamp == fix.timestamp
    assert (out.speed, out.bearing, out.altitude, out.provider) == (3.2, 90.0, 15.0, "gps")
    state = position_filter.get_state()
    assert state['initialized']
    assert state['variance'] == pytest.approx(12.5 ** 2)


def test_second_fix_applies_kalman_update():
    position_filter = PositionFilter(process_noise=3.0)
    position_filter.process(make_fix(0, lat=37.0, accuracy=5.0))

    out = position_filter.process(make_fix(1000, lat=37.001, accuracy=5.0))

    variance = 25.0 + 1.0 * 9.0
    k = variance / (variance + 25.0)
    assert out.latitude == pytest.approx(37.0 + k * 0.001, abs=1e-12)
    assert out.longitude == pytest.approx(-122.0)
    assert out.accuracy == pytest.approx(math.sqrt((1 - k) * variance))
    assert position_filter.get_state()['variance'] == pytest.approx(variance * (1 - k))
    # Estimate lies between the previous estimate and the measurement
    assert 37.0 < out.latitude < 37.001


def test_elapsed_time_is_floored_at_one_millisecond():
    position_filter = PositionFilter(process_noise=2.0)
    position_filter.process(make_fix(5000, accuracy=4.0))

    position_filter.process(make_fix(5000, lat=37.0001, accuracy=4.0))

    variance = 16.0 + 0.001 * 4.0
    k = variance / (variance + 16.0)
    assert position_filter.get_state()['variance'] == pytest.approx(variance * (1 - k))


def test_carried_fields_come_from_latest_fix():
    position_filter = PositionFilter()
    position_filter.process(make_fix(0, speed=1.0, bearing=10.0))

    out = position_filter.process(make_fix(1000, speed=2.5, bearing=45.0, altitude=30.0))

    assert (out.timestamp, out.speed, out.bearing, out.altitude) == (1000, 2.5, 45.0, 30.0)


def test_accuracy_shrinks_on_repeated_fixes():
    position_filter = PositionFilter(process_noise=0.5)
    accuracies = []
    for i in range(10):
        out = position_filter.process(make_fix(i * 1000, accuracy=10.0))
        accuracies.append(out.accuracy)

    assert accuracies[-1] < accuracies[0]


def test_reset_returns_to_pass_through():
    position_filter = PositionFilter()
    position_filter.process(make_fix(0))
    position_filter.process(make_fix(1000, lat=37.001))

    position_filter.reset()
    assert not position_filter.get_state()['initialized']
    assert position_filter.get_state()['variance'] == -1.0

    fix = make_fix(2000, lat=38.5, lon=-121.0, accuracy=7.0)
    out = position_filter.process(fix)
    assert (out.latitude, out.longitude, out.accuracy) == (38.5, -121.0, 7.0)


def test_missing_accuracy_is_maximally_uncertain():
    position_filter = PositionFilter()
    position_filter.process(make_fix(0, lat=37.0, accuracy=5.0))

    out = position_filter.process(make_fix(1000, lat=37.01, accuracy=None))

    # Measurement is almost entirely ignored
    assert out.latitude == pytest.approx(37.0, abs=1e-9)
    assert out.has_accuracy


def test_missing_accuracy_on_first_fix_then_good_fix_takes_over():
    position_filter = PositionFilter()
    first = position_filter.process(make_fix(0, lat=37.0, accuracy=float("nan")))
    assert position_filter.get_state()['accuracy'] == UNKNOWN_ACCURACY_M
    assert first.latitude == 37.0

    out = position_filter.process(make_fix(1000, lat=37.001, accuracy=5.0))
    assert out.latitude == pytest.approx(37.001, abs=1e-9)


def test_zero_noise_and_zero_accuracy_does_not_divide_by_zero():
    position_filter = PositionFilter(process_noise=0.0)
    position_filter.process(make_fix(0, lat=37.0, accuracy=0.0))

    out = position_filter.process(make_fix(1000, lat=37.0005, accuracy=0.0))

    assert out.latitude == pytest.approx(37.0005)
    assert out.accuracy == 0.0
    assert kalman_gain(0.0, 0.0) == 1.0


def test_set_process_noise_takes_effect_immediately():
    position_filter = PositionFilter(process_noise=3.0)
    position_filter.process(make_fix(0, accuracy=5.0))
    position_filter.set_process_noise(0.0)

    position_filter.process(make_fix(1000, accuracy=5.0))

    # No predicted growth: 25 -> 25 * 25 / 50
    assert position_filter.get_state()['variance'] == pytest.approx(12.5)
    assert position_filter.process_noise == 0.0


@pytest.mark.parametrize("bad", [-0.1, float("nan"), float("inf"), "loud"])
def test_invalid_process_noise_rejected(bad):
    position_filter = PositionFilter()
    with pytest.raises(InvalidParameter):
        position_filter.set_process_noise(bad)
    with pytest.raises(InvalidParameter):
        PositionFilter(process_noise=bad)
    assert position_filter.process_noise == 3.0


def test_get_filter_factory():
    assert isinstance(get_filter('kalman'), PositionFilter)
    assert isinstance(get_filter('kalman-filterpy', process_noise=1.0), FilterPyPositionFilter)
    with pytest.raises(ValueError):
        get_filter('ukf')


def test_filterpy_filter_matches_scalar_filter():
    scalar = PositionFilter(process_noise=2.0)
    reference = FilterPyPositionFilter(process_noise=2.0)
    fixes = [
        make_fix(0, lat=37.0, lon=-122.0, accuracy=8.0),
        make_fix(1000, lat=37.00005, lon=-122.00002, accuracy=6.0),
        make_fix(3000, lat=37.00011, lon=-122.00001, accuracy=15.0),
        make_fix(3000, lat=37.00012, lon=-122.00003, accuracy=4.0),
        make_fix(9000, lat=37.0002, lon=-121.99995, accuracy=None),
        make_fix(10000, lat=37.00025, lon=-121.9999, accuracy=3.0),
    ]

    for fix in fixes:
        a = scalar.process(fix)
        b = reference.process(fix)
        assert b.latitude == pytest.approx(a.latitude, abs=1e-10)
        assert b.longitude == pytest.approx(a.longitude, abs=1e-10)
        assert b.accuracy == pytest.approx(a.accuracy, rel=1e-9)

    assert reference.get_state()['variance'] == pytest.approx(scalar.get_state()['variance'], rel=1e-9)


def test_filterpy_filter_reset():
    reference = FilterPyPositionFilter()
    reference.process(make_fix(0))
    reference.process(make_fix(1000, lat=37.001))
    reference.reset()

    assert reference.get_state()['variance'] == -1.0
    out = reference.process(make_fix(2000, lat=40.0, accuracy=9.0))
    assert (out.latitude, out.accuracy) == (40.0, 9.0)
