"""Tests for SGP4 propagation adapters."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from orbitwatch.core.tle import TLE
from orbitwatch.core.propagation import (
    PropagationError,
    StateVector,
    propagate,
    propagate_at,
    propagate_batch,
    propagate_positions,
)


ISS_TLE_LINES = (
    "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997",
    "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592",
)

CSS_TLE_LINES = (
    "1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993",
    "2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018",
)

HUBBLE_TLE_LINES = (
    "1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994",
    "2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912",
)

# Very low orbit with an extreme drag term; SGP4 gives up on it within weeks of epoch
DECAYED_TLE_LINES = (
    "1 90003U 24001B   24001.00000000  .01000000  00000-0  50000-1 0  9993",
    "2 90003  51.6412 207.4925 0004948 290.5508 178.9792 16.40000000  1001",
)


@pytest.fixture
def iss_tle() -> TLE:
    """ISS TLE for testing."""
    return TLE.from_lines(ISS_TLE_LINES[0], ISS_TLE_LINES[1], "ISS (ZARYA)")


@pytest.fixture
def css_tle() -> TLE:
    """Chinese Space Station (Tiangong) TLE for testing."""
    return TLE.from_lines(CSS_TLE_LINES[0], CSS_TLE_LINES[1], "CSS (TIANHE)")


@pytest.fixture
def hubble_tle() -> TLE:
    """Hubble Space Telescope TLE for testing."""
    return TLE.from_lines(HUBBLE_TLE_LINES[0], HUBBLE_TLE_LINES[1], "HUBBLE")


@pytest.fixture
def decayed_tle() -> TLE:
    return TLE.from_lines(*DECAYED_TLE_LINES, name="DECAYED")


def test_propagate_at_epoch(iss_tle: TLE):
    """Propagating to the epoch yields a LEO state tagged with that time."""
    state = propagate_at(iss_tle, iss_tle.epoch)

    assert isinstance(state, StateVector)
    assert state.position_km.shape == (3,)
    assert state.velocity_km_s.shape == (3,)
    assert state.epoch == iss_tle.epoch

    # ~6800 km from Earth center, ~7.7 km/s
    assert 6500 < np.linalg.norm(state.position_km) < 7000
    assert 7.0 < np.linalg.norm(state.velocity_km_s) < 8.0


def test_propagate_at_naive_datetime_is_utc(iss_tle: TLE):
    """A naive timestamp is read as UTC."""
    aware = iss_tle.epoch + timedelta(minutes=10)
    naive = aware.replace(tzinfo=None)

    np.testing.assert_allclose(
        propagate_at(iss_tle, naive).position_km,
        propagate_at(iss_tle, aware).position_km,
    )


def test_propagate_multiple_times(iss_tle: TLE):
    """Test single TLE propagation to multiple times."""
    times = [iss_tle.epoch + timedelta(hours=h) for h in range(3)]
    states = propagate(iss_tle, times)

    assert len(states) == 3
    for i in range(1, 3):
        dist = np.linalg.norm(states[i].position_km - states[0].position_km)
        assert dist > 0
        assert states[i].epoch == times[i]


def test_propagation_error_is_value_error():
    """PropagationError carries its context and is a ValueError."""
    t = datetime(2024, 2, 14, tzinfo=timezone.utc)
    exc = PropagationError(25544, t, 6)

    assert isinstance(exc, ValueError)
    assert exc.norad_id == 25544
    assert exc.error_code == 6
    assert "error code 6" in str(exc)


def test_propagate_positions_matches_single(iss_tle: TLE):
    """The vectorized sweep agrees with per-instant propagation."""
    times = [iss_tle.epoch + timedelta(seconds=s) for s in (0, 1, 60, 3600)]
    positions, valid = propagate_positions(iss_tle, times)

    assert positions.shape == (4, 3)
    assert valid.dtype == np.bool_
    assert np.all(valid)
    for i, t in enumerate(times):
        np.testing.assert_allclose(positions[i], propagate_at(iss_tle, t).position_km, rtol=1e-9)


def test_propagate_positions_empty(iss_tle: TLE):
    positions, valid = propagate_positions(iss_tle, [])
    assert positions.shape == (0, 3)
    assert valid.shape == (0,)


def test_propagate_batch_shape(iss_tle: TLE, css_tle: TLE, hubble_tle: TLE):
    """Test batch propagation returns correct shape."""
    states, valid = propagate_batch([iss_tle, css_tle, hubble_tle], iss_tle.epoch)

    assert states.shape == (3, 6)
    assert valid.shape == (3,)
    assert valid.dtype == np.bool_
    assert np.all(valid)


def test_propagate_batch_empty():
    """Test batch propagation with empty list."""
    states, valid = propagate_batch([], datetime.now(timezone.utc))

    assert states.shape == (0, 6)
    assert valid.shape == (0,)


def test_propagate_batch_values(iss_tle: TLE):
    """Test that batch propagation matches single propagation."""
    time = iss_tle.epoch + timedelta(hours=1)
    single = propagate_at(iss_tle, time)

    batch_states, batch_valid = propagate_batch([iss_tle], time)

    assert batch_valid[0]
    np.testing.assert_allclose(batch_states[0, 0:3], single.position_km, rtol=1e-10)
    np.testing.assert_allclose(batch_states[0, 3:6], single.velocity_km_s, rtol=1e-10)


def test_propagation_stale_tle(iss_tle: TLE):
    """Far beyond epoch the strict API either succeeds or raises PropagationError."""
    far_future = iss_tle.epoch + timedelta(days=365 * 10)
    try:
        states = propagate(iss_tle, [far_future])
        assert len(states) == 1
    except PropagationError:
        pass


def test_propagate_positions_decayed_object_masked(decayed_tle: TLE):
    """The sweep propagator reports decay through the mask instead of raising."""
    start = datetime(2024, 2, 14, tzinfo=timezone.utc)
    times = [start + timedelta(hours=h) for h in range(25)]
    positions, valid = propagate_positions(decayed_tle, times)

    assert positions.shape == (25, 3)
    assert valid.shape == (25,)
    assert not valid.any()
    assert np.all(np.isnan(positions))


def test_decayed_object_valid_at_its_epoch(decayed_tle: TLE):
    positions, valid = propagate_positions(decayed_tle, [decayed_tle.epoch])
    assert valid.all()
    assert np.all(np.isfinite(positions))


def test_propagate_at_decayed_object_raises(decayed_tle: TLE):
    with pytest.raises(PropagationError) as excinfo:
        propagate_at(decayed_tle, datetime(2024, 2, 14, tzinfo=timezone.utc))
    assert excinfo.value.norad_id == 90003
