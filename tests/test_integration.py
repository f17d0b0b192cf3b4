"""Integration test: parse → cache → analyze / classify end-to-end."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from orbitwatch import (
    DecayStatus,
    RiskLevel,
    TLECache,
    analyze_conjunction,
    decay_snapshot,
    parse_tle,
    propagate,
)
from orbitwatch.core.tle import TLE

# Hardcoded TLEs (no network calls)
CATALOG_TEXT = """\
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9997
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439592
VLEO TESTSAT
1 90002U 24001A   24045.54896019  .00000000  00000-0  00000-0 0  9995
2 90002  51.6412 207.4925 0004948 290.5508 178.9792 16.20000000  1008
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
HST
1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994
2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912
STARLINK-1008
1 44714U 99067BK  23343.73574192  .00001474  00000-0  37597-3 0  9997
2 44714  53.0547 280.9861 0001466  84.8285 275.2775 15.06395867391888
STARLINK-1012
1 44718U 99067BO  23343.73574192  .00001474  00000-0  37597-3 0  9997
2 44718  53.0547 280.9861 0001466  84.8285 275.2775 15.06395867391888
"""

START = datetime(2024, 2, 14, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def catalog() -> list[TLE]:
    return parse_tle(CATALOG_TEXT)


@pytest.fixture
def cache(catalog: list[TLE]) -> TLECache:
    cache = TLECache(clock=lambda: 0.0)
    for tle in catalog:
        cache.put(tle.norad_id, tle, source="fixture")
    return cache


def test_parse_catalog(catalog: list[TLE]):
    assert [t.norad_id for t in catalog] == [25544, 90002, 48274, 20580, 44714, 44718]
    assert catalog[0].name == "ISS (ZARYA)"


def test_propagate_iss_24h(catalog: list[TLE]):
    """Propagate ISS 24 hours and verify position is in LEO range."""
    iss = catalog[0]
    times = [iss.epoch + timedelta(hours=h) for h in range(0, 25, 6)]
    states = propagate(iss, times)
    assert len(states) == 5

    earth_radius_km = 6371.0
    for sv in states:
        alt = np.linalg.norm(sv.position_km) - earth_radius_km
        assert 200 < alt < 500, f"ISS altitude {alt:.1f} km out of expected LEO range"


def test_close_pair_from_cache(cache: TLECache):
    """Look both Starlink satellites up in the cache and sweep a day from their epoch."""
    sat_a, sat_b = cache.get(44714), cache.get(44718)
    start = datetime(2023, 12, 9, 18, 0, tzinfo=timezone.utc)
    result = analyze_conjunction(sat_a, sat_b, 24, start)

    assert not result.indeterminate
    assert result.min_distance_km < 5.0
    assert result.risk_level is RiskLevel.HIGH

    data = result.to_dict()
    assert set(data) == {"min_distance_km", "time_of_closest_approach", "risk_level", "calculation_duration_ms"}
    assert datetime.fromisoformat(data["time_of_closest_approach"]) == result.time_of_closest_approach


def test_station_pair_result_structure(cache: TLECache):
    result = analyze_conjunction(cache.get(25544), cache.get(48274), 12, START)

    assert result.min_distance_km >= 0
    assert result.risk_level in RiskLevel
    assert START <= result.time_of_closest_approach <= START + timedelta(hours=12)


def test_reentry_watch(catalog: list[TLE]):
    """The VLEO object leads; the CSS qualifies through its mean motion alone."""
    records = decay_snapshot(catalog, at=START)

    assert [r.norad_id for r in records] == [90002, 48274]
    assert records[0].status in (DecayStatus.CRITICAL, DecayStatus.WARNING)
    assert records[1].status is DecayStatus.STABLE
    assert records[1].mean_motion_rev_per_day > 15.5
