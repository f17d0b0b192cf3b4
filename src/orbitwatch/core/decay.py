"""Reentry watch — rank very-low-orbit objects by decay urgency.

An object is a decay candidate when its mean motion exceeds 15.5 rev/day or
its geodetic altitude is below 300 km. Candidates are banded by altitude:

    < 180 km    CRITICAL  (high drag, reentry in hours/days)
    180–300 km  WARNING   (orbital decay, strong drag)
    >= 300 km   STABLE    (only reachable through the mean-motion clause)

Snapshots are recomputed from scratch; nothing is carried between runs.
"""
from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import numpy as np

from orbitwatch.core.geodetic import geodetic_altitude_km
from orbitwatch.core.propagation import StateVector, propagate_batch
from orbitwatch.core.tle import TLE
from orbitwatch.utils.constants import (
    DECAY_CANDIDATE_ALT_KM,
    DECAY_CRITICAL_ALT_KM,
    DECAY_MEAN_MOTION_REV_PER_DAY,
    DECAY_REFRESH_INTERVAL_S,
)

logger = logging.getLogger(__name__)


class DecayStatus(Enum):
    """Reentry urgency bands."""

    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    STABLE = "STABLE"


@dataclass(frozen=True)
class CatalogEntry:
    """One tracked object as seen at the snapshot instant.

    Attributes:
        norad_id: NORAD catalog number.
        name: Object name.
        state: Current state vector.
        mean_motion_rev_per_day: Mean motion from the element set, if known.
    """

    norad_id: int
    name: str
    state: StateVector
    mean_motion_rev_per_day: float | None = None


@dataclass(frozen=True)
class DecayRecord:
    """A ranked decay candidate.

    Attributes:
        norad_id: NORAD catalog number.
        name: Object name.
        altitude_km: Geodetic altitude in km.
        velocity_kmh: Inertial speed in km/h, or None without a velocity.
        mean_motion_rev_per_day: Mean motion, if known.
        status: Urgency band.
    """

    norad_id: int
    name: str
    altitude_km: float
    velocity_kmh: float | None
    mean_motion_rev_per_day: float | None
    status: DecayStatus


def classify_status(altitude_km: float) -> DecayStatus:
    """Urgency band for an altitude; 180 and 300 km fall in the upper band."""
    if altitude_km < DECAY_CRITICAL_ALT_KM:
        return DecayStatus.CRITICAL
    if altitude_km < DECAY_CANDIDATE_ALT_KM:
        return DecayStatus.WARNING
    return DecayStatus.STABLE


def is_decay_candidate(altitude_km: float, mean_motion_rev_per_day: float | None) -> bool:
    """Inclusion gate: fast mean motion OR low altitude."""
    by_motion = mean_motion_rev_per_day is not None and mean_motion_rev_per_day > DECAY_MEAN_MOTION_REV_PER_DAY
    by_altitude = altitude_km < DECAY_CANDIDATE_ALT_KM
    return by_motion or by_altitude


def classify_decay(entries: Iterable[CatalogEntry], limit: int | None = None) -> list[DecayRecord]:
    """Select and rank decay candidates from a catalog snapshot.

    Args:
        entries: Objects with their current state and mean motion.
        limit: Keep only the first ``limit`` records (presentation cap).

    Returns:
        Candidates ordered by ascending altitude, then NORAD ID.

    Raises:
        ValueError: If ``limit`` is negative.
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")

    records: list[DecayRecord] = []
    seen = 0

    for entry in entries:
        seen += 1
        position = np.asarray(entry.state.position_km, dtype=np.float64)
        if not np.all(np.isfinite(position)):
            logger.debug("Skipping NORAD %d: non-finite position", entry.norad_id)
            continue

        altitude_km = geodetic_altitude_km(position)
        if not is_decay_candidate(altitude_km, entry.mean_motion_rev_per_day):
            continue

        velocity_kmh = None
        if entry.state.velocity_km_s is not None:
            speed = float(np.linalg.norm(entry.state.velocity_km_s))
            if math.isfinite(speed):
                velocity_kmh = speed * 3600.0

        records.append(DecayRecord(
            norad_id=entry.norad_id,
            name=entry.name,
            altitude_km=altitude_km,
            velocity_kmh=velocity_kmh,
            mean_motion_rev_per_day=entry.mean_motion_rev_per_day,
            status=classify_status(altitude_km),
        ))

    records.sort(key=lambda r: (r.altitude_km, r.norad_id))
    logger.debug("classify_decay: %d/%d objects are decay candidates", len(records), seen)

    if limit is not None:
        records = records[:limit]
    return records


def catalog_entries(tles: list[TLE], at: datetime) -> list[CatalogEntry]:
    """Propagate a catalog to one instant and wrap each object as an entry.

    Objects that fail to propagate are left out.
    """
    states, valid = propagate_batch(tles, at)
    entries = []
    for tle, state, ok in zip(tles, states, valid):
        if not ok:
            logger.debug("Skipping NORAD %d: propagation failed at %s", tle.norad_id, at)
            continue
        entries.append(CatalogEntry(
            norad_id=tle.norad_id,
            name=tle.name,
            state=StateVector(position_km=state[0:3].copy(), velocity_km_s=state[3:6].copy(), epoch=at),
            mean_motion_rev_per_day=tle.mean_motion_rev_per_day,
        ))
    return entries


def decay_snapshot(
    tles: list[TLE],
    at: datetime | None = None,
    limit: int | None = None,
) -> list[DecayRecord]:
    """Ranked decay candidates of a TLE catalog at ``at`` (default: now, UTC)."""
    if at is None:
        at = datetime.now(timezone.utc)
    entries = catalog_entries(tles, at)
    records = classify_decay(entries, limit=limit)
    logger.info("decay_snapshot: %d candidates from %d objects at %s",
                len(records), len(tles), at.isoformat())
    return records


class DecayMonitor:
    """Serve the latest decay snapshot, recomputing it on a fixed cadence.

    Snapshots are tuples and are never edited; a refresh builds a new one and
    swaps it in.

    Args:
        tles: Catalog to watch.
        interval_s: Minimum seconds between recomputations.
        clock: Monotonic seconds source, used for the cadence.
        now: UTC datetime source, used as the snapshot instant.
        limit: Presentation cap passed to :func:`decay_snapshot`.
    """

    def __init__(
        self,
        tles: list[TLE],
        interval_s: float = DECAY_REFRESH_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        limit: int | None = None,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        self._tles = list(tles)
        self._interval_s = interval_s
        self._clock = clock
        self._now = now
        self._limit = limit
        self._records: tuple[DecayRecord, ...] = ()
        self._computed_at: float | None = None

    def update_catalog(self, tles: list[TLE]) -> None:
        """Replace the watched catalog; the next read recomputes."""
        self._tles = list(tles)
        self._computed_at = None

    def refresh(self) -> tuple[DecayRecord, ...]:
        """Recompute the snapshot now."""
        self._records = tuple(decay_snapshot(self._tles, at=self._now(), limit=self._limit))
        self._computed_at = self._clock()
        return self._records

    def records(self) -> tuple[DecayRecord, ...]:
        """Latest snapshot, recomputed if older than the cadence."""
        if self._computed_at is None or self._clock() - self._computed_at >= self._interval_s:
            return self.refresh()
        return self._records
