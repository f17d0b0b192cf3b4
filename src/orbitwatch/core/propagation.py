"""Orbital propagation via SGP4."""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np

logger = logging.getLogger(__name__)
from numpy.typing import NDArray
from sgp4.api import SatrecArray, jday
from orbitwatch.core.tle import TLE

Propagator = Callable[[TLE, Sequence[datetime]], tuple[NDArray[np.float64], NDArray[np.bool_]]]
"""Sweep contract: (tle, times) -> (positions (n, 3) km, valid mask (n,))."""


class PropagationError(ValueError):
    """SGP4 could not produce a state for the requested instant.

    Attributes:
        norad_id: Catalog number of the object.
        time: Requested instant.
        error_code: SGP4 error code (0 when the result was non-finite).
    """

    def __init__(self, norad_id: int, time: datetime, error_code: int) -> None:
        super().__init__(
            f"SGP4 propagation failed for NORAD {norad_id} at {time}: error code {error_code}"
        )
        self.norad_id = norad_id
        self.time = time
        self.error_code = error_code


@dataclass
class StateVector:
    """Position and (optionally) velocity in TEME frame.

    Attributes:
        position_km: [x, y, z] position in km.
        velocity_km_s: [vx, vy, vz] velocity in km/s, or None when unknown.
        epoch: Time of this state vector.
    """

    position_km: NDArray[np.float64]  # shape (3,)
    velocity_km_s: NDArray[np.float64] | None  # shape (3,)
    epoch: datetime


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _julian(t: datetime) -> tuple[float, float]:
    t = _as_utc(t)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def propagate_at(tle: TLE, t: datetime) -> StateVector:
    """Propagate a TLE to a single instant.

    Raises:
        PropagationError: If SGP4 reports an error or a non-finite state.
    """
    jd, fr = _julian(t)
    error_code, pos, vel = tle.satrec.sgp4(jd, fr)

    if error_code != 0 or not np.all(np.isfinite(pos)):
        raise PropagationError(tle.norad_id, t, error_code)

    return StateVector(
        position_km=np.array(pos, dtype=np.float64),
        velocity_km_s=np.array(vel, dtype=np.float64),
        epoch=t,
    )


def propagate(tle: TLE, times: list[datetime]) -> list[StateVector]:
    """Propagate a single TLE to multiple times using SGP4.

    Args:
        tle: A parsed TLE object.
        times: List of UTC datetimes to propagate to.

    Returns:
        List of StateVector objects, one per requested time.

    Raises:
        PropagationError: If SGP4 propagation fails at any requested time.
    """
    result = []
    for t in times:
        try:
            result.append(propagate_at(tle, t))
        except PropagationError as exc:
            logger.warning("SGP4 propagation failed for NORAD %d at %s: error code %d",
                           tle.norad_id, t, exc.error_code)
            raise

    logger.debug("Propagated NORAD %d to %d times", tle.norad_id, len(times))
    return result


def propagate_positions(
    tle: TLE, times: Sequence[datetime]
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Propagate one TLE to many times, reporting failures in a mask.

    Uses Satrec.sgp4_array so the whole time grid is evaluated in C. This is
    the default propagator of the conjunction sweep: failed samples are
    never raised, only flagged.

    Args:
        tle: A parsed TLE object.
        times: Instants to propagate to.

    Returns:
        Tuple of:
            - positions: Array of shape (n, 3) in km (NaN where invalid)
            - valid_mask: Boolean array of shape (n,)
    """
    if len(times) == 0:
        return np.empty((0, 3), dtype=np.float64), np.empty(0, dtype=np.bool_)

    julian = [_julian(t) for t in times]
    jd = np.array([j for j, _ in julian], dtype=np.float64)
    fr = np.array([f for _, f in julian], dtype=np.float64)
    errors, positions, _ = tle.satrec.sgp4_array(jd, fr)

    valid_mask = (errors == 0) & np.all(np.isfinite(positions), axis=1)
    positions = np.asarray(positions, dtype=np.float64)
    positions[~valid_mask] = np.nan

    n_failed = int((~valid_mask).sum())
    if n_failed:
        logger.debug("NORAD %d: %d/%d samples failed to propagate", tle.norad_id, n_failed, len(times))
    return positions, valid_mask


def propagate_batch(tles: list[TLE], time: datetime) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Propagate many TLEs to a single time using vectorized SGP4.

    Uses SatrecArray for C-level batch propagation (fast path for large catalogs).

    Args:
        tles: List of TLE objects to propagate.
        time: Single UTC datetime to propagate all objects to.

    Returns:
        Tuple of:
            - positions_velocities: Array of shape (n, 6) with [x,y,z,vx,vy,vz] in km, km/s
            - valid_mask: Boolean array of shape (n,) indicating which propagations succeeded
    """
    if not tles:
        return np.empty((0, 6), dtype=np.float64), np.empty(0, dtype=np.bool_)

    satrec_array = SatrecArray([tle.satrec for tle in tles])

    jd, fr = _julian(time)
    # SatrecArray requires arrays, not scalars
    jd_array = np.array([jd], dtype=np.float64)
    fr_array = np.array([fr], dtype=np.float64)

    # Output shape: errors (n,1), positions (n,1,3), velocities (n,1,3)
    errors, positions, velocities = satrec_array.sgp4(jd_array, fr_array)

    n = len(tles)
    result = np.empty((n, 6), dtype=np.float64)
    result[:, 0:3] = positions[:, 0, :]  # Remove time dimension
    result[:, 3:6] = velocities[:, 0, :]  # Remove time dimension

    valid_mask = (errors[:, 0] == 0) & np.all(np.isfinite(result), axis=1)

    logger.debug("Batch propagated %d objects, %d valid", n, int(valid_mask.sum()))
    return result, valid_mask
