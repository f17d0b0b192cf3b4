"""Geodetic altitude of inertial positions."""
from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from orbitwatch.utils.constants import EARTH_FLATTENING, EARTH_RADIUS_KM

_E2 = EARTH_FLATTENING * (2.0 - EARTH_FLATTENING)


def geodetic_altitude_km(position_km: ArrayLike, iterations: int = 10) -> float | NDArray[np.float64]:
    """Height above the WGS-84 ellipsoid for TEME/ECI position(s).

    Height depends only on the distance from the spin axis and on z, so the
    Earth's rotation angle is not needed.

    Args:
        position_km: A single [x, y, z] vector or an (n, 3) array, in km.
        iterations: Fixed-point iterations for geodetic latitude.

    Returns:
        Altitude in km: a float for a single vector, an (n,) array otherwise.
    """
    pos = np.asarray(position_km, dtype=np.float64)
    single = pos.ndim == 1
    pos = np.atleast_2d(pos)

    p = np.hypot(pos[:, 0], pos[:, 1])
    z = pos[:, 2]

    lat = np.arctan2(z, p * (1.0 - _E2))
    for _ in range(iterations):
        sin_lat = np.sin(lat)
        n = EARTH_RADIUS_KM / np.sqrt(1.0 - _E2 * sin_lat ** 2)
        lat = np.arctan2(z + _E2 * n * sin_lat, p)

    sin_lat = np.sin(lat)
    # Stable at the poles, unlike p / cos(lat) - N
    height = p * np.cos(lat) + z * sin_lat - EARTH_RADIUS_KM * np.sqrt(1.0 - _E2 * sin_lat ** 2)

    if single:
        return float(height[0])
    return height
