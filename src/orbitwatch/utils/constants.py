from __future__ import annotations

"""Physical constants and default thresholds for conjunction and decay analysis.

Distances in km, times in seconds unless otherwise noted.
"""

# --- Earth parameters (WGS-84) ---
EARTH_RADIUS_KM: float = 6378.137
"""Equatorial radius of Earth in km."""

EARTH_FLATTENING: float = 1.0 / 298.257223563
"""WGS-84 flattening of the reference ellipsoid."""

# --- Conjunction sweep ---
MIN_HORIZON_HOURS: int = 1
"""Shortest supported conjunction horizon in hours."""

MAX_HORIZON_HOURS: int = 168
"""Longest supported conjunction horizon in hours (one week)."""

COARSE_STEP_S: int = 60
"""Coarse pass sampling interval in seconds."""

FINE_STEP_S: int = 1
"""Fine pass sampling interval in seconds."""

FINE_WINDOW_S: int = 300
"""Half-width of the fine pass window around the coarse minimum (±5 min)."""

COARSE_CHUNK_SAMPLES: int = 360
"""Coarse samples propagated between cancellation checks (6 hours)."""

DEFAULT_TOP_K_MINIMA: int = 5
"""Coarse local minima refined by the optional refinement modes."""

RESULT_DECIMALS: int = 3
"""Decimal places kept in reported miss distances."""

# --- Risk bands ---
HIGH_RISK_DISTANCE_KM: float = 10.0
"""Miss distances strictly below this are HIGH risk."""

MEDIUM_RISK_DISTANCE_KM: float = 100.0
"""Miss distances strictly below this (and not HIGH) are MEDIUM risk."""

SUMMARY_HIGH_RISK_DISTANCE_KM: float = 1.0
"""HIGH cutoff of the analyst summary table used by the dashboard."""

SUMMARY_MEDIUM_RISK_DISTANCE_KM: float = 5.0
"""MEDIUM cutoff of the analyst summary table used by the dashboard."""

# --- Decay classification ---
DECAY_MEAN_MOTION_REV_PER_DAY: float = 15.5
"""Objects above this mean motion are decay candidates."""

DECAY_CANDIDATE_ALT_KM: float = 300.0
"""Objects below this altitude are decay candidates; also the WARNING/STABLE boundary."""

DECAY_CRITICAL_ALT_KM: float = 180.0
"""Objects below this altitude are CRITICAL."""

DECAY_DISPLAY_LIMIT: int = 50
"""Number of ranked decay candidates shown by the reentry watch."""

DECAY_REFRESH_INTERVAL_S: float = 60.0
"""Wall-clock cadence at which the decay snapshot is recomputed."""

# --- TLE cache ---
TLE_CACHE_TTL_S: float = 6 * 3600.0
"""Time-to-live of a cached TLE in seconds."""
