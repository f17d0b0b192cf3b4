"""
OrbitWatch — Conjunction sweeps and reentry watch for tracked space objects.

Takes parsed two-line element sets and answers two questions: how close will
two objects get over the next few days, and which objects are about to
reenter. Propagation is delegated to SGP4.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbitwatch.core.tle import TLE, parse_tle, tle_checksum
from orbitwatch.core.propagation import (
    PropagationError,
    StateVector,
    propagate,
    propagate_at,
    propagate_batch,
    propagate_positions,
)
from orbitwatch.core.geodetic import geodetic_altitude_km
from orbitwatch.core.risk import (
    CONJUNCTION_RISK_THRESHOLDS,
    MISS_DISTANCE_RISK_THRESHOLDS,
    RiskLevel,
    RiskThresholds,
    classify_risk,
)
from orbitwatch.core.conjunction import (
    AnalysisCancelled,
    ConjunctionQuery,
    ConjunctionResult,
    RefinementMode,
    analyze,
    analyze_conjunction,
    separation_km,
)
from orbitwatch.core.decay import (
    CatalogEntry,
    DecayMonitor,
    DecayRecord,
    DecayStatus,
    classify_decay,
    classify_status,
    decay_snapshot,
)
from orbitwatch.data.cache import TLECache

__all__ = [
    "__version__",
    "TLE",
    "parse_tle",
    "tle_checksum",
    "PropagationError",
    "StateVector",
    "propagate",
    "propagate_at",
    "propagate_batch",
    "propagate_positions",
    "geodetic_altitude_km",
    "CONJUNCTION_RISK_THRESHOLDS",
    "MISS_DISTANCE_RISK_THRESHOLDS",
    "RiskLevel",
    "RiskThresholds",
    "classify_risk",
    "AnalysisCancelled",
    "ConjunctionQuery",
    "ConjunctionResult",
    "RefinementMode",
    "analyze",
    "analyze_conjunction",
    "separation_km",
    "CatalogEntry",
    "DecayMonitor",
    "DecayRecord",
    "DecayStatus",
    "classify_decay",
    "classify_status",
    "decay_snapshot",
    "TLECache",
]
