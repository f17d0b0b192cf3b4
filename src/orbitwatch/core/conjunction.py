"""Conjunction analysis — closest approach between two objects over a horizon."""
from __future__ import annotations

import logging
import numbers
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import minimize_scalar

from orbitwatch.core.propagation import Propagator, StateVector, propagate_positions
from orbitwatch.core.risk import CONJUNCTION_RISK_THRESHOLDS, RiskLevel, RiskThresholds, classify_risk
from orbitwatch.core.tle import TLE
from orbitwatch.utils.constants import (
    COARSE_CHUNK_SAMPLES,
    COARSE_STEP_S,
    DEFAULT_TOP_K_MINIMA,
    FINE_STEP_S,
    FINE_WINDOW_S,
    MAX_HORIZON_HOURS,
    MIN_HORIZON_HOURS,
    RESULT_DECIMALS,
)

logger = logging.getLogger(__name__)


class AnalysisCancelled(Exception):
    """The caller's cancellation signal was set during the coarse pass."""


class RefinementMode(Enum):
    """How the coarse-pass minimum is refined.

    FIXED_WINDOW sweeps ±5 minutes around the single best coarse sample at a
    1-second step. LOCAL_MINIMA does the same around each of the best
    ``top_k`` coarse local minima. BOUNDED runs a bounded scalar
    minimization between the neighbouring coarse samples of each of those
    minima.
    """

    FIXED_WINDOW = "fixed_window"
    LOCAL_MINIMA = "local_minima"
    BOUNDED = "bounded"


@dataclass(frozen=True)
class ConjunctionQuery:
    """Two element sets and the horizon to search.

    Attributes:
        tle_a: First object.
        tle_b: Second object.
        horizon_hours: Search horizon, an integer in [1, 168].
        start: First instant of the horizon (UTC).

    Raises:
        TypeError: If either element set is not a parsed TLE.
        ValueError: If the horizon is not an integer within bounds.
    """

    tle_a: TLE
    tle_b: TLE
    horizon_hours: int
    start: datetime

    def __post_init__(self) -> None:
        for label, tle in (("tle_a", self.tle_a), ("tle_b", self.tle_b)):
            if not isinstance(tle, TLE):
                raise TypeError(f"{label} must be a parsed TLE, got {type(tle).__name__}")

        hours = self.horizon_hours
        if isinstance(hours, bool) or not isinstance(hours, numbers.Integral):
            logger.error("Rejected non-integer horizon %r", hours)
            raise ValueError(f"horizon_hours must be an integer, got {hours!r}")
        if not MIN_HORIZON_HOURS <= hours <= MAX_HORIZON_HOURS:
            logger.error("Rejected horizon %d h", hours)
            raise ValueError(
                f"horizon_hours must be within [{MIN_HORIZON_HOURS}, {MAX_HORIZON_HOURS}], got {hours}"
            )

        if self.start.tzinfo is None:
            object.__setattr__(self, "start", self.start.replace(tzinfo=timezone.utc))

    @property
    def horizon_s(self) -> int:
        return int(self.horizon_hours) * 3600

    @property
    def end(self) -> datetime:
        return self.start + timedelta(seconds=self.horizon_s)


@dataclass(frozen=True)
class ConjunctionResult:
    """Outcome of a conjunction analysis.

    ``min_distance_km`` is None when no sample in either pass could be
    propagated for both objects; ``time_of_closest_approach`` and
    ``risk_level`` are then None too. ``calculation_duration_ms`` is
    wall-clock instrumentation and does not take part in equality.

    Attributes:
        min_distance_km: Minimum separation in km, rounded to 3 decimals.
        time_of_closest_approach: Instant of the minimum (UTC).
        risk_level: Band of the minimum separation.
        calculation_duration_ms: Wall-clock duration of the analysis.
        coarse_min_distance_km: Minimum found by the coarse pass alone.
        coarse_samples: Number of coarse samples evaluated.
        fine_samples: Number of refinement samples evaluated.
        mode: Refinement mode used.
    """

    min_distance_km: float | None
    time_of_closest_approach: datetime | None
    risk_level: RiskLevel | None
    calculation_duration_ms: float = field(default=0.0, compare=False)
    coarse_min_distance_km: float | None = None
    coarse_samples: int = 0
    fine_samples: int = 0
    mode: RefinementMode = RefinementMode.FIXED_WINDOW

    @property
    def indeterminate(self) -> bool:
        """True when no distance could be computed at all."""
        return self.min_distance_km is None

    def to_dict(self) -> dict:
        return {
            "min_distance_km": self.min_distance_km,
            "time_of_closest_approach": (
                self.time_of_closest_approach.isoformat() if self.time_of_closest_approach else None
            ),
            "risk_level": self.risk_level.value if self.risk_level else None,
            "calculation_duration_ms": round(self.calculation_duration_ms, 3),
        }


def separation_km(a: StateVector | ArrayLike, b: StateVector | ArrayLike) -> float:
    """Euclidean distance in km between two states or position vectors."""
    pos_a = a.position_km if isinstance(a, StateVector) else np.asarray(a, dtype=np.float64)
    pos_b = b.position_km if isinstance(b, StateVector) else np.asarray(b, dtype=np.float64)
    return float(np.linalg.norm(pos_a - pos_b))


def _separations(
    query: ConjunctionQuery,
    offsets_s: NDArray,
    propagator: Propagator,
) -> NDArray[np.float64]:
    """Separation at each offset from the query start; NaN where either object failed."""
    times = [query.start + timedelta(seconds=float(s)) for s in offsets_s]
    pos_a, ok_a = propagator(query.tle_a, times)
    pos_b, ok_b = propagator(query.tle_b, times)

    distances = np.linalg.norm(np.asarray(pos_a) - np.asarray(pos_b), axis=1)
    distances[~(np.asarray(ok_a) & np.asarray(ok_b))] = np.nan
    return distances


def _first_minimum(offsets_s: NDArray, distances: NDArray[np.float64]) -> tuple[float, float] | None:
    """(offset, distance) of the smallest valid sample, earliest on ties."""
    if distances.size == 0 or np.all(np.isnan(distances)):
        return None
    i = int(np.nanargmin(distances))
    return float(offsets_s[i]), float(distances[i])


def _local_minima(distances: NDArray[np.float64], k: int) -> NDArray[np.intp]:
    """Indices of the k smallest local minima, ordered by (distance, index)."""
    d = np.where(np.isnan(distances), np.inf, distances)
    left = np.concatenate(([np.inf], d[:-1]))
    right = np.concatenate((d[1:], [np.inf]))
    idx = np.nonzero(np.isfinite(d) & (d <= left) & (d <= right))[0]
    order = np.lexsort((idx, d[idx]))
    return idx[order][:k]


def _coarse_pass(
    query: ConjunctionQuery,
    propagator: Propagator,
    cancel: threading.Event | None,
) -> tuple[NDArray, NDArray[np.float64]]:
    offsets = np.arange(0, query.horizon_s + 1, COARSE_STEP_S)
    chunks = []
    for lo in range(0, len(offsets), COARSE_CHUNK_SAMPLES):
        if cancel is not None and cancel.is_set():
            logger.info("Conjunction sweep NORAD %d/%d cancelled after %d coarse samples",
                        query.tle_a.norad_id, query.tle_b.norad_id, lo)
            raise AnalysisCancelled(
                f"Conjunction sweep cancelled after {lo} of {len(offsets)} coarse samples"
            )
        chunks.append(_separations(query, offsets[lo:lo + COARSE_CHUNK_SAMPLES], propagator))
    return offsets, np.concatenate(chunks)


def _window_sweep(
    query: ConjunctionQuery,
    center_s: float,
    propagator: Propagator,
) -> tuple[tuple[float, float] | None, int]:
    lo = max(0, int(center_s) - FINE_WINDOW_S)
    hi = min(query.horizon_s, int(center_s) + FINE_WINDOW_S)
    offsets = np.arange(lo, hi + 1, FINE_STEP_S)
    distances = _separations(query, offsets, propagator)
    return _first_minimum(offsets, distances), len(offsets)


def _bounded_search(
    query: ConjunctionQuery,
    center_s: float,
    propagator: Propagator,
) -> tuple[tuple[float, float] | None, int]:
    lo = max(0.0, center_s - COARSE_STEP_S)
    hi = min(float(query.horizon_s), center_s + COARSE_STEP_S)

    def objective(offset_s: float) -> float:
        d = _separations(query, np.array([offset_s]), propagator)[0]
        return float(np.inf) if np.isnan(d) else float(d)

    res = minimize_scalar(objective, bounds=(lo, hi), method="bounded", options={"xatol": 1e-3})
    if not np.isfinite(res.fun):
        return None, int(res.nfev)
    return (float(res.x), float(res.fun)), int(res.nfev)


def analyze(
    query: ConjunctionQuery,
    mode: RefinementMode = RefinementMode.FIXED_WINDOW,
    top_k: int = DEFAULT_TOP_K_MINIMA,
    thresholds: RiskThresholds = CONJUNCTION_RISK_THRESHOLDS,
    propagator: Propagator = propagate_positions,
    cancel: threading.Event | None = None,
) -> ConjunctionResult:
    """Find the minimum separation of a validated query with a two-pass sweep.

    1. Coarse pass over the whole horizon at a 60 s step.
    2. Refinement around the coarse minimum (see :class:`RefinementMode`),
       accepted only where it strictly improves on the coarse result.

    Samples where either object fails to propagate are skipped. If no
    sample is valid the result is indeterminate.

    Args:
        query: Validated conjunction query.
        mode: Refinement strategy.
        top_k: Number of coarse local minima refined by LOCAL_MINIMA/BOUNDED.
        thresholds: Risk band table applied to the final minimum.
        propagator: Sweep propagator, see :data:`Propagator`.
        cancel: Optional event checked between coarse-pass chunks.

    Returns:
        A ConjunctionResult.

    Raises:
        AnalysisCancelled: If ``cancel`` is set during the coarse pass.
        ValueError: If ``top_k`` is not positive.
    """
    if top_k < 1:
        raise ValueError(f"top_k must be positive, got {top_k}")

    calc_start = time.perf_counter()
    logger.debug("Time-sweep NORAD %d vs %d: %s to %s (%d hours, %s)",
                 query.tle_a.norad_id, query.tle_b.norad_id,
                 query.start.isoformat(), query.end.isoformat(), query.horizon_hours, mode.value)

    # Pass 1: coarse scan
    offsets, distances = _coarse_pass(query, propagator, cancel)
    coarse = _first_minimum(offsets, distances)
    best = coarse
    if coarse is not None:
        logger.debug("Coarse scan: %d samples, best %.3f km at +%ds", len(offsets), coarse[1], int(coarse[0]))
    else:
        logger.debug("Coarse scan: %d samples, none valid", len(offsets))

    # Pass 2: refinement
    if mode is RefinementMode.FIXED_WINDOW or coarse is None:
        centers = [coarse[0] if coarse is not None else 0.0]
    else:
        centers = [float(offsets[i]) for i in _local_minima(distances, top_k)]

    fine_samples = 0
    for center in centers:
        if mode is RefinementMode.BOUNDED and coarse is not None:
            found, n = _bounded_search(query, center, propagator)
        else:
            found, n = _window_sweep(query, center, propagator)
        fine_samples += n
        if found is not None and (best is None or found[1] < best[1]):
            logger.debug("Refinement improvement: %.3f km at +%.3fs", found[1], found[0])
            best = found

    duration_ms = (time.perf_counter() - calc_start) * 1000.0

    if best is None:
        logger.info("Conjunction NORAD %d vs %d: no valid samples over %d h (indeterminate)",
                    query.tle_a.norad_id, query.tle_b.norad_id, query.horizon_hours)
        return ConjunctionResult(
            min_distance_km=None,
            time_of_closest_approach=None,
            risk_level=None,
            calculation_duration_ms=duration_ms,
            coarse_min_distance_km=None,
            coarse_samples=len(offsets),
            fine_samples=fine_samples,
            mode=mode,
        )

    min_distance = round(best[1], RESULT_DECIMALS)
    tca = query.start + timedelta(seconds=best[0])
    risk_level = classify_risk(min_distance, thresholds)

    logger.info("Conjunction NORAD %d vs %d: %.3f km at %s (%s, %.1f ms)",
                query.tle_a.norad_id, query.tle_b.norad_id, min_distance,
                tca.isoformat(), risk_level.value, duration_ms)

    return ConjunctionResult(
        min_distance_km=min_distance,
        time_of_closest_approach=tca,
        risk_level=risk_level,
        calculation_duration_ms=duration_ms,
        coarse_min_distance_km=round(coarse[1], RESULT_DECIMALS) if coarse is not None else None,
        coarse_samples=len(offsets),
        fine_samples=fine_samples,
        mode=mode,
    )


def analyze_conjunction(
    tle_a: TLE,
    tle_b: TLE,
    horizon_hours: int,
    start: datetime | None = None,
    *,
    mode: RefinementMode = RefinementMode.FIXED_WINDOW,
    top_k: int = DEFAULT_TOP_K_MINIMA,
    thresholds: RiskThresholds = CONJUNCTION_RISK_THRESHOLDS,
    propagator: Propagator = propagate_positions,
    cancel: threading.Event | None = None,
) -> ConjunctionResult:
    """Closest approach of two objects over ``[start, start + horizon_hours]``.

    Args:
        tle_a: First object.
        tle_b: Second object.
        horizon_hours: Search horizon in hours, an integer in [1, 168].
        start: First instant of the horizon. Defaults to now (UTC); pass it
            explicitly for reproducible results.

    The keyword arguments are those of :func:`analyze`.

    Raises:
        ValueError: If the horizon is out of bounds.
        TypeError: If either element set is not a parsed TLE.
    """
    if start is None:
        start = datetime.now(timezone.utc)
    query = ConjunctionQuery(tle_a=tle_a, tle_b=tle_b, horizon_hours=horizon_hours, start=start)
    return analyze(
        query,
        mode=mode,
        top_k=top_k,
        thresholds=thresholds,
        propagator=propagator,
        cancel=cancel,
    )
