"""Risk bands for predicted miss distances.

There is exactly one banding function. Every place that needs a risk band
picks a named threshold table instead of repeating the comparison, so two
tables that disagree do so visibly.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from orbitwatch.utils.constants import (
    HIGH_RISK_DISTANCE_KM,
    MEDIUM_RISK_DISTANCE_KM,
    SUMMARY_HIGH_RISK_DISTANCE_KM,
    SUMMARY_MEDIUM_RISK_DISTANCE_KM,
)

logger = logging.getLogger(__name__)


class RiskLevel(Enum):
    """Coarse conjunction risk bands."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class RiskThresholds:
    """Upper bounds (exclusive) of the HIGH and MEDIUM bands, in km.

    Attributes:
        high_km: Distances strictly below this are HIGH.
        medium_km: Distances strictly below this (and not HIGH) are MEDIUM.
    """

    high_km: float
    medium_km: float

    def __post_init__(self) -> None:
        if not (0.0 < self.high_km < self.medium_km):
            raise ValueError(
                f"Risk thresholds must satisfy 0 < high_km < medium_km, "
                f"got high_km={self.high_km}, medium_km={self.medium_km}"
            )


CONJUNCTION_RISK_THRESHOLDS = RiskThresholds(
    high_km=HIGH_RISK_DISTANCE_KM,
    medium_km=MEDIUM_RISK_DISTANCE_KM,
)
"""Bands used by the conjunction analyzer (<10 km HIGH, <100 km MEDIUM)."""

MISS_DISTANCE_RISK_THRESHOLDS = RiskThresholds(
    high_km=SUMMARY_HIGH_RISK_DISTANCE_KM,
    medium_km=SUMMARY_MEDIUM_RISK_DISTANCE_KM,
)
"""Stricter bands of the analyst summary (<1 km HIGH, <5 km MEDIUM)."""


def classify_risk(
    distance_km: float,
    thresholds: RiskThresholds = CONJUNCTION_RISK_THRESHOLDS,
) -> RiskLevel:
    """Map a miss distance to a risk band.

    Args:
        distance_km: Minimum separation in km.
        thresholds: Threshold table to apply.

    Returns:
        The risk band. Upper bounds are exclusive: a distance equal to
        ``high_km`` is MEDIUM and one equal to ``medium_km`` is LOW.

    Raises:
        ValueError: If the distance is negative or NaN.
    """
    if math.isnan(distance_km) or distance_km < 0:
        raise ValueError(f"Miss distance must be a non-negative number, got {distance_km}")

    if distance_km < thresholds.high_km:
        level = RiskLevel.HIGH
    elif distance_km < thresholds.medium_km:
        level = RiskLevel.MEDIUM
    else:
        level = RiskLevel.LOW

    logger.debug("Risk band %s for %.3f km (thresholds %s)", level.value, distance_km, thresholds)
    return level
