"""Similarity to acceptance-rate calibration.

Anchors come from published outreach benchmarks (cold outreach 12-18%,
same industry 22-28%, past colleagues 28-35%, alumni 35-42%). Only the
ranges around each anchor are known, so the curve between them is plain
linear interpolation.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np

from .util import clamp

if TYPE_CHECKING:
    from .recommendation import ConnectionRecommendation

# (similarity, acceptance rate); x strictly increasing, y non-decreasing
ACCEPTANCE_ANCHORS: tuple[tuple[float, float], ...] = (
    (0.00, 0.120),
    (0.10, 0.130),
    (0.30, 0.170),
    (0.50, 0.250),
    (0.55, 0.290),
    (0.65, 0.350),
    (0.70, 0.380),
    (0.85, 0.420),
    (1.00, 0.450),
)

MUTUAL_RATE_BAND = (0.30, 0.60)
INTERMEDIARY_RATE_BAND = (0.20, 0.35)

# hop count -> rate before the mutual band is applied
HOP_ACCEPTANCE = {1: 0.85, 2: 0.65, 3: 0.45, 4: 0.30}
HOP_ACCEPTANCE_DEFAULT = 0.25

_XS = np.array([x for x, _ in ACCEPTANCE_ANCHORS], dtype=np.float64)
_YS = np.array([y for _, y in ACCEPTANCE_ANCHORS], dtype=np.float64)


def map_similarity_to_acceptance_rate(similarity: float) -> float:
    s = clamp(similarity)
    return float(np.interp(s, _XS, _YS))


def mutual_acceptance_rate(hop_count: int) -> float:
    raw = HOP_ACCEPTANCE.get(hop_count, HOP_ACCEPTANCE_DEFAULT)
    return clamp(raw, *MUTUAL_RATE_BAND)


def intermediary_acceptance_rate(path_strength: float) -> float:
    return clamp(map_similarity_to_acceptance_rate(path_strength), *INTERMEDIARY_RATE_BAND)


@dataclass(frozen=True)
class AcceptanceEstimate:
    similarity: float
    acceptance_rate: float
    lower_bound: float
    upper_bound: float
    quality: str
    comparable_to: str


# (min similarity, quality, comparable connection type, +/- band)
_QUALITY_TIERS: tuple[tuple[float, str, str, float], ...] = (
    (0.75, "excellent", "Alumni connection in the same industry", 0.03),
    (0.65, "excellent", "Same school connection", 0.04),
    (0.50, "good", "Past colleague at the same company", 0.04),
    (0.45, "good", "Same industry", 0.03),
    (0.25, "moderate", "Cold outreach with personalization", 0.02),
    (0.15, "low", "Pure cold outreach", 0.02),
    (0.00, "very-low", "Pure cold outreach", 0.02),
)


def estimate_acceptance(similarity: float) -> AcceptanceEstimate:
    s = clamp(similarity)
    rate = map_similarity_to_acceptance_rate(s)
    for floor, quality, comparable, band in _QUALITY_TIERS:
        if s >= floor:
            break
    return AcceptanceEstimate(
        similarity=s,
        acceptance_rate=rate,
        lower_bound=clamp(rate - band),
        upper_bound=clamp(rate + band),
        quality=quality,
        comparable_to=comparable,
    )


@dataclass(frozen=True)
class OutcomeRecord:
    strategy: str
    predicted: float
    actual: float

    @property
    def error(self) -> float:
        return abs(self.predicted - self.actual)


@dataclass(frozen=True)
class CalibrationStats:
    avg_predicted: float
    avg_actual: float
    count: int

    @property
    def error(self) -> float:
        return abs(self.avg_predicted - self.avg_actual)


def track_connection_result(recommendation: "ConnectionRecommendation", accepted: bool) -> OutcomeRecord:
    return OutcomeRecord(
        strategy=recommendation.type.value,
        predicted=recommendation.estimated_acceptance_rate,
        actual=1.0 if accepted else 0.0,
    )


def calibration_metrics(records: Iterable[OutcomeRecord]) -> dict[str, CalibrationStats]:
    """Group observed outcomes by strategy to compare predicted vs. actual rates."""
    grouped: dict[str, list[OutcomeRecord]] = defaultdict(list)
    for r in records:
        grouped[r.strategy].append(r)
    return {
        strategy: CalibrationStats(
            avg_predicted=float(np.mean([r.predicted for r in rs])),
            avg_actual=float(np.mean([r.actual for r in rs])),
            count=len(rs),
        )
        for strategy, rs in grouped.items()
    }
