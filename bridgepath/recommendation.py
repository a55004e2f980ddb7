"""Recommendation variants returned by the resolver.

One dataclass per strategy; ``type`` is the discriminant. Use
``isinstance`` or ``rec.type`` to branch on the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from .intermediary import IntermediaryMatch
from .profile import ActorProfile
from .similarity import SimilarityResult
from .types import StrategyType
from .util import clamp


@dataclass(frozen=True)
class ConnectionPath:
    nodes: list[ActorProfile]
    probability: float
    mutual_connections: int

    @property
    def hop_count(self) -> int:
        return max(0, len(self.nodes) - 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [{"id": n.id, "name": n.name} for n in self.nodes],
            "probability": self.probability,
            "mutual_connections": self.mutual_connections,
            "hop_count": self.hop_count,
        }


@dataclass(frozen=True)
class _Recommendation:
    type: ClassVar[StrategyType]

    confidence: float
    estimated_acceptance_rate: float
    reasoning: str
    next_steps: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp(self.confidence))
        object.__setattr__(self, "estimated_acceptance_rate", clamp(self.estimated_acceptance_rate))
        object.__setattr__(self, "next_steps", list(self.next_steps))

    def _payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "estimated_acceptance_rate": self.estimated_acceptance_rate,
            "reasoning": self.reasoning,
            "next_steps": list(self.next_steps),
            **self._payload(),
        }


@dataclass(frozen=True)
class MutualRecommendation(_Recommendation):
    type: ClassVar[StrategyType] = StrategyType.MUTUAL
    path: ConnectionPath | None = None

    def _payload(self) -> dict[str, Any]:
        return {"path": self.path.to_dict() if self.path else None}


@dataclass(frozen=True)
class DirectSimilarityRecommendation(_Recommendation):
    type: ClassVar[StrategyType] = StrategyType.DIRECT_SIMILARITY
    similarity: SimilarityResult = field(default_factory=SimilarityResult.empty)

    def _payload(self) -> dict[str, Any]:
        return {"similarity": self.similarity.to_dict()}


@dataclass(frozen=True)
class IntermediaryRecommendation(_Recommendation):
    type: ClassVar[StrategyType] = StrategyType.INTERMEDIARY
    intermediary: IntermediaryMatch | None = None

    def _payload(self) -> dict[str, Any]:
        return {"intermediary": self.intermediary.to_dict() if self.intermediary else None}


@dataclass(frozen=True)
class ColdSimilarityRecommendation(_Recommendation):
    type: ClassVar[StrategyType] = StrategyType.COLD_SIMILARITY
    similarity: SimilarityResult = field(default_factory=SimilarityResult.empty)
    semantic_similarity: float | None = None

    def _payload(self) -> dict[str, Any]:
        return {"similarity": self.similarity.to_dict(), "semantic_similarity": self.semantic_similarity}


@dataclass(frozen=True)
class NoPathRecommendation(_Recommendation):
    type: ClassVar[StrategyType] = StrategyType.NONE
    similarity: SimilarityResult = field(default_factory=SimilarityResult.empty)

    def _payload(self) -> dict[str, Any]:
        return {"similarity": self.similarity.to_dict()}


ConnectionRecommendation = Union[
    MutualRecommendation,
    DirectSimilarityRecommendation,
    IntermediaryRecommendation,
    ColdSimilarityRecommendation,
    NoPathRecommendation,
]
