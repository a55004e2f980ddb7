from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from .profile import ActorProfile
from .similarity import ProfileSimilarityScorer, SimilarityResult
from .types import BridgeDirection
from .util import harmonic_mean

logger = logging.getLogger(__name__)

DEFAULT_MIN_PATH_STRENGTH = 0.35

SimilarityFn = Callable[[ActorProfile, ActorProfile], SimilarityResult]


@dataclass(frozen=True)
class IntermediaryMatch:
    intermediary: ActorProfile
    path_strength: float
    direction: BridgeDirection
    source_to_intermediary: float
    intermediary_to_target: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "intermediary": {"id": self.intermediary.id, "name": self.intermediary.name},
            "path_strength": self.path_strength,
            "direction": self.direction.value,
            "source_to_intermediary": self.source_to_intermediary,
            "intermediary_to_target": self.intermediary_to_target,
        }


def _rank_key(m: IntermediaryMatch) -> tuple[float, int, float, str]:
    knows = 1 if m.direction == BridgeDirection.KNOWS_TARGET else 0
    # ascending sort: strongest first, then warm intros, then target hop, then id
    return (-m.path_strength, -knows, -m.intermediary_to_target, m.intermediary.id)


class IntermediaryFinder:
    """Pick the direct connection best placed to introduce source to target.

    A bridge is only as good as its weaker hop, so path strength is the
    harmonic mean of source->bridge and bridge->target similarity.
    """

    def __init__(
        self,
        scorer: ProfileSimilarityScorer | None = None,
        *,
        min_path_strength: float = DEFAULT_MIN_PATH_STRENGTH,
        similarity: SimilarityFn | None = None,
    ):
        self.scorer = scorer or ProfileSimilarityScorer()
        self.min_path_strength = min_path_strength
        self._similarity = similarity or self.scorer.compute

    def score(
        self,
        source: ActorProfile,
        candidate: ActorProfile,
        target: ActorProfile,
        *,
        knows_target: bool = False,
    ) -> IntermediaryMatch:
        s2i = self._similarity(source, candidate).overall
        i2t = self._similarity(candidate, target).overall
        return IntermediaryMatch(
            intermediary=candidate,
            path_strength=harmonic_mean(s2i, i2t),
            direction=BridgeDirection.KNOWS_TARGET if knows_target else BridgeDirection.ASK_TO_INTRODUCE,
            source_to_intermediary=s2i,
            intermediary_to_target=i2t,
        )

    def rank(
        self,
        source: ActorProfile,
        target: ActorProfile,
        connections: Sequence[ActorProfile],
        *,
        target_connection_ids: Iterable[str] = (),
    ) -> list[IntermediaryMatch]:
        known = set(target_connection_ids)
        matches = [
            self.score(source, c, target, knows_target=c.id in known)
            for c in connections
            if c.id not in (source.id, target.id)
        ]
        return sorted(matches, key=_rank_key)

    def find(
        self,
        source: ActorProfile,
        target: ActorProfile,
        connections: Sequence[ActorProfile],
        *,
        target_connection_ids: Iterable[str] = (),
    ) -> IntermediaryMatch | None:
        ranked = self.rank(source, target, connections, target_connection_ids=target_connection_ids)
        if not ranked:
            return None
        best = ranked[0]
        logger.debug(
            f"Best bridge {best.intermediary.id}: strength={best.path_strength:.3f} "
            f"({best.source_to_intermediary:.2f}/{best.intermediary_to_target:.2f}) of {len(ranked)}"
        )
        if best.path_strength < self.min_path_strength:
            return None
        return best
