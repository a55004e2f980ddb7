from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Awaitable, Callable, Sequence, TypeVar

from .acceptance import intermediary_acceptance_rate, map_similarity_to_acceptance_rate, mutual_acceptance_rate
from .config import ResolverConfig
from .graph import Graph, PathResult
from .intermediary import IntermediaryFinder, IntermediaryMatch
from .profile import ActorProfile
from .recommendation import (
    ColdSimilarityRecommendation,
    ConnectionPath,
    ConnectionRecommendation,
    DirectSimilarityRecommendation,
    IntermediaryRecommendation,
    MutualRecommendation,
    NoPathRecommendation,
)
from .sampler import sample_connections
from .semantic import SemanticScorer
from .similarity import ProfileSimilarityScorer, SimilarityResult, top_dimensions
from .types import BridgeDirection, SamplingStrategy, StrategyType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCOVER_BATCH_SIZE = 100
DISCOVER_MIN_CONFIDENCE = 0.45
# below this an alternative similarity strategy is not worth showing
ALTERNATIVE_MIN_SIMILARITY = 0.45


class InvalidRequestError(ValueError):
    pass


class SimilarityMemo:
    """Bounded LRU of scorer results, keyed by the unordered profile pair."""

    def __init__(self, maxsize: int = 4096):
        self.maxsize = maxsize
        self._data: OrderedDict[tuple[str, str], SimilarityResult] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key(a: ActorProfile, b: ActorProfile) -> tuple[str, str]:
        fa, fb = a.fingerprint(), b.fingerprint()
        return (fa, fb) if fa <= fb else (fb, fa)

    def get(self, key: tuple[str, str]) -> SimilarityResult | None:
        hit = self._data.get(key)
        if hit is None:
            self.misses += 1
            return None
        self.hits += 1
        self._data.move_to_end(key)
        return hit

    def put(self, key: tuple[str, str], value: SimilarityResult) -> None:
        if self.maxsize <= 0:
            return
        self._data[key] = value
        self._data.move_to_end(key)
        while len(self._data) > self.maxsize:
            self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)


def _pct(x: float) -> str:
    return f"{x * 100:.0f}%"


class PathResolver:
    """Pick the best way for ``source`` to reach ``target``.

    Strategies run in order and the first one that applies wins:
    mutual path -> direct similarity -> intermediary -> cold similarity -> none.
    Graph failures (timeouts, backend errors) are logged and treated as
    "nothing found" so the cascade keeps going.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        scorer: ProfileSimilarityScorer | None = None,
        semantic: SemanticScorer | None = None,
    ):
        self.config = config or ResolverConfig()
        self.scorer = scorer or ProfileSimilarityScorer(self.config.scoring)
        self.semantic = semantic
        self.memo = SimilarityMemo(self.config.memo_size)
        self.finder = IntermediaryFinder(
            self.scorer,
            min_path_strength=self.config.min_path_strength,
            similarity=self.compute_similarity,
        )

    # ------------------------------------------------------------------ scoring

    def compute_similarity(self, a: ActorProfile, b: ActorProfile) -> SimilarityResult:
        key = SimilarityMemo.key(a, b)
        cached = self.memo.get(key)
        if cached is not None:
            return cached
        result = self.scorer.compute(a, b)
        self.memo.put(key, result)
        return result

    # ------------------------------------------------------------------ graph access

    async def _graph_call(self, make_call: Callable[[], Awaitable[T]], what: str) -> T | None:
        try:
            return await asyncio.wait_for(make_call(), timeout=self.config.graph_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Graph {what} timed out after {self.config.graph_timeout}s; continuing without it")
        except Exception as e:
            logger.warning(f"Graph {what} failed, continuing without it: {e}")
        return None

    async def _node_id(self, graph: Graph, profile: ActorProfile) -> str:
        if profile.id:
            node = await self._graph_call(lambda: graph.get_node(profile.id), f"get_node({profile.id!r})")
            if node is not None:
                return profile.id
        # a name only counts when the node it finds carries that name
        if profile.name and profile.name != profile.id:
            node = await self._graph_call(lambda: graph.get_node(profile.name), f"get_node({profile.name!r})")
            if node is not None and (node.name or "").strip().casefold() == profile.name.strip().casefold():
                return profile.name
        return profile.id

    # ------------------------------------------------------------------ strategies

    async def _try_mutual(
        self, source: ActorProfile, target: ActorProfile, graph: Graph, source_id: str, target_id: str
    ) -> MutualRecommendation | None:
        result: PathResult | None = await self._graph_call(
            lambda: graph.bidirectional_bfs(source_id, target_id, self.config.hop_limit), "bidirectional_bfs"
        )
        if result is None or len(result.path) < 2:
            return None

        path = ConnectionPath(
            nodes=list(result.path), probability=result.probability, mutual_connections=result.mutual_connections
        )
        hops = path.hop_count
        between = path.nodes[1:-1]
        if not between:
            reasoning = f"You are already connected to {target.display_name}"
            steps = [
                f"Message {target.display_name} directly",
                "Reference a recent post or shared experience to re-open the conversation",
            ]
        else:
            first = between[0]
            noun = "intermediary" if len(between) == 1 else "intermediaries"
            reasoning = (
                f"Found a {hops}-hop path via {len(between)} {noun} "
                f"with {result.mutual_connections} mutual connections"
            )
            steps = [
                f"Message {first.display_name} (mutual connection)",
                f"Ask {first.display_name} for an introduction to {target.display_name}",
                "Mention your shared connections in your outreach",
            ]
            if len(between) > 1:
                steps.append("Consider other paths as well; longer chains succeed less often")

        return MutualRecommendation(
            confidence=result.probability,
            estimated_acceptance_rate=mutual_acceptance_rate(hops),
            reasoning=reasoning,
            next_steps=steps,
            path=path,
        )

    def _try_direct(self, target: ActorProfile, similarity: SimilarityResult) -> DirectSimilarityRecommendation | None:
        if similarity.overall < self.config.direct_threshold:
            return None
        shared = top_dimensions(similarity)
        return DirectSimilarityRecommendation(
            confidence=max(similarity.overall, self.config.direct_threshold),
            estimated_acceptance_rate=map_similarity_to_acceptance_rate(similarity.overall),
            reasoning=f"Very high profile similarity ({_pct(similarity.overall)}): shared {shared}",
            next_steps=[
                f"Send {target.display_name} a direct connection request",
                f"Mention your shared {shared} in the note",
                "Reference a specific recent post or achievement",
                "Keep the message short and include a clear reason to connect",
            ],
            similarity=similarity,
        )

    async def _try_intermediary(
        self,
        source: ActorProfile,
        target: ActorProfile,
        graph: Graph,
        source_id: str,
        target_id: str,
        connections: Sequence[ActorProfile],
    ) -> IntermediaryRecommendation | None:
        if not connections:
            logger.info(f"{source.id} has no known direct connections; skipping intermediary search")
            return None

        sample = sample_connections(connections, self.config.sample_cap, min_size=self.config.sample_min_size)
        if sample.strategy != SamplingStrategy.ALL:
            logger.info(f"Sampled {sample.sampled_count} of {sample.original_count} connections ({sample.strategy.value})")

        mutual = await self._graph_call(
            lambda: graph.get_mutual_connections(source_id, target_id), "get_mutual_connections"
        )
        known_ids = {p.id for p in (mutual or [])}

        match = self.finder.find(source, target, sample.sampled, target_connection_ids=known_ids)
        if match is None:
            return None

        reasoning, steps = self._intermediary_text(match, target)
        return IntermediaryRecommendation(
            confidence=match.path_strength,
            estimated_acceptance_rate=intermediary_acceptance_rate(match.path_strength),
            reasoning=reasoning,
            next_steps=steps,
            intermediary=match,
        )

    @staticmethod
    def _intermediary_text(match: IntermediaryMatch, target: ActorProfile) -> tuple[str, list[str]]:
        bridge = match.intermediary.display_name
        who = target.display_name
        if match.direction == BridgeDirection.KNOWS_TARGET:
            reasoning = (
                f"{bridge} already knows {who} and is a {_pct(match.source_to_intermediary)} match "
                f"with you; ask for a warm introduction"
            )
            steps = [
                f"Message {bridge} and explain why you want to meet {who}",
                f"Ask {bridge} to introduce you to {who}",
                f"Mention {bridge} as a shared connection when you reach out",
            ]
        else:
            reasoning = (
                f"{bridge} is a {_pct(match.intermediary_to_target)} match with {who} "
                f"and a {_pct(match.source_to_intermediary)} match with you"
            )
            steps = [
                f"Reconnect with {bridge} by engaging with their recent posts",
                f"Ask {bridge} whether they know {who} or someone close to them",
                f"If they do, ask {bridge} to introduce you to {who}",
                f"Otherwise, message {who} and mention your overlap with {bridge}",
            ]
        return reasoning, steps

    async def _semantic_similarity(self, source: ActorProfile, target: ActorProfile) -> float | None:
        if self.semantic is None:
            return None
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.semantic.similarity, source, target), timeout=self.config.graph_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Semantic similarity timed out; skipping")
        except Exception as e:
            logger.warning(f"Semantic similarity failed, skipping: {e}")
        return None

    async def _cold_or_none(
        self,
        source: ActorProfile,
        target: ActorProfile,
        similarity: SimilarityResult,
        connections: Sequence[ActorProfile],
    ) -> ConnectionRecommendation:
        who = target.display_name
        shared = top_dimensions(similarity, min_score=0.0)
        cold_steps = [
            f"Research {who}'s recent posts and articles",
            f"Write a personalized note that mentions your shared {shared}",
            "Lead with a clear reason to connect rather than a request",
            f"Follow up by engaging with {who}'s content",
        ]

        if similarity.overall >= self.config.cold_floor:
            return ColdSimilarityRecommendation(
                confidence=similarity.overall * self.config.cold_confidence_factor,
                estimated_acceptance_rate=map_similarity_to_acceptance_rate(similarity.overall),
                reasoning=(
                    f"Moderate profile similarity ({_pct(similarity.overall)}); "
                    "personalized cold outreach recommended"
                ),
                next_steps=cold_steps,
                similarity=similarity,
            )

        semantic = await self._semantic_similarity(source, target)
        if semantic is not None and semantic >= self.config.semantic_threshold:
            return ColdSimilarityRecommendation(
                confidence=self.config.cold_floor * self.config.cold_confidence_factor,
                estimated_acceptance_rate=map_similarity_to_acceptance_rate(self.config.cold_floor),
                reasoning=(
                    f"Little structured overlap ({_pct(similarity.overall)}), but your roles and skills "
                    f"read as closely related ({_pct(semantic)} semantic match)"
                ),
                next_steps=cold_steps,
                similarity=similarity,
                semantic_similarity=semantic,
            )

        steps = [
            f"Engage with {who}'s content for a few weeks before reaching out",
            f"Grow your network toward {who}'s industry through events and groups",
            f"Add skills and experience relevant to {who}'s field to your profile",
        ]
        if connections:
            gateway = max(connections, key=lambda p: (p.completeness(), p.id))
            steps.append(f"Ask {gateway.display_name} whether they know anyone close to {who}")
        steps.append(
            "Highlight any technical overlap in your note"
            if similarity.breakdown.skills > 0.2
            else "Focus your note on the value you can offer"
        )
        return NoPathRecommendation(
            confidence=self.config.none_confidence,
            estimated_acceptance_rate=map_similarity_to_acceptance_rate(similarity.overall),
            reasoning=f"Limited profile overlap ({_pct(similarity.overall)}) and no path through your network yet",
            next_steps=steps,
            similarity=similarity,
        )

    # ------------------------------------------------------------------ entry points

    async def _cascade(self, source: ActorProfile, target: ActorProfile, graph: Graph) -> ConnectionRecommendation:
        source_id = await self._node_id(graph, source)
        target_id = await self._node_id(graph, target)

        mutual = await self._try_mutual(source, target, graph, source_id, target_id)
        if mutual is not None:
            return mutual

        similarity = self.compute_similarity(source, target)
        logger.debug(f"Similarity {source.id} -> {target.id}: {similarity.overall:.3f} {similarity.breakdown}")

        direct = self._try_direct(target, similarity)
        if direct is not None:
            return direct

        connections = await self._graph_call(lambda: graph.get_connections(source_id), "get_connections") or []
        intermediary = await self._try_intermediary(source, target, graph, source_id, target_id, connections)
        if intermediary is not None:
            return intermediary

        return await self._cold_or_none(source, target, similarity, connections)

    async def find_connection_recommendation(
        self, source: ActorProfile | None, target: ActorProfile | None, graph: Graph
    ) -> ConnectionRecommendation:
        if source is None or target is None:
            raise InvalidRequestError("source and target profiles are required")
        if graph is None:
            raise InvalidRequestError("graph is required")

        try:
            rec = await self._cascade(source, target, graph)
        except Exception:
            logger.exception(f"Connection resolution failed for {source.id} -> {target.id}")
            similarity = SimilarityResult.empty()
            rec = NoPathRecommendation(
                confidence=self.config.none_confidence,
                estimated_acceptance_rate=map_similarity_to_acceptance_rate(0.0),
                reasoning="Could not analyse this connection right now",
                next_steps=[f"Engage with {target.display_name}'s content before reaching out"],
                similarity=similarity,
            )
        logger.info(
            f"{source.id} -> {target.id}: {rec.type.value} "
            f"(confidence={rec.confidence:.2f}, acceptance={rec.estimated_acceptance_rate:.2f})"
        )
        return rec

    async def discover_connections(
        self,
        source: ActorProfile,
        targets: Sequence[ActorProfile],
        graph: Graph,
        *,
        min_confidence: float = DISCOVER_MIN_CONFIDENCE,
        batch_size: int = DISCOVER_BATCH_SIZE,
    ) -> list[tuple[ActorProfile, ConnectionRecommendation]]:
        """Resolve many targets and keep the confident ones, best first."""
        candidates = [t for t in targets if t.id != source.id]
        results: list[tuple[ActorProfile, ConnectionRecommendation]] = []
        for i in range(0, len(candidates), batch_size):
            batch = candidates[i : i + batch_size]
            recs = await asyncio.gather(*(self.find_connection_recommendation(source, t, graph) for t in batch))
            results.extend(zip(batch, recs, strict=True))
        kept = [(t, r) for t, r in results if r.confidence > min_confidence]
        kept.sort(key=lambda tr: (-tr[1].confidence, tr[0].id))
        return kept

    async def compare_strategies(
        self, source: ActorProfile, target: ActorProfile, graph: Graph
    ) -> list[ConnectionRecommendation]:
        """The recommended strategy plus viable alternatives, most confident first."""
        recommended = await self.find_connection_recommendation(source, target, graph)
        options: list[ConnectionRecommendation] = [recommended]

        similarity = self.compute_similarity(source, target)
        if (
            recommended.type not in (StrategyType.DIRECT_SIMILARITY, StrategyType.COLD_SIMILARITY)
            and similarity.overall >= ALTERNATIVE_MIN_SIMILARITY
        ):
            alt = self._try_direct(target, similarity) or await self._cold_or_none(source, target, similarity, [])
            options.append(alt)

        if recommended.type != StrategyType.INTERMEDIARY:
            try:
                source_id = await self._node_id(graph, source)
                target_id = await self._node_id(graph, target)
                connections = await self._graph_call(lambda: graph.get_connections(source_id), "get_connections") or []
                alt_bridge = await self._try_intermediary(source, target, graph, source_id, target_id, connections)
            except Exception as e:
                logger.warning(f"Could not evaluate intermediary alternative: {e}")
                alt_bridge = None
            if alt_bridge is not None:
                options.append(alt_bridge)

        options.sort(key=lambda r: -r.confidence)
        return options


async def find_connection_recommendation(
    source: ActorProfile | None,
    target: ActorProfile | None,
    graph: Graph,
    *,
    config: ResolverConfig | None = None,
    semantic: SemanticScorer | None = None,
) -> ConnectionRecommendation:
    return await PathResolver(config, semantic=semantic).find_connection_recommendation(source, target, graph)


def compute_similarity(a: ActorProfile, b: ActorProfile, *, config: ResolverConfig | None = None) -> SimilarityResult:
    cfg = config or ResolverConfig()
    return ProfileSimilarityScorer(cfg.scoring).compute(a, b)
