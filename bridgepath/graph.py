from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable

import networkx as nx

from .profile import ActorProfile

logger = logging.getLogger(__name__)

DEFAULT_HOP_LIMIT = 3
DEFAULT_EDGE_STRENGTH = 0.8


class GraphUnavailableError(RuntimeError):
    """The network backend could not answer (storage error, closed handle...)."""


@dataclass(frozen=True)
class PathResult:
    path: list[ActorProfile]
    probability: float
    mutual_connections: int

    @property
    def hop_count(self) -> int:
        return max(0, len(self.path) - 1)


@runtime_checkable
class Graph(Protocol):
    """Read-only view over the source actor's known network."""

    async def get_connections(self, actor_id: str) -> list[ActorProfile]: ...

    async def bidirectional_bfs(
        self, source_id: str, target_id: str, hop_limit: int | None = None
    ) -> PathResult | None: ...

    async def get_mutual_connections(self, actor_id_1: str, actor_id_2: str) -> list[ActorProfile]: ...

    async def get_node(self, node_id: str) -> ActorProfile | None: ...


def path_probability(strengths: Iterable[float]) -> float:
    """Chance every hop on the path agrees to pass the request along."""
    p = 1.0
    for s in strengths:
        if not math.isfinite(s):
            return 0.0
        p *= max(0.0, min(1.0, s))
    return p


@dataclass
class InMemoryGraph:
    """networkx-backed network. Undirected: a connection goes both ways."""

    g: nx.Graph = field(default_factory=nx.Graph)

    @classmethod
    def empty(cls) -> "InMemoryGraph":
        return cls(g=nx.Graph())

    def upsert_actor(self, profile: ActorProfile) -> str:
        self.g.add_node(profile.id, profile=profile)
        return profile.id

    def connect(self, a: str, b: str, *, strength: float = DEFAULT_EDGE_STRENGTH) -> None:
        if a == b:
            return
        for n in (a, b):
            if n not in self.g:
                raise KeyError(f"Actor {n!r} not found in graph")
        self.g.add_edge(a, b, strength=float(strength))

    def _profile(self, node_id: str) -> ActorProfile | None:
        data = self.g.nodes.get(node_id)
        if data is None:
            return None
        return data.get("profile")

    def _profiles(self, node_ids: Iterable[str]) -> list[ActorProfile]:
        out = []
        for n in sorted(node_ids):
            p = self._profile(n)
            if p is not None:
                out.append(p)
        return out

    async def get_connections(self, actor_id: str) -> list[ActorProfile]:
        if actor_id not in self.g:
            return []
        return self._profiles(self.g.neighbors(actor_id))

    async def get_mutual_connections(self, actor_id_1: str, actor_id_2: str) -> list[ActorProfile]:
        if actor_id_1 not in self.g or actor_id_2 not in self.g:
            return []
        return self._profiles(nx.common_neighbors(self.g, actor_id_1, actor_id_2))

    async def get_node(self, node_id: str) -> ActorProfile | None:
        return self._profile(node_id)

    async def bidirectional_bfs(
        self, source_id: str, target_id: str, hop_limit: int | None = None
    ) -> PathResult | None:
        limit = DEFAULT_HOP_LIMIT if hop_limit is None else hop_limit
        try:
            ids = nx.bidirectional_shortest_path(self.g, source_id, target_id)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None
        if len(ids) - 1 > limit or len(ids) < 2:
            return None

        strengths = [self.g.edges[u, v].get("strength", DEFAULT_EDGE_STRENGTH) for u, v in zip(ids, ids[1:])]
        mutual = len(list(nx.common_neighbors(self.g, source_id, target_id)))
        path = [p for p in (self._profile(n) for n in ids) if p is not None]
        logger.debug(f"BFS {source_id} -> {target_id}: {len(ids) - 1} hops, {mutual} mutual")
        return PathResult(path=path, probability=path_probability(strengths), mutual_connections=mutual)
