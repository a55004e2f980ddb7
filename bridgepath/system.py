from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import ResolverConfig
from .graph import Graph, InMemoryGraph
from .ingest import network_from_file
from .profile import ActorProfile
from .recommendation import ConnectionRecommendation
from .resolver import InvalidRequestError, PathResolver
from .semantic import SemanticScorer
from .store import SqliteGraph
from .util import EmbeddingCache

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}


@dataclass
class BridgePath:
    graph: Graph
    resolver: PathResolver
    profiles: dict[str, ActorProfile] = field(default_factory=dict)

    @classmethod
    def from_files(
        cls,
        *,
        network_path: str | Path,
        config: ResolverConfig | None = None,
        semantic: bool = False,
        cache_path: str | Path = ".cache/bridgepath/embeddings.npz",
    ) -> "BridgePath":
        """Load a network from JSON (``actors`` + ``connections``) or a SQLite store."""
        path = Path(network_path)
        profiles: dict[str, ActorProfile] = {}
        graph: Graph
        if path.suffix.lower() in SQLITE_SUFFIXES:
            graph = SqliteGraph(path)
        else:
            mem, loaded = network_from_file(path)
            graph = mem
            profiles = {p.id: p for p in loaded}

        scorer = SemanticScorer(cache=EmbeddingCache(path=Path(cache_path))) if semantic else None
        resolver = PathResolver(config or ResolverConfig.from_env(), semantic=scorer)
        return cls(graph=graph, resolver=resolver, profiles=profiles)

    def profile(self, ref: str) -> ActorProfile:
        """Look up an actor by id, then by name (case-insensitive)."""
        if ref in self.profiles:
            return self.profiles[ref]
        wanted = ref.strip().lower()
        for p in self.profiles.values():
            if p.name.strip().lower() == wanted:
                return p
        found = asyncio.run(self.graph.get_node(ref))
        if found is None:
            raise InvalidRequestError(f"unknown actor {ref!r}")
        return found

    def all_profiles(self) -> list[ActorProfile]:
        if self.profiles:
            return list(self.profiles.values())
        if isinstance(self.graph, InMemoryGraph):
            return [d["profile"] for _, d in self.graph.g.nodes(data=True) if "profile" in d]
        if isinstance(self.graph, SqliteGraph):
            return self.graph.all_profiles()
        return []

    def recommend(self, *, source: str, target: str) -> ConnectionRecommendation:
        src, dst = self.profile(source), self.profile(target)
        return asyncio.run(self.resolver.find_connection_recommendation(src, dst, self.graph))

    def compare(self, *, source: str, target: str) -> list[ConnectionRecommendation]:
        src, dst = self.profile(source), self.profile(target)
        return asyncio.run(self.resolver.compare_strategies(src, dst, self.graph))

    def discover(self, *, source: str, min_confidence: float = 0.45, limit: int = 10) -> list[dict[str, Any]]:
        src = self.profile(source)
        ranked = asyncio.run(
            self.resolver.discover_connections(src, self.all_profiles(), self.graph, min_confidence=min_confidence)
        )
        return [
            {"target": {"id": t.id, "name": t.name}, "recommendation": rec.to_dict()} for t, rec in ranked[:limit]
        ]
