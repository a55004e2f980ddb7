from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from .graph import DEFAULT_EDGE_STRENGTH, InMemoryGraph
from .profile import ActorProfile
from .store import SqliteGraph
from .types import ActorJSON, NetworkJSON

logger = logging.getLogger(__name__)


class WritableGraph(Protocol):
    def upsert_actor(self, profile: ActorProfile) -> str: ...

    def connect(self, a: str, b: str, *, strength: float = DEFAULT_EDGE_STRENGTH) -> None: ...


def add_actor(graph: WritableGraph, actor: ActorJSON) -> ActorProfile:
    profile = ActorProfile.from_dict(actor)
    graph.upsert_actor(profile)
    return profile


def add_connection(graph: WritableGraph, edge: list[Any] | tuple[Any, ...]) -> None:
    if not isinstance(edge, (list, tuple)) or len(edge) < 2:
        raise ValueError(f"connection must be [a, b] or [a, b, strength], got {edge!r}")
    a, b = str(edge[0]), str(edge[1])
    strength = float(edge[2]) if len(edge) > 2 and edge[2] is not None else DEFAULT_EDGE_STRENGTH
    if not 0.0 <= strength <= 1.0:
        raise ValueError(f"connection strength must be in [0, 1], got {strength} for {a}-{b}")
    graph.connect(a, b, strength=strength)


def load_network(graph: WritableGraph, network: NetworkJSON) -> list[ActorProfile]:
    """Add every actor, then every connection. Returns the profiles in file order."""
    profiles = [add_actor(graph, a) for a in network.get("actors", []) or []]
    edges = network.get("connections", []) or []
    for e in edges:
        add_connection(graph, e)
    logger.info(f"Loaded {len(profiles)} actors and {len(edges)} connections")
    return profiles


def read_network(path: str | Path) -> NetworkJSON:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, list):
        # bare list of actors, no connections
        return {"actors": data, "connections": []}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object with 'actors' and 'connections'")
    return data  # type: ignore[return-value]


def network_from_file(path: str | Path) -> tuple[InMemoryGraph, list[ActorProfile]]:
    graph = InMemoryGraph.empty()
    profiles = load_network(graph, read_network(path))
    return graph, profiles


def import_into_sqlite(network_path: str | Path, db_path: str | Path) -> SqliteGraph:
    graph, _ = network_from_file(network_path)
    store = SqliteGraph(Path(db_path))
    store.import_graph(graph)
    logger.info(f"Imported {graph.g.number_of_nodes()} actors into {db_path}")
    return store
