from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .graph import DEFAULT_EDGE_STRENGTH, DEFAULT_HOP_LIMIT, GraphUnavailableError, InMemoryGraph, PathResult, path_probability
from .profile import ActorProfile

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS actors (
    id   TEXT PRIMARY KEY,
    data TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS connections (
    a        TEXT NOT NULL,
    b        TEXT NOT NULL,
    strength REAL NOT NULL DEFAULT 0.8,
    PRIMARY KEY (a, b)
);
CREATE INDEX IF NOT EXISTS idx_connections_b ON connections (b);
"""


def _edge_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True)
class SqliteGraph:
    """Network persisted in a SQLite file.

    Connections are stored once per pair (smaller id first). Each call opens
    its own connection and runs in a worker thread, so instances are safe to
    share across concurrent resolver calls.
    """

    path: Path

    def _connect(self, *, readonly: bool = False) -> sqlite3.Connection:
        try:
            if readonly:
                # mode=ro never creates a missing file
                conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
            else:
                conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise GraphUnavailableError(f"cannot open network store {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.executescript(SCHEMA)

    # -- writes (used by ingestion, not by the resolver) --

    def upsert_actor(self, profile: ActorProfile) -> str:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO actors (id, data) VALUES (?, ?) ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                (profile.id, json.dumps(profile.to_dict(), ensure_ascii=False)),
            )
        return profile.id

    def connect(self, a: str, b: str, *, strength: float = DEFAULT_EDGE_STRENGTH) -> None:
        if a == b:
            return
        x, y = _edge_key(a, b)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO connections (a, b, strength) VALUES (?, ?, ?) "
                "ON CONFLICT(a, b) DO UPDATE SET strength = excluded.strength",
                (x, y, float(strength)),
            )

    def import_graph(self, graph: InMemoryGraph) -> None:
        self.initialize()
        with closing(self._connect()) as conn, conn:
            conn.executemany(
                "INSERT OR REPLACE INTO actors (id, data) VALUES (?, ?)",
                [
                    (n, json.dumps(d["profile"].to_dict(), ensure_ascii=False))
                    for n, d in graph.g.nodes(data=True)
                    if "profile" in d
                ],
            )
            conn.executemany(
                "INSERT OR REPLACE INTO connections (a, b, strength) VALUES (?, ?, ?)",
                [(*_edge_key(u, v), float(d.get("strength", DEFAULT_EDGE_STRENGTH))) for u, v, d in graph.g.edges(data=True)],
            )

    # -- sync reads --

    def _load_profiles(self, conn: sqlite3.Connection, ids: Iterable[str]) -> list[ActorProfile]:
        ids = sorted(set(ids))
        if not ids:
            return []
        marks = ",".join("?" for _ in ids)
        rows = conn.execute(f"SELECT id, data FROM actors WHERE id IN ({marks}) ORDER BY id", ids).fetchall()
        return [ActorProfile.from_dict(json.loads(r["data"])) for r in rows]

    def _neighbors(self, conn: sqlite3.Connection, actor_id: str) -> dict[str, float]:
        rows = conn.execute(
            "SELECT b AS other, strength FROM connections WHERE a = ? "
            "UNION ALL SELECT a AS other, strength FROM connections WHERE b = ?",
            (actor_id, actor_id),
        ).fetchall()
        return {r["other"]: float(r["strength"]) for r in rows}

    def _run(self, fn, *args):
        try:
            with closing(self._connect(readonly=True)) as conn:
                return fn(conn, *args)
        except sqlite3.Error as e:
            raise GraphUnavailableError(f"network store query failed: {e}") from e

    def _get_connections(self, conn: sqlite3.Connection, actor_id: str) -> list[ActorProfile]:
        return self._load_profiles(conn, self._neighbors(conn, actor_id))

    def _get_mutual(self, conn: sqlite3.Connection, a: str, b: str) -> list[ActorProfile]:
        common = set(self._neighbors(conn, a)) & set(self._neighbors(conn, b))
        return self._load_profiles(conn, common)

    def _get_node(self, conn: sqlite3.Connection, node_id: str) -> ActorProfile | None:
        found = self._load_profiles(conn, [node_id])
        return found[0] if found else None

    def _bfs(self, conn: sqlite3.Connection, source_id: str, target_id: str, hop_limit: int) -> PathResult | None:
        if source_id == target_id:
            return None
        # parent pointers for each side; frontier expanded from the smaller side
        fwd: dict[str, str | None] = {source_id: None}
        bwd: dict[str, str | None] = {target_id: None}
        fwd_frontier, bwd_frontier = [source_id], [target_id]
        strengths: dict[tuple[str, str], float] = {}
        meet: str | None = None
        hops = 0

        while fwd_frontier and bwd_frontier and hops < hop_limit and meet is None:
            expand_fwd = len(fwd_frontier) <= len(bwd_frontier)
            frontier, seen, other = (fwd_frontier, fwd, bwd) if expand_fwd else (bwd_frontier, bwd, fwd)
            nxt: list[str] = []
            for node in frontier:
                for nb, s in sorted(self._neighbors(conn, node).items()):
                    strengths[_edge_key(node, nb)] = s
                    if nb in seen:
                        continue
                    seen[nb] = node
                    if nb in other:
                        meet = nb
                        break
                    nxt.append(nb)
                if meet is not None:
                    break
            if expand_fwd:
                fwd_frontier = nxt
            else:
                bwd_frontier = nxt
            hops += 1

        if meet is None:
            return None

        left: list[str] = []
        n: str | None = meet
        while n is not None:
            left.append(n)
            n = fwd[n]
        left.reverse()
        right: list[str] = []
        n = bwd[meet]
        while n is not None:
            right.append(n)
            n = bwd[n]
        ids = left + right
        if len(ids) - 1 > hop_limit:
            return None

        by_id = {p.id: p for p in self._load_profiles(conn, ids)}
        probability = path_probability(strengths.get(_edge_key(u, v), DEFAULT_EDGE_STRENGTH) for u, v in zip(ids, ids[1:]))
        mutual = len(set(self._neighbors(conn, source_id)) & set(self._neighbors(conn, target_id)))
        return PathResult(path=[by_id[i] for i in ids if i in by_id], probability=probability, mutual_connections=mutual)

    def all_profiles(self) -> list[ActorProfile]:
        def load(conn: sqlite3.Connection) -> list[ActorProfile]:
            rows = conn.execute("SELECT data FROM actors ORDER BY id").fetchall()
            return [ActorProfile.from_dict(json.loads(r["data"])) for r in rows]

        return self._run(load)

    # -- Graph capability --

    async def get_connections(self, actor_id: str) -> list[ActorProfile]:
        return await asyncio.to_thread(self._run, self._get_connections, actor_id)

    async def get_mutual_connections(self, actor_id_1: str, actor_id_2: str) -> list[ActorProfile]:
        return await asyncio.to_thread(self._run, self._get_mutual, actor_id_1, actor_id_2)

    async def get_node(self, node_id: str) -> ActorProfile | None:
        return await asyncio.to_thread(self._run, self._get_node, node_id)

    async def bidirectional_bfs(
        self, source_id: str, target_id: str, hop_limit: int | None = None
    ) -> PathResult | None:
        limit = DEFAULT_HOP_LIMIT if hop_limit is None else hop_limit
        result = await asyncio.to_thread(self._run, self._bfs, source_id, target_id, limit)
        if result is not None:
            logger.debug(f"BFS {source_id} -> {target_id}: {result.hop_count} hops")
        return result
