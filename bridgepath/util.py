from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np


def normalize_text(s: str | None) -> str:
    if not s:
        return ""
    s = s.strip().lower()
    s = re.sub(r"\s+", " ", s)
    return s


def stable_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    if x != x:  # NaN
        return lo
    return max(lo, min(hi, float(x)))


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    sa, sb = set(a), set(b)
    union = sa | sb
    if not union:
        return 0.0
    return len(sa & sb) / len(union)


def harmonic_mean(x: float, y: float) -> float:
    if x <= 0 or y <= 0:
        return 0.0
    return 2 * x * y / (x + y)


def cosine_sim_matrix(query_vec: np.ndarray, mat: np.ndarray) -> np.ndarray:
    # query_vec: (d,), mat: (n, d)
    q = query_vec / (np.linalg.norm(query_vec) + 1e-12)
    m = mat / (np.linalg.norm(mat, axis=1, keepdims=True) + 1e-12)
    return (m @ q).astype(np.float32)


@dataclass(frozen=True)
class EmbeddingCache:
    path: Path

    def load(self) -> dict[str, np.ndarray] | None:
        if not self.path.exists():
            return None
        data = np.load(self.path, allow_pickle=False)
        keys = data["keys"].tolist()
        vectors = data["vectors"]
        return {str(k): vectors[i] for i, k in enumerate(keys)}

    def save(self, embeddings: dict[str, np.ndarray]) -> None:
        if not embeddings:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        keys = np.array(list(embeddings.keys()), dtype=str)
        vectors = np.stack([embeddings[k] for k in embeddings.keys()], axis=0)
        np.savez_compressed(self.path, keys=keys, vectors=vectors)


def chunked(xs: list, size: int) -> Iterable[list]:
    for i in range(0, len(xs), size):
        yield xs[i : i + size]


def json_dumps(obj: object) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True)
