from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Callable

from .graph import DEFAULT_HOP_LIMIT
from .intermediary import DEFAULT_MIN_PATH_STRENGTH
from .sampler import DEFAULT_CAP, DEFAULT_MIN_SIZE
from .similarity import ScoringConfig, SimilarityWeights

ENV_PREFIX = "BRIDGEPATH_"


def _parse_number(var: str, raw: str, caster: Callable[[str], float]) -> float:
    try:
        return caster(raw)
    except ValueError as e:
        raise ValueError(f"{var} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class ResolverConfig:
    # cascade thresholds
    direct_threshold: float = 0.65
    cold_floor: float = 0.25
    cold_confidence_factor: float = 0.8
    none_confidence: float = 0.05
    min_path_strength: float = DEFAULT_MIN_PATH_STRENGTH
    semantic_threshold: float = 0.80
    # graph access
    hop_limit: int = DEFAULT_HOP_LIMIT
    graph_timeout: float = 5.0
    # connection sampling
    sample_cap: int = DEFAULT_CAP
    sample_min_size: int = DEFAULT_MIN_SIZE
    # per-instance similarity memo
    memo_size: int = 4096
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self) -> None:
        for name in (
            "direct_threshold",
            "cold_floor",
            "cold_confidence_factor",
            "none_confidence",
            "min_path_strength",
            "semantic_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.cold_floor > self.direct_threshold:
            raise ValueError(f"cold_floor ({self.cold_floor}) must not exceed direct_threshold ({self.direct_threshold})")
        if self.hop_limit < 1:
            raise ValueError(f"hop_limit must be >= 1, got {self.hop_limit}")
        if self.graph_timeout <= 0:
            raise ValueError(f"graph_timeout must be > 0, got {self.graph_timeout}")
        if self.sample_min_size < 0:
            raise ValueError(f"sample_min_size must be >= 0, got {self.sample_min_size}")
        if self.sample_cap < max(1, self.sample_min_size):
            raise ValueError(
                f"sample_cap must be >= max(1, sample_min_size), got sample_cap={self.sample_cap} "
                f"sample_min_size={self.sample_min_size}"
            )
        if self.memo_size < 0:
            raise ValueError(f"memo_size must be >= 0, got {self.memo_size}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ResolverConfig":
        """Build from BRIDGEPATH_* variables, e.g. BRIDGEPATH_DIRECT_THRESHOLD=0.7.

        Similarity weights use BRIDGEPATH_WEIGHT_<DIMENSION>.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        for f in fields(cls):
            if f.name == "scoring":
                continue
            raw = env.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            caster = int if f.type in ("int", int) else float
            kwargs[f.name] = _parse_number(f"{ENV_PREFIX}{f.name.upper()}", raw, caster)

        weights: dict[str, float] = {}
        for f in fields(SimilarityWeights):
            var = f"{ENV_PREFIX}WEIGHT_{f.name.upper()}"
            raw = env.get(var)
            if raw:
                weights[f.name] = _parse_number(var, raw, float)
        if weights:
            kwargs["scoring"] = ScoringConfig(weights=SimilarityWeights(**weights))
        return cls(**kwargs)
