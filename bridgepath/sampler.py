from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence

from .profile import ActorProfile
from .types import SamplingStrategy

DEFAULT_CAP = 500
DEFAULT_MIN_SIZE = 50


@dataclass(frozen=True)
class ConnectionSample:
    sampled: list[ActorProfile]
    strategy: SamplingStrategy
    original_count: int
    sampled_count: int


def _recency_key(p: ActorProfile) -> tuple[int, str]:
    started = p.latest_start() or date.min
    return (-started.toordinal(), p.id)


def _completeness_key(p: ActorProfile) -> tuple[int, str]:
    return (-p.completeness(), p.id)


def sample_connections(
    connections: Sequence[ActorProfile],
    cap: int = DEFAULT_CAP,
    *,
    min_size: int = DEFAULT_MIN_SIZE,
) -> ConnectionSample:
    """Deterministically bound the working set of direct connections.

    At or below ``cap`` everything is kept. Above it, half the slots go to the
    most recently started connections and half to the most complete
    profiles; leftovers are filled in input order. The sample is never
    larger than ``cap``, and ``cap`` itself may not be configured below
    ``min_size``.
    """
    if cap < 1 or cap < min_size:
        raise ValueError(f"cap must be >= max(1, min_size), got cap={cap} min_size={min_size}")

    original = len(connections)
    if original <= cap:
        return ConnectionSample(
            sampled=list(connections),
            strategy=SamplingStrategy.ALL,
            original_count=original,
            sampled_count=original,
        )

    target = cap
    half = target // 2
    by_recent = sorted(connections, key=_recency_key)
    by_complete = sorted(connections, key=_completeness_key)

    chosen: dict[str, ActorProfile] = {}
    for p in by_recent[:half]:
        chosen.setdefault(p.id, p)
    for p in by_complete:
        if len(chosen) >= target:
            break
        chosen.setdefault(p.id, p)
    for p in connections:
        if len(chosen) >= target:
            break
        chosen.setdefault(p.id, p)

    sampled = list(chosen.values())[:target]
    return ConnectionSample(
        sampled=sampled,
        strategy=SamplingStrategy.MIXED,
        original_count=original,
        sampled_count=len(sampled),
    )
