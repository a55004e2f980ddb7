"""Tests for connection sampling."""

from __future__ import annotations

import pytest

from bridgepath.sampler import sample_connections
from bridgepath.types import SamplingStrategy

from .conftest import make_profile


def _connections(n: int):
    # older ids started earlier; every tenth profile has extra skills
    return [
        make_profile(
            f"c{i:04d}",
            industry="Software Development",
            company="Acme",
            skills=["python", "go", "rust"] if i % 10 == 0 else [],
            start=f"{2000 + i // 50}-{i % 12 + 1:02d}",
        )
        for i in range(n)
    ]


class TestSampleConnections:
    """Bounded, deterministic sampling."""

    def test_small_sets_are_kept_whole(self):
        """At or below the cap every connection is returned in order."""
        conns = _connections(40)
        sample = sample_connections(conns, cap=500)
        assert sample.strategy == SamplingStrategy.ALL
        assert sample.sampled == conns
        assert sample.original_count == sample.sampled_count == 40

    def test_exactly_at_cap(self):
        """A set exactly at the cap is not sampled."""
        sample = sample_connections(_connections(60), cap=60)
        assert sample.strategy == SamplingStrategy.ALL

    def test_large_sets_are_capped(self):
        """Above the cap the sample is exactly cap unique connections."""
        conns = _connections(600)
        sample = sample_connections(conns, cap=500)
        assert sample.strategy == SamplingStrategy.MIXED
        assert sample.original_count == 600
        assert sample.sampled_count == len(sample.sampled) == 500
        assert len({p.id for p in sample.sampled}) == 500

    def test_prefers_recent_and_complete(self):
        """The newest connections and the richest profiles survive sampling."""
        conns = _connections(300)
        sample = sample_connections(conns, cap=100)
        ids = {p.id for p in sample.sampled}
        newest = max(conns, key=lambda p: p.latest_start())
        assert newest.id in ids
        richest = [p.id for p in conns if len(p.skills) == 3]
        assert set(richest) <= ids

    def test_deterministic(self):
        """The same input always yields the same sample."""
        conns = _connections(250)
        first = sample_connections(conns, cap=80)
        second = sample_connections(list(conns), cap=80)
        assert [p.id for p in first.sampled] == [p.id for p in second.sampled]

    def test_empty(self):
        """No connections is a valid, empty sample."""
        sample = sample_connections([])
        assert sample.sampled == []
        assert sample.sampled_count == 0

    @pytest.mark.parametrize("cap,min_size", [(0, 0), (10, 50)])
    def test_rejects_invalid_cap(self, cap, min_size):
        """A cap below one or below the minimum size is a configuration error."""
        with pytest.raises(ValueError):
            sample_connections(_connections(5), cap=cap, min_size=min_size)
