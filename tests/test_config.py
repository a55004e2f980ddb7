"""Tests for resolver configuration."""

from __future__ import annotations

from dataclasses import replace

import pytest

from bridgepath.config import ResolverConfig


class TestResolverConfig:
    """Defaults and environment overrides."""

    def test_defaults(self):
        """Default thresholds."""
        cfg = ResolverConfig()
        assert cfg.direct_threshold == 0.65
        assert cfg.cold_floor == 0.25
        assert cfg.min_path_strength == 0.35
        assert cfg.hop_limit == 3
        assert cfg.sample_cap == 500

    def test_from_env(self):
        """BRIDGEPATH_* variables override fields with the right type."""
        cfg = ResolverConfig.from_env(
            {
                "BRIDGEPATH_DIRECT_THRESHOLD": "0.7",
                "BRIDGEPATH_HOP_LIMIT": "2",
                "BRIDGEPATH_GRAPH_TIMEOUT": "1.5",
                "UNRELATED": "x",
            }
        )
        assert cfg.direct_threshold == 0.7
        assert cfg.hop_limit == 2
        assert isinstance(cfg.hop_limit, int)
        assert cfg.graph_timeout == 1.5
        assert cfg.cold_floor == 0.25

    def test_weights_from_env(self):
        """BRIDGEPATH_WEIGHT_<DIMENSION> sets similarity weights."""
        cfg = ResolverConfig.from_env({"BRIDGEPATH_WEIGHT_INDUSTRY": "0.5"})
        assert cfg.scoring.weights.industry == 0.5
        assert cfg.scoring.weights.skills == 0.25

    def test_empty_env(self):
        """No variables means defaults."""
        assert ResolverConfig.from_env({}) == ResolverConfig()

    def test_bad_number(self):
        """Non-numeric values are rejected with the variable name."""
        with pytest.raises(ValueError, match="BRIDGEPATH_HOP_LIMIT"):
            ResolverConfig.from_env({"BRIDGEPATH_HOP_LIMIT": "three"})

    def test_bad_weight(self):
        """Non-numeric weights get the same named error as other variables."""
        with pytest.raises(ValueError, match="BRIDGEPATH_WEIGHT_SKILLS must be a number, got 'lots'"):
            ResolverConfig.from_env({"BRIDGEPATH_WEIGHT_SKILLS": "lots"})


class TestResolverConfigBounds:
    """Invalid configurations fail when built, not on the first request."""

    def test_sample_cap_below_min_size(self):
        """A cap under the minimum sample size is rejected."""
        with pytest.raises(ValueError, match="sample_cap"):
            ResolverConfig(sample_cap=20)

    def test_sample_cap_from_env(self):
        """The same check applies to values from the environment."""
        with pytest.raises(ValueError, match="sample_cap"):
            ResolverConfig.from_env({"BRIDGEPATH_SAMPLE_CAP": "20"})

    def test_small_cap_with_small_min_size(self):
        """A small cap is fine when the minimum sample size is lowered too."""
        cfg = ResolverConfig(sample_cap=20, sample_min_size=10)
        assert cfg.sample_cap == 20

    @pytest.mark.parametrize(
        "overrides",
        [
            {"sample_cap": 0, "sample_min_size": 0},
            {"sample_min_size": -1},
            {"hop_limit": 0},
            {"graph_timeout": 0},
            {"memo_size": -1},
            {"direct_threshold": 1.5},
            {"cold_confidence_factor": -0.1},
            {"cold_floor": 0.7},
        ],
    )
    def test_out_of_range(self, overrides):
        """Numeric fields outside their range are rejected."""
        with pytest.raises(ValueError):
            ResolverConfig(**overrides)

    def test_replace_revalidates(self):
        """Overriding a field after construction checks it again."""
        with pytest.raises(ValueError, match="hop_limit"):
            replace(ResolverConfig(), hop_limit=0)
