"""Tests for the similarity-to-acceptance curve and calibration helpers."""

from __future__ import annotations

import pytest

from bridgepath.acceptance import (
    ACCEPTANCE_ANCHORS,
    INTERMEDIARY_RATE_BAND,
    MUTUAL_RATE_BAND,
    calibration_metrics,
    estimate_acceptance,
    intermediary_acceptance_rate,
    map_similarity_to_acceptance_rate,
    mutual_acceptance_rate,
    track_connection_result,
)
from bridgepath.recommendation import DirectSimilarityRecommendation, NoPathRecommendation


class TestAcceptanceCurve:
    """map_similarity_to_acceptance_rate."""

    @pytest.mark.parametrize("similarity,rate", ACCEPTANCE_ANCHORS)
    def test_passes_through_anchors(self, similarity, rate):
        """Every anchor point is reproduced exactly."""
        assert map_similarity_to_acceptance_rate(similarity) == pytest.approx(rate)

    def test_interpolates_between_anchors(self):
        """Halfway between 0.3 and 0.5 is halfway between 17% and 25%."""
        assert map_similarity_to_acceptance_rate(0.4) == pytest.approx(0.21)

    def test_monotone_non_decreasing(self):
        """Higher similarity never lowers the rate."""
        xs = [i / 200 for i in range(201)]
        rates = [map_similarity_to_acceptance_rate(x) for x in xs]
        assert all(b >= a for a, b in zip(rates, rates[1:]))

    def test_bounded(self):
        """Output stays within 12%-45%, even for out-of-range input."""
        assert map_similarity_to_acceptance_rate(-3.0) == pytest.approx(0.12)
        assert map_similarity_to_acceptance_rate(7.0) == pytest.approx(0.45)
        assert map_similarity_to_acceptance_rate(float("nan")) == pytest.approx(0.12)


class TestStrategyRates:
    """Mutual and intermediary bands."""

    @pytest.mark.parametrize("hops", [1, 2, 3, 4, 5, 9])
    def test_mutual_rate_within_band(self, hops):
        """Mutual-path rates stay within the mutual band."""
        lo, hi = MUTUAL_RATE_BAND
        assert lo <= mutual_acceptance_rate(hops) <= hi

    def test_mutual_rate_decreases_with_hops(self):
        """Longer chains never rate higher."""
        rates = [mutual_acceptance_rate(h) for h in range(1, 6)]
        assert rates == sorted(rates, reverse=True)

    @pytest.mark.parametrize("strength", [0.0, 0.35, 0.5, 0.8, 1.0])
    def test_intermediary_rate_within_band(self, strength):
        """Intermediary rates stay within the intermediary band."""
        lo, hi = INTERMEDIARY_RATE_BAND
        assert lo <= intermediary_acceptance_rate(strength) <= hi


class TestEstimateAcceptance:
    """Quality tiers."""

    def test_high_similarity(self):
        """0.8 is an excellent match with a tight range."""
        est = estimate_acceptance(0.8)
        assert est.quality == "excellent"
        assert est.lower_bound < est.acceptance_rate < est.upper_bound

    def test_low_similarity(self):
        """Near-zero similarity is pure cold outreach."""
        est = estimate_acceptance(0.05)
        assert est.quality == "very-low"
        assert est.comparable_to == "Pure cold outreach"


class TestCalibration:
    """Outcome tracking."""

    def test_track_and_aggregate(self):
        """Outcomes are grouped per strategy with averaged prediction and result."""
        direct = DirectSimilarityRecommendation(confidence=0.8, estimated_acceptance_rate=0.4, reasoning="")
        none = NoPathRecommendation(confidence=0.05, estimated_acceptance_rate=0.12, reasoning="")
        records = [
            track_connection_result(direct, True),
            track_connection_result(direct, False),
            track_connection_result(none, False),
        ]
        stats = calibration_metrics(records)
        assert set(stats) == {"direct-similarity", "none"}
        assert stats["direct-similarity"].count == 2
        assert stats["direct-similarity"].avg_actual == pytest.approx(0.5)
        assert stats["direct-similarity"].error == pytest.approx(0.1)
        assert stats["none"].avg_predicted == pytest.approx(0.12)

    def test_record_error(self):
        """Per-record error is the absolute miss."""
        rec = NoPathRecommendation(confidence=0.05, estimated_acceptance_rate=0.2, reasoning="")
        assert track_connection_result(rec, True).error == pytest.approx(0.8)
