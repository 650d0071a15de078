"""Unit tests for agent_reputation.scoring.tiers — classification and tier tables."""
from __future__ import annotations

import pytest

from agent_reputation.scoring.tiers import (
    DEFAULT_TIER_TABLE,
    ReputationTier,
    TierBand,
    TierContractError,
    TierTable,
    classify,
    tier_progress,
)


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassifyBoundaries:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0, ReputationTier.NEWCOMER),
            (2499, ReputationTier.NEWCOMER),
            (2500, ReputationTier.BRONZE),
            (4999, ReputationTier.BRONZE),
            (5000, ReputationTier.SILVER),
            (7499, ReputationTier.SILVER),
            (7500, ReputationTier.GOLD),
            (8999, ReputationTier.GOLD),
            (9000, ReputationTier.PLATINUM),
            (10000, ReputationTier.PLATINUM),
        ],
    )
    def test_boundary(self, score: int, expected: ReputationTier) -> None:
        assert classify(score) == expected.value

    def test_every_integer_maps_to_exactly_one_tier(self) -> None:
        names = DEFAULT_TIER_TABLE.names()
        for score in range(0, 10001):
            assert classify(score) in names

    def test_tiers_are_non_decreasing_with_score(self) -> None:
        names = DEFAULT_TIER_TABLE.names()
        indexes = [names.index(classify(s)) for s in range(0, 10001, 7)]
        assert indexes == sorted(indexes)


class TestClassifyContract:
    @pytest.mark.parametrize("score", [-1, 10001, 1_000_000])
    def test_out_of_range_raises(self, score: int) -> None:
        with pytest.raises(TierContractError):
            classify(score)

    @pytest.mark.parametrize("score", [2500.0, "2500", None, True])
    def test_non_int_raises(self, score: object) -> None:
        with pytest.raises(TierContractError):
            classify(score)  # type: ignore[arg-type]

    def test_contract_error_is_value_error(self) -> None:
        assert issubclass(TierContractError, ValueError)


# ---------------------------------------------------------------------------
# tier_progress
# ---------------------------------------------------------------------------


class TestTierProgress:
    def test_points_to_next_tier(self) -> None:
        progress = tier_progress(2400)
        assert progress.tier == "NEWCOMER"
        assert progress.next_tier == "BRONZE"
        assert progress.points_to_next == 100
        assert progress.progress == pytest.approx(0.96)

    def test_band_start_has_zero_progress(self) -> None:
        progress = tier_progress(5000)
        assert progress.tier == "SILVER"
        assert progress.progress == 0.0
        assert progress.points_to_next == 2500

    def test_top_tier_has_no_next(self) -> None:
        progress = tier_progress(10000)
        assert progress.tier == "PLATINUM"
        assert progress.next_tier is None
        assert progress.points_to_next == 0
        assert progress.progress == pytest.approx(1.0)

    def test_progress_tier_matches_classify(self) -> None:
        for score in (0, 2499, 2500, 7777, 9000):
            assert tier_progress(score).tier == classify(score)

    def test_to_dict(self) -> None:
        data = tier_progress(9500).to_dict()
        assert data["tier"] == "PLATINUM"
        assert data["next_tier"] is None

    def test_out_of_range_raises(self) -> None:
        with pytest.raises(TierContractError):
            tier_progress(-5)


# ---------------------------------------------------------------------------
# TierTable construction
# ---------------------------------------------------------------------------


class TestTierTable:
    def test_custom_three_tier_table(self) -> None:
        table = TierTable(
            [TierBand("LOW", 0, 3000), TierBand("MID", 3000, 7000), TierBand("HIGH", 7000, 10000)]
        )
        assert table.classify(2999) == "LOW"
        assert table.classify(3000) == "MID"
        assert table.classify(10000) == "HIGH"
        assert classify(7000, table) == "HIGH"

    def test_bands_may_be_given_unordered(self) -> None:
        table = TierTable([TierBand("HIGH", 5000, 10000), TierBand("LOW", 0, 5000)])
        assert table.names() == ["LOW", "HIGH"]

    def test_gap_raises(self) -> None:
        with pytest.raises(ValueError, match="contiguous"):
            TierTable([TierBand("A", 0, 4000), TierBand("B", 5000, 10000)])

    def test_overlap_raises(self) -> None:
        with pytest.raises(ValueError, match="contiguous"):
            TierTable([TierBand("A", 0, 6000), TierBand("B", 5000, 10000)])

    def test_must_start_at_zero(self) -> None:
        with pytest.raises(ValueError, match="start"):
            TierTable([TierBand("A", 100, 10000)])

    def test_must_end_at_max(self) -> None:
        with pytest.raises(ValueError, match="end"):
            TierTable([TierBand("A", 0, 9000)])

    def test_duplicate_names_raise(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            TierTable([TierBand("A", 0, 5000), TierBand("A", 5000, 10000)])

    def test_empty_table_raises(self) -> None:
        with pytest.raises(ValueError):
            TierTable([])

    def test_inverted_band_raises(self) -> None:
        with pytest.raises(ValueError):
            TierBand("A", 5000, 5000)

    def test_to_list_round_trips_names(self) -> None:
        rows = DEFAULT_TIER_TABLE.to_list()
        assert [r["name"] for r in rows] == DEFAULT_TIER_TABLE.names()
