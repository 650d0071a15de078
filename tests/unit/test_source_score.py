"""Unit tests for agent_reputation.scoring.source — SourceScore validation."""
from __future__ import annotations

import dataclasses
import math

import pytest

from agent_reputation.scoring.source import SourceContractError, SourceName, SourceScore

NOW = 1_750_000_000_000


def _kwargs(**overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "source": SourceName.PAYMENT_ACTIVITY,
        "raw_score": 5000.0,
        "weight": 0.35,
        "confidence": 0.8,
        "data_points": 20,
        "decay_factor": 0.9,
        "last_updated": NOW,
    }
    base.update(overrides)
    return base


class TestSourceScoreValidation:
    def test_valid_score_constructs(self) -> None:
        score = SourceScore(**_kwargs())  # type: ignore[arg-type]
        assert score.raw_score == 5000.0

    @pytest.mark.parametrize("raw", [-0.1, 10000.5, math.nan, math.inf, -math.inf])
    def test_raw_score_out_of_domain_raises(self, raw: float) -> None:
        with pytest.raises(SourceContractError, match="raw_score"):
            SourceScore(**_kwargs(raw_score=raw))  # type: ignore[arg-type]

    def test_error_names_the_source(self) -> None:
        with pytest.raises(SourceContractError) as exc_info:
            SourceScore(**_kwargs(source=SourceName.USER_REVIEWS, raw_score=-5))  # type: ignore[arg-type]
        assert exc_info.value.source == "user_reviews"
        assert "user_reviews" in str(exc_info.value)

    def test_boundaries_are_accepted(self) -> None:
        SourceScore(**_kwargs(raw_score=0))  # type: ignore[arg-type]
        SourceScore(**_kwargs(raw_score=10000))  # type: ignore[arg-type]

    @pytest.mark.parametrize("weight", [-0.01, 1.01, math.nan])
    def test_weight_out_of_domain_raises(self, weight: float) -> None:
        with pytest.raises(SourceContractError, match="weight"):
            SourceScore(**_kwargs(weight=weight))  # type: ignore[arg-type]

    @pytest.mark.parametrize("confidence", [-0.5, 1.5, math.nan])
    def test_confidence_out_of_domain_raises(self, confidence: float) -> None:
        with pytest.raises(SourceContractError, match="confidence"):
            SourceScore(**_kwargs(confidence=confidence))  # type: ignore[arg-type]

    @pytest.mark.parametrize("data_points", [-1, 2.5, True])
    def test_invalid_data_points_raise(self, data_points: object) -> None:
        with pytest.raises(SourceContractError, match="data_points"):
            SourceScore(**_kwargs(data_points=data_points))  # type: ignore[arg-type]

    @pytest.mark.parametrize("factor", [0.0, 1.2, math.nan])
    def test_invalid_decay_factor_raises(self, factor: float) -> None:
        with pytest.raises(SourceContractError, match="decay_factor"):
            SourceScore(**_kwargs(decay_factor=factor))  # type: ignore[arg-type]

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(SourceContractError, match="source"):
            SourceScore(**_kwargs(source="governance"))  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        score = SourceScore(**_kwargs())  # type: ignore[arg-type]
        with pytest.raises(dataclasses.FrozenInstanceError):
            score.raw_score = 1.0  # type: ignore[misc]


class TestEmptySignal:
    def test_empty_has_zeroed_fields(self) -> None:
        empty = SourceScore.empty(SourceName.STAKING_COMMITMENT, 0.2, NOW)
        assert empty.raw_score == 0.0
        assert empty.confidence == 0.0
        assert empty.data_points == 0
        assert empty.decay_factor == 1.0
        assert empty.weight == 0.2
        assert empty.is_empty

    def test_non_empty_is_not_empty(self) -> None:
        assert not SourceScore(**_kwargs()).is_empty  # type: ignore[arg-type]

    def test_effective_weight(self) -> None:
        score = SourceScore(**_kwargs(weight=0.6, confidence=0.5))  # type: ignore[arg-type]
        assert score.effective_weight == pytest.approx(0.3)


class TestSerialization:
    def test_to_dict_uses_string_source(self) -> None:
        data = SourceScore(**_kwargs()).to_dict()  # type: ignore[arg-type]
        assert data["source"] == "payment_activity"

    def test_from_dict_rebuilds_equal_score(self) -> None:
        score = SourceScore(**_kwargs())  # type: ignore[arg-type]
        assert SourceScore.from_dict(score.to_dict()) == score

    def test_from_dict_unknown_source_raises(self) -> None:
        with pytest.raises(SourceContractError):
            SourceScore.from_dict({"source": "nope", "raw_score": 1, "weight": 0.1,
                                   "confidence": 1, "data_points": 1})

    def test_from_dict_missing_raw_score_raises(self) -> None:
        with pytest.raises(SourceContractError, match="raw_score"):
            SourceScore.from_dict({"source": "user_reviews", "weight": 0.1,
                                   "confidence": 1, "data_points": 1})
