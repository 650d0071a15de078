"""Unit tests for agent_reputation.engine — concurrent collection and status handling."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import pytest

from agent_reputation.collectors import (
    PaymentActivityCollector,
    PaymentRecord,
    ReviewRecord,
    UserReviewsCollector,
    default_collectors,
)
from agent_reputation.engine import EvaluationStatus, ReputationEngine
from agent_reputation.scoring.aggregator import ScoreAdjustment
from agent_reputation.scoring.policy import ReputationPolicy
from agent_reputation.scoring.source import SourceContractError, SourceName, SourceScore

NOW = 1_750_000_000_000


def _static(records: Sequence[Any]):  # type: ignore[no-untyped-def]
    async def provider(subject_id: str) -> Sequence[Any]:
        return records

    return provider


async def _boom(subject_id: str) -> Sequence[Any]:
    raise ConnectionError("store unavailable")


async def _hang(subject_id: str) -> Sequence[Any]:
    await asyncio.sleep(10)
    return []


@pytest.fixture()
def policy() -> ReputationPolicy:
    return ReputationPolicy()


def _engine(policy: ReputationPolicy, **providers: Any) -> ReputationEngine:
    defaults: dict[str, Any] = {
        "payments": _static([PaymentRecord(True, NOW - i, 100) for i in range(25)]),
        "stakes": _static([]),
        "credentials": _static([]),
        "reviews": _static([ReviewRecord(5, NOW) for _ in range(10)]),
        "endpoint_tests": _static([]),
    }
    defaults.update(providers)
    return ReputationEngine(default_collectors(policy, **defaults))


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_ok_evaluation(self, policy: ReputationPolicy) -> None:
        evaluation = await _engine(policy).evaluate("agent-1", now=NOW)
        assert evaluation.status is EvaluationStatus.OK
        assert evaluation.result.score == 10000
        assert evaluation.result.tier == "PLATINUM"
        assert evaluation.result.sources_used == 2
        assert len(evaluation.sources) == 5
        assert evaluation.failures == ()
        assert "PLATINUM_TIER" in evaluation.badges

    @pytest.mark.asyncio
    async def test_no_data(self, policy: ReputationPolicy) -> None:
        engine = _engine(policy, payments=_static([]), reviews=_static([]))
        evaluation = await engine.evaluate("newbie", now=NOW)
        assert evaluation.status is EvaluationStatus.NO_DATA
        assert evaluation.result.score == 0
        assert not evaluation.all_failed

    @pytest.mark.asyncio
    async def test_partial_failure_still_aggregates(
        self, policy: ReputationPolicy, caplog: pytest.LogCaptureFixture
    ) -> None:
        engine = _engine(policy, stakes=_boom)
        with caplog.at_level(logging.WARNING):
            evaluation = await engine.evaluate("agent-1", now=NOW)
        assert evaluation.status is EvaluationStatus.PARTIAL
        assert evaluation.result.score == 10000
        assert [f.source for f in evaluation.failures] == [SourceName.STAKING_COMMITMENT]
        assert "ConnectionError" in evaluation.failures[0].error
        assert "store unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_failed_source_replaced_by_empty_signal(self, policy: ReputationPolicy) -> None:
        evaluation = await _engine(policy, reviews=_boom).evaluate("agent-1", now=NOW)
        reviews = next(s for s in evaluation.sources if s.source is SourceName.USER_REVIEWS)
        assert reviews.is_empty

    @pytest.mark.asyncio
    async def test_total_failure(self, policy: ReputationPolicy) -> None:
        engine = _engine(
            policy,
            payments=_boom,
            stakes=_boom,
            credentials=_boom,
            reviews=_boom,
            endpoint_tests=_boom,
        )
        evaluation = await engine.evaluate("agent-1", now=NOW)
        assert evaluation.status is EvaluationStatus.TOTAL_FAILURE
        assert evaluation.all_failed
        assert evaluation.result.score == 0
        assert len(evaluation.failures) == 5

    @pytest.mark.asyncio
    async def test_timeout_marks_failure(self, policy: ReputationPolicy) -> None:
        engine = _engine(policy, stakes=_hang)
        evaluation = await engine.evaluate("agent-1", now=NOW, timeout_s=0.05)
        assert evaluation.status is EvaluationStatus.PARTIAL
        (failure,) = evaluation.failures
        assert failure.source is SourceName.STAKING_COMMITMENT
        assert failure.timed_out

    @pytest.mark.asyncio
    async def test_adjustments_forwarded(self, policy: ReputationPolicy) -> None:
        evaluation = await _engine(policy).evaluate(
            "agent-1", now=NOW, adjustments=[ScoreAdjustment("dispute_penalty", -3000)]
        )
        assert evaluation.result.score == 7000

    @pytest.mark.asyncio
    async def test_to_dict(self, policy: ReputationPolicy) -> None:
        data = (await _engine(policy).evaluate("agent-1", now=NOW)).to_dict()
        assert data["subject_id"] == "agent-1"
        assert data["status"] == "ok"
        assert data["score"] == 10000
        assert len(data["sources"]) == 5  # type: ignore[arg-type]


class TestContractViolations:
    @pytest.mark.asyncio
    async def test_invalid_collector_output_propagates(self, policy: ReputationPolicy) -> None:
        class WrongSource(UserReviewsCollector):
            def score(self, subject_id: str, records: list[ReviewRecord], now_ms: int) -> SourceScore:
                return SourceScore.empty(SourceName.PAYMENT_ACTIVITY, 0.2, now_ms)

        engine = ReputationEngine(
            [WrongSource(policy.source_config(SourceName.USER_REVIEWS), _static([]))]
        )
        with pytest.raises(SourceContractError):
            await engine.evaluate("agent-1", now=NOW)

    @pytest.mark.asyncio
    async def test_collector_contract_error_not_absorbed(self, policy: ReputationPolicy) -> None:
        class Broken(UserReviewsCollector):
            def score(self, subject_id: str, records: list[ReviewRecord], now_ms: int) -> SourceScore:
                return self._build(5000, 1.0, -1, now_ms, now_ms)

        engine = ReputationEngine(
            [Broken(policy.source_config(SourceName.USER_REVIEWS), _static([]))]
        )
        with pytest.raises(SourceContractError):
            await engine.evaluate("agent-1", now=NOW)

    def test_duplicate_collectors_rejected(self, policy: ReputationPolicy) -> None:
        config = policy.source_config(SourceName.PAYMENT_ACTIVITY)
        with pytest.raises(ValueError):
            ReputationEngine(
                [
                    PaymentActivityCollector(config, _static([])),
                    PaymentActivityCollector(config, _static([])),
                ]
            )


class TestEvaluateSync:
    def test_sync_wrapper(self, policy: ReputationPolicy) -> None:
        evaluation = _engine(policy).evaluate_sync("agent-1", now=NOW)
        assert evaluation.status is EvaluationStatus.OK
        assert evaluation.result.evaluated_at == NOW
