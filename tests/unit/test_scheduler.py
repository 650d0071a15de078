"""Unit tests for agent_reputation.scheduler — SnapshotScheduler runs."""
from __future__ import annotations

from typing import Any, Sequence

import pytest

from agent_reputation.collectors import ReviewRecord, default_collectors
from agent_reputation.engine import ReputationEngine
from agent_reputation.scheduler import SnapshotScheduler
from agent_reputation.scoring.aggregator import Aggregator
from agent_reputation.scoring.history import ScoreHistory
from agent_reputation.scoring.policy import ReputationPolicy, TierBandConfig

HOUR = 3_600_000
NOW = 1_750_000_000_000 - (1_750_000_000_000 % HOUR)

REVIEWS: dict[str, list[ReviewRecord]] = {
    "good-agent": [ReviewRecord(5, NOW) for _ in range(10)],
    "fair-agent": [ReviewRecord(3, NOW) for _ in range(10)],
}


async def _reviews(subject_id: str) -> Sequence[ReviewRecord]:
    if subject_id == "broken-agent":
        raise RuntimeError("review store down")
    return REVIEWS.get(subject_id, [])


async def _payments(subject_id: str) -> Sequence[Any]:
    if subject_id == "broken-agent":
        raise RuntimeError("indexer down")
    return []


async def _failing_for_broken(subject_id: str) -> Sequence[Any]:
    if subject_id == "broken-agent":
        raise RuntimeError("down")
    return []


def _engine() -> ReputationEngine:
    return ReputationEngine(
        default_collectors(
            ReputationPolicy(),
            payments=_payments,
            stakes=_failing_for_broken,
            credentials=_failing_for_broken,
            reviews=_reviews,
            endpoint_tests=_failing_for_broken,
        )
    )


@pytest.fixture()
def history() -> ScoreHistory:
    return ScoreHistory()


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_records_each_subject(self, history: ScoreHistory) -> None:
        run = await SnapshotScheduler(_engine(), history).run_once(
            ["good-agent", "fair-agent"], now=NOW
        )
        assert run.recorded["good-agent"].score == 10000
        assert run.recorded["fair-agent"].score == 6000
        assert run.skipped == []
        assert history.subject_ids() == ["fair-agent", "good-agent"]

    @pytest.mark.asyncio
    async def test_total_failure_skipped(self, history: ScoreHistory) -> None:
        run = await SnapshotScheduler(_engine(), history).run_once(
            ["good-agent", "broken-agent"], now=NOW
        )
        assert run.skipped == ["broken-agent"]
        assert history.latest("broken-agent") is None

    @pytest.mark.asyncio
    async def test_no_data_subject_recorded_as_zero(self, history: ScoreHistory) -> None:
        run = await SnapshotScheduler(_engine(), history).run_once(["unknown-agent"], now=NOW)
        assert run.recorded["unknown-agent"].score == 0
        assert run.recorded["unknown-agent"].tier == "NEWCOMER"

    @pytest.mark.asyncio
    async def test_rerun_in_same_bucket_is_idempotent(self, history: ScoreHistory) -> None:
        scheduler = SnapshotScheduler(_engine(), history)
        await scheduler.run_once(["good-agent"], now=NOW)
        await scheduler.run_once(["good-agent"], now=NOW + 60_000)
        assert len(history.store.snapshots("good-agent")) == 1

    @pytest.mark.asyncio
    async def test_next_bucket_appends(self, history: ScoreHistory) -> None:
        scheduler = SnapshotScheduler(_engine(), history)
        await scheduler.run_once(["good-agent"], now=NOW)
        await scheduler.run_once(["good-agent"], now=NOW + HOUR)
        assert len(history.recent("good-agent")) == 2

    @pytest.mark.asyncio
    async def test_run_summary_serializes(self, history: ScoreHistory) -> None:
        run = await SnapshotScheduler(_engine(), history).run_once(["broken-agent"], now=NOW)
        assert run.to_dict() == {"run_at": NOW, "recorded": {}, "skipped": ["broken-agent"]}


class TestTierTableAgreement:
    def _custom_policy(self) -> ReputationPolicy:
        return ReputationPolicy(
            tiers=[
                TierBandConfig(name="LOW", min_score=0, max_score=5000),
                TierBandConfig(name="HIGH", min_score=5000, max_score=10000),
            ]
        )

    def _engine_for(self, policy: ReputationPolicy) -> ReputationEngine:
        return ReputationEngine(
            default_collectors(
                policy,
                payments=_payments,
                stakes=_failing_for_broken,
                credentials=_failing_for_broken,
                reviews=_reviews,
                endpoint_tests=_failing_for_broken,
            ),
            aggregator=Aggregator(policy),
        )

    def test_mismatched_history_rejected_up_front(self) -> None:
        engine = self._engine_for(self._custom_policy())
        with pytest.raises(ValueError, match="tier table"):
            SnapshotScheduler(engine, ScoreHistory())

    @pytest.mark.asyncio
    async def test_matching_custom_tiers_recorded(self) -> None:
        policy = self._custom_policy()
        history = ScoreHistory(tier_table=policy.tier_table())
        run = await SnapshotScheduler(self._engine_for(policy), history).run_once(
            ["good-agent", "fair-agent"], now=NOW
        )
        assert run.recorded["good-agent"].tier == "HIGH"
        assert run.recorded["fair-agent"].tier == "HIGH"
