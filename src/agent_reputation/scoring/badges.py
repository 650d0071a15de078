"""Achievement badges derived from an aggregation result and its sources."""
from __future__ import annotations

from typing import Iterable

from agent_reputation.scoring.aggregator import AggregationResult
from agent_reputation.scoring.source import SourceName, SourceScore
from agent_reputation.scoring.tiers import ReputationTier

# (min payment data points, badge), highest first.
_JOB_BADGES: tuple[tuple[int, str], ...] = (
    (1000, "THOUSAND_JOBS"),
    (100, "HUNDRED_JOBS"),
    (10, "TEN_JOBS"),
)

# (min staking raw score, badge), highest first.
_STAKER_BADGES: tuple[tuple[float, str], ...] = (
    (8000, "WHALE_STAKER"),
    (5000, "MAJOR_STAKER"),
    (2000, "COMMITTED_STAKER"),
)

PERFECT_PERFORMER_MIN_SCORE: float = 9900
VERIFIED_AGENT_MIN_CONFIDENCE: float = 0.9


def calculate_badges(result: AggregationResult, sources: Iterable[SourceScore]) -> list[str]:
    """Return the badges earned by a subject.

    The tier badge is taken from ``result.tier``, which the aggregator
    derived from ``result.score``. Empty-signal sources are ignored for the
    confidence badge.
    """
    by_source = {s.source: s for s in sources}
    badges: list[str] = []

    if result.tier != ReputationTier.NEWCOMER.value:
        badges.append(f"{result.tier}_TIER")

    payments = by_source.get(SourceName.PAYMENT_ACTIVITY)
    if payments is not None:
        for threshold, badge in _JOB_BADGES:
            if payments.data_points >= threshold:
                badges.append(badge)
                break
        if payments.raw_score >= PERFECT_PERFORMER_MIN_SCORE:
            badges.append("PERFECT_PERFORMER")

    staking = by_source.get(SourceName.STAKING_COMMITMENT)
    if staking is not None:
        for threshold, badge in _STAKER_BADGES:
            if staking.raw_score >= threshold:
                badges.append(badge)
                break

    present = [s for s in by_source.values() if not s.is_empty]
    if present:
        mean_confidence = sum(s.confidence for s in present) / len(present)
        if mean_confidence >= VERIFIED_AGENT_MIN_CONFIDENCE:
            badges.append("VERIFIED_AGENT")

    return badges
