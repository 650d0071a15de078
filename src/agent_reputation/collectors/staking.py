"""Staking commitment — log-scaled stake size plus a duration bonus."""
from __future__ import annotations

import math

from agent_reputation.collectors.base import SourceCollector
from agent_reputation.collectors.records import StakeRecord
from agent_reputation.scoring.decay import age_days
from agent_reputation.scoring.source import SourceName, SourceScore

# Stake at which the size component reaches 10000.
MAX_STAKE: float = 1_000_000
# Total stake at which confidence is no longer capped by stake size.
FULL_CONFIDENCE_STAKE: float = 10_000

DURATION_POINTS_PER_DAY: float = 5
DURATION_BONUS_CAP: float = 2000


class StakingCommitmentCollector(SourceCollector[StakeRecord]):
    """Scores the subject's active stakes.

    Log scaling keeps very large stakes from dominating; the duration
    bonus rewards stakes that have been held for a long time.
    """

    source = SourceName.STAKING_COMMITMENT

    def score(self, subject_id: str, records: list[StakeRecord], now_ms: int) -> SourceScore:
        active = [r for r in records if r.active]
        if not active:
            return self.empty(now_ms)

        total = sum(r.amount for r in active)
        size_points = 10000 * math.log10(total + 1) / math.log10(MAX_STAKE)

        mean_days = sum(age_days(r.staked_at_ms, now_ms) for r in active) / len(active)
        duration_points = min(DURATION_BONUS_CAP, mean_days * DURATION_POINTS_PER_DAY)

        confidence = min(self.count_confidence(len(active)), total / FULL_CONFIDENCE_STAKE)

        return self._build(
            strength=size_points + duration_points,
            confidence=confidence,
            data_points=len(active),
            last_updated=max(r.staked_at_ms for r in active),
            now_ms=now_ms,
        )
