"""Payment activity — success rate, responsiveness and consistency."""
from __future__ import annotations

from agent_reputation.collectors.base import SourceCollector
from agent_reputation.collectors.records import PaymentRecord
from agent_reputation.scoring.source import SourceName, SourceScore

MAX_RECENT_PAYMENTS: int = 100

FAST_RESPONSE_MS: float = 500
FAST_RESPONSE_BONUS: float = 500
OK_RESPONSE_MS: float = 2000
OK_RESPONSE_BONUS: float = 250

CONSISTENCY_POINTS_PER_SUCCESS: float = 10
CONSISTENCY_BONUS_CAP: float = 100


class PaymentActivityCollector(SourceCollector[PaymentRecord]):
    """Scores the most recent payments received by the subject.

    strength = success_rate * 10000
             + response bonus (500 under 500 ms, 250 under 2000 ms)
             + min(100, 10 * longest run of consecutive successes)
    """

    source = SourceName.PAYMENT_ACTIVITY

    def score(self, subject_id: str, records: list[PaymentRecord], now_ms: int) -> SourceScore:
        if not records:
            return self.empty(now_ms)

        recent = sorted(records, key=lambda r: r.timestamp_ms, reverse=True)[:MAX_RECENT_PAYMENTS]
        successes = sum(1 for r in recent if r.succeeded)
        strength = successes / len(recent) * 10000

        timed = [r.response_time_ms for r in recent if r.response_time_ms is not None]
        if timed:
            mean_response = sum(timed) / len(timed)
            if mean_response < FAST_RESPONSE_MS:
                strength += FAST_RESPONSE_BONUS
            elif mean_response < OK_RESPONSE_MS:
                strength += OK_RESPONSE_BONUS

        longest = run = 0
        for record in recent:
            run = run + 1 if record.succeeded else 0
            longest = max(longest, run)
        strength += min(CONSISTENCY_BONUS_CAP, longest * CONSISTENCY_POINTS_PER_SUCCESS)

        return self._build(
            strength=strength,
            confidence=self.count_confidence(len(recent)),
            data_points=len(recent),
            last_updated=recent[0].timestamp_ms,
            now_ms=now_ms,
        )
