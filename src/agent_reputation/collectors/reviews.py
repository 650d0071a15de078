"""User reviews — mean star rating from verified hires."""
from __future__ import annotations

from agent_reputation.collectors.base import SourceCollector
from agent_reputation.collectors.records import ReviewRecord
from agent_reputation.scoring.source import SourceName, SourceScore

MAX_RATING: float = 5.0


class UserReviewsCollector(SourceCollector[ReviewRecord]):
    """Scores ``mean(rating) / 5 * 10000`` over all reviews of the subject."""

    source = SourceName.USER_REVIEWS

    def score(self, subject_id: str, records: list[ReviewRecord], now_ms: int) -> SourceScore:
        if not records:
            return self.empty(now_ms)

        ratings = [max(0.0, min(MAX_RATING, r.rating)) for r in records]
        mean_rating = sum(ratings) / len(ratings)

        return self._build(
            strength=mean_rating / MAX_RATING * 10000,
            confidence=self.count_confidence(len(records)),
            data_points=len(records),
            last_updated=max(r.created_at_ms for r in records),
            now_ms=now_ms,
        )
