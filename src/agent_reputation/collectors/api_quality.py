"""API quality metrics — observed endpoint tests, falling back to usage logs."""
from __future__ import annotations

from typing import Optional

from agent_reputation.collectors.base import FactProvider, SourceCollector
from agent_reputation.collectors.records import ApiUsageRecord, EndpointTestRecord
from agent_reputation.scoring.policy import SourceConfig
from agent_reputation.scoring.source import SourceName, SourceScore

MAX_RECENT_OBSERVATIONS: int = 100

# Endpoint-test composite: shares of the 10000-point scale.
SUCCESS_POINTS: float = 4000
RESPONSE_POINTS: float = 2000
CAPABILITY_POINTS: float = 3000
QUALITY_POINTS: float = 1000

FULL_CREDIT_RESPONSE_MS: float = 500
ZERO_CREDIT_RESPONSE_MS: float = 5000
DEFAULT_QUALITY_SCORE: float = 50

# Usage-log fallback latency penalties.
SLOW_USAGE_MS: float = 1000
SLOW_USAGE_PENALTY: float = 500
SLUGGISH_USAGE_MS: float = 500
SLUGGISH_USAGE_PENALTY: float = 250


class ApiQualityCollector(SourceCollector[EndpointTestRecord]):
    """Scores the subject's API from endpoint observation tests.

    With tests available::

        strength = 4000 * success_rate
                 + 2000 * response_time_credit
                 + 3000 * capability_verification_rate
                 + 1000 * mean_quality / 100

    Without tests, raw API usage logs are scored instead: success rate
    (status < 400) times 10000, minus a latency penalty.

    Parameters
    ----------
    config:
        Configuration for the API quality source.
    provider:
        Async callable returning endpoint test records.
    usage_provider:
        Optional async callable returning API usage records, consulted only
        when the subject has no endpoint tests.
    """

    source = SourceName.API_QUALITY_METRICS

    def __init__(
        self,
        config: SourceConfig,
        provider: FactProvider[EndpointTestRecord],
        usage_provider: Optional[FactProvider[ApiUsageRecord]] = None,
    ) -> None:
        super().__init__(config, provider)
        self._usage_provider = usage_provider

    async def collect(self, subject_id: str, now_ms: int) -> SourceScore:
        tests = list(await self._provider(subject_id))
        if tests or self._usage_provider is None:
            return self.score(subject_id, tests, now_ms)
        usage = list(await self._usage_provider(subject_id))
        return self.score_usage(subject_id, usage, now_ms)

    def score(self, subject_id: str, records: list[EndpointTestRecord], now_ms: int) -> SourceScore:
        if not records:
            return self.empty(now_ms)

        recent = sorted(records, key=lambda r: r.tested_at_ms, reverse=True)[:MAX_RECENT_OBSERVATIONS]
        n = len(recent)
        success_rate = sum(1 for r in recent if r.success) / n
        mean_response = sum(r.response_time_ms for r in recent) / n
        verification_rate = sum(1 for r in recent if r.capability_verified) / n
        mean_quality = sum(
            DEFAULT_QUALITY_SCORE if r.quality_score is None else r.quality_score for r in recent
        ) / n

        response_credit = 1 - (mean_response - FULL_CREDIT_RESPONSE_MS) / (
            ZERO_CREDIT_RESPONSE_MS - FULL_CREDIT_RESPONSE_MS
        )
        response_credit = max(0.0, min(1.0, response_credit))
        quality_credit = max(0.0, min(1.0, mean_quality / 100))

        strength = (
            success_rate * SUCCESS_POINTS
            + response_credit * RESPONSE_POINTS
            + verification_rate * CAPABILITY_POINTS
            + quality_credit * QUALITY_POINTS
        )
        return self._build(
            strength=strength,
            confidence=self.count_confidence(n),
            data_points=n,
            last_updated=recent[0].tested_at_ms,
            now_ms=now_ms,
        )

    def score_usage(self, subject_id: str, records: list[ApiUsageRecord], now_ms: int) -> SourceScore:
        """Score raw API usage logs. Pure; no I/O."""
        if not records:
            return self.empty(now_ms)

        recent = sorted(records, key=lambda r: r.timestamp_ms, reverse=True)[:MAX_RECENT_OBSERVATIONS]
        n = len(recent)
        errors = sum(1 for r in recent if r.status_code >= 400)
        strength = (1 - errors / n) * 10000

        mean_response = sum(r.response_time_ms for r in recent) / n
        if mean_response > SLOW_USAGE_MS:
            strength -= SLOW_USAGE_PENALTY
        elif mean_response > SLUGGISH_USAGE_MS:
            strength -= SLUGGISH_USAGE_PENALTY

        return self._build(
            strength=strength,
            confidence=self.count_confidence(n),
            data_points=n,
            last_updated=recent[0].timestamp_ms,
            now_ms=now_ms,
        )
