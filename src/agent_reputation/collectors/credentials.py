"""Credential verifications — points per issued credential type."""
from __future__ import annotations

import logging
from typing import Optional

from agent_reputation.collectors.base import FactProvider, SourceCollector
from agent_reputation.collectors.keyring import IssuerKeyring
from agent_reputation.collectors.records import CredentialRecord
from agent_reputation.scoring.policy import SourceConfig
from agent_reputation.scoring.source import SourceName, SourceScore

logger = logging.getLogger(__name__)

CREDENTIAL_POINTS: dict[str, float] = {
    "AGENT_IDENTITY": 1000,
    "REPUTATION_TIER": 1500,
    "PAYMENT_MILESTONE": 1200,
    "VERIFIED_STAKER": 800,
    "VERIFIED_HIRE": 1000,
    "FRAMEWORK_AGENT": 1100,
}
DEFAULT_CREDENTIAL_POINTS: float = 500


class CredentialVerificationsCollector(SourceCollector[CredentialRecord]):
    """Scores the credentials issued to the subject.

    Each credential adds the points for its type; the total is capped at
    10000. Confidence grows with the number of *distinct* credential types.

    Parameters
    ----------
    config:
        Configuration for the credential source.
    provider:
        Async callable returning the subject's credentials.
    keyring:
        When given, only credentials signed by a trusted issuer count.
    """

    source = SourceName.CREDENTIAL_VERIFICATIONS

    def __init__(
        self,
        config: SourceConfig,
        provider: FactProvider[CredentialRecord],
        keyring: Optional[IssuerKeyring] = None,
    ) -> None:
        super().__init__(config, provider)
        self._keyring = keyring

    def score(self, subject_id: str, records: list[CredentialRecord], now_ms: int) -> SourceScore:
        credentials = records
        if self._keyring is not None:
            credentials = [c for c in records if self._keyring.verify(subject_id, c)]
            rejected = len(records) - len(credentials)
            if rejected:
                logger.warning(
                    "Ignored %d unverifiable credential(s) for subject %s", rejected, subject_id
                )
        if not credentials:
            return self.empty(now_ms)

        points = sum(
            CREDENTIAL_POINTS.get(c.credential_type, DEFAULT_CREDENTIAL_POINTS)
            for c in credentials
        )
        distinct_types = len({c.credential_type for c in credentials})

        return self._build(
            strength=points,
            confidence=self.count_confidence(distinct_types),
            data_points=len(credentials),
            last_updated=max(c.issued_at_ms for c in credentials),
            now_ms=now_ms,
        )
