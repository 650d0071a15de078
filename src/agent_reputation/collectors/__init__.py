"""Source collectors — one per category of reputation evidence.

Collectors turn raw facts fetched by external stores into a single
:class:`~agent_reputation.scoring.source.SourceScore` each, applying the
source's own time decay exactly once.
"""
from __future__ import annotations

from typing import Optional

from agent_reputation.collectors.api_quality import ApiQualityCollector
from agent_reputation.collectors.base import FactProvider, SourceCollector
from agent_reputation.collectors.credentials import CredentialVerificationsCollector
from agent_reputation.collectors.keyring import IssuerKeyring
from agent_reputation.collectors.payments import PaymentActivityCollector
from agent_reputation.collectors.records import (
    ApiUsageRecord,
    CredentialRecord,
    EndpointTestRecord,
    PaymentRecord,
    ReviewRecord,
    StakeRecord,
    credential_signing_payload,
)
from agent_reputation.collectors.reviews import UserReviewsCollector
from agent_reputation.collectors.staking import StakingCommitmentCollector
from agent_reputation.scoring.policy import ReputationPolicy
from agent_reputation.scoring.source import SourceName


def default_collectors(
    policy: ReputationPolicy,
    *,
    payments: FactProvider[PaymentRecord],
    stakes: FactProvider[StakeRecord],
    credentials: FactProvider[CredentialRecord],
    reviews: FactProvider[ReviewRecord],
    endpoint_tests: FactProvider[EndpointTestRecord],
    api_usage: Optional[FactProvider[ApiUsageRecord]] = None,
    keyring: Optional[IssuerKeyring] = None,
) -> list[SourceCollector]:
    """Build one collector per source, configured from *policy*."""
    return [
        PaymentActivityCollector(policy.source_config(SourceName.PAYMENT_ACTIVITY), payments),
        StakingCommitmentCollector(policy.source_config(SourceName.STAKING_COMMITMENT), stakes),
        CredentialVerificationsCollector(
            policy.source_config(SourceName.CREDENTIAL_VERIFICATIONS), credentials, keyring
        ),
        UserReviewsCollector(policy.source_config(SourceName.USER_REVIEWS), reviews),
        ApiQualityCollector(
            policy.source_config(SourceName.API_QUALITY_METRICS), endpoint_tests, api_usage
        ),
    ]


__all__ = [
    "ApiQualityCollector",
    "ApiUsageRecord",
    "CredentialRecord",
    "CredentialVerificationsCollector",
    "EndpointTestRecord",
    "FactProvider",
    "IssuerKeyring",
    "PaymentActivityCollector",
    "PaymentRecord",
    "ReviewRecord",
    "SourceCollector",
    "StakeRecord",
    "StakingCommitmentCollector",
    "UserReviewsCollector",
    "credential_signing_payload",
    "default_collectors",
]
