"""Raw fact records consumed by the source collectors.

These are the already-fetched observations supplied by external stores
(payment indexer, staking program, credential issuers, review database,
endpoint observer). Each record validates its own fields.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Optional


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")


@dataclass(frozen=True)
class PaymentRecord:
    """One payment attempt involving the subject as merchant."""

    succeeded: bool
    timestamp_ms: int
    response_time_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if self.response_time_ms is not None:
            _require_finite("response_time_ms", self.response_time_ms)
            if self.response_time_ms < 0:
                raise ValueError(f"response_time_ms must be >= 0, got {self.response_time_ms}")


@dataclass(frozen=True)
class StakeRecord:
    """A token stake committed by the subject."""

    amount: float
    staked_at_ms: int
    active: bool = True

    def __post_init__(self) -> None:
        _require_finite("amount", self.amount)
        if self.amount < 0:
            raise ValueError(f"Stake amount must be >= 0, got {self.amount}")


@dataclass(frozen=True)
class CredentialRecord:
    """A credential issued to the subject.

    Parameters
    ----------
    credential_type:
        Credential type, e.g. ``"AGENT_IDENTITY"``.
    issuer:
        Identifier of the issuing party.
    issued_at_ms:
        Epoch milliseconds of issuance.
    signature:
        Issuer's Ed25519 signature over :func:`credential_signing_payload`.
    """

    credential_type: str
    issuer: str
    issued_at_ms: int
    signature: Optional[bytes] = None


def credential_signing_payload(
    subject_id: str,
    credential_type: str,
    issuer: str,
    issued_at_ms: int,
) -> bytes:
    """Return the canonical bytes an issuer signs for a credential."""
    return json.dumps(
        {
            "subject": subject_id,
            "type": credential_type,
            "issuer": issuer,
            "issued_at_ms": issued_at_ms,
        },
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")


@dataclass(frozen=True)
class ReviewRecord:
    """A verified-hire review with a 1-5 star rating."""

    rating: float
    created_at_ms: int
    reviewer: str = ""

    def __post_init__(self) -> None:
        _require_finite("rating", self.rating)


@dataclass(frozen=True)
class EndpointTestRecord:
    """One observation test run against the subject's API endpoint."""

    success: bool
    tested_at_ms: int
    response_time_ms: float = 0.0
    quality_score: Optional[float] = None
    capability_verified: bool = False

    def __post_init__(self) -> None:
        _require_finite("response_time_ms", self.response_time_ms)
        if self.quality_score is not None:
            _require_finite("quality_score", self.quality_score)


@dataclass(frozen=True)
class ApiUsageRecord:
    """One logged API call served by the subject."""

    status_code: int
    timestamp_ms: int
    response_time_ms: float = 0.0

    def __post_init__(self) -> None:
        _require_finite("response_time_ms", self.response_time_ms)
