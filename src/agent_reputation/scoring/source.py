"""SourceName enum and the SourceScore value type.

A SourceScore is one source's contribution to a subject's reputation.
Its ``raw_score`` is already time-decayed by the collector that produced
it; ``decay_factor`` is kept for audit only and is never reapplied.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

MIN_SCORE: int = 0
MAX_SCORE: int = 10_000


class SourceName(str, Enum):
    """Independent categories of evidence about a subject."""

    PAYMENT_ACTIVITY = "payment_activity"
    STAKING_COMMITMENT = "staking_commitment"
    CREDENTIAL_VERIFICATIONS = "credential_verifications"
    USER_REVIEWS = "user_reviews"
    API_QUALITY_METRICS = "api_quality_metrics"


class SourceContractError(ValueError):
    """Raised when a SourceScore field is outside its declared domain.

    This always indicates a bug in the collector that produced the value.
    """

    def __init__(self, source: str, field_name: str, value: object, expected: str) -> None:
        self.source = source
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Source {source!r} produced invalid {field_name}={value!r}; expected {expected}."
        )


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class SourceScore:
    """One source's contribution to a subject's reputation.

    Parameters
    ----------
    source:
        Which source produced this score.
    raw_score:
        Fully decayed strength signal in [0, 10000].
    weight:
        Designed importance of the source, in [0, 1].
    confidence:
        How much signal the source actually observed, in [0, 1].
    data_points:
        Number of observations backing the score (>= 0).
    decay_factor:
        The multiplier already applied to reach ``raw_score``, in (0, 1].
        Diagnostic only.
    last_updated:
        Epoch milliseconds of the most recent observation.
    """

    source: SourceName
    raw_score: float
    weight: float
    confidence: float
    data_points: int
    decay_factor: float
    last_updated: int

    def __post_init__(self) -> None:
        name = self.source.value if isinstance(self.source, SourceName) else str(self.source)
        if not isinstance(self.source, SourceName):
            raise SourceContractError(name, "source", self.source, "a SourceName")
        if not _is_finite_number(self.raw_score) or not MIN_SCORE <= self.raw_score <= MAX_SCORE:
            raise SourceContractError(
                name, "raw_score", self.raw_score, f"a finite number in [{MIN_SCORE}, {MAX_SCORE}]"
            )
        if not _is_finite_number(self.weight) or not 0.0 <= self.weight <= 1.0:
            raise SourceContractError(name, "weight", self.weight, "a finite number in [0, 1]")
        if not _is_finite_number(self.confidence) or not 0.0 <= self.confidence <= 1.0:
            raise SourceContractError(
                name, "confidence", self.confidence, "a finite number in [0, 1]"
            )
        if isinstance(self.data_points, bool) or not isinstance(self.data_points, int) or self.data_points < 0:
            raise SourceContractError(
                name, "data_points", self.data_points, "a non-negative integer"
            )
        if not _is_finite_number(self.decay_factor) or not 0.0 < self.decay_factor <= 1.0:
            raise SourceContractError(
                name, "decay_factor", self.decay_factor, "a finite number in (0, 1]"
            )
        if isinstance(self.last_updated, bool) or not isinstance(self.last_updated, int):
            raise SourceContractError(
                name, "last_updated", self.last_updated, "an integer epoch-milliseconds timestamp"
            )

    @classmethod
    def empty(cls, source: SourceName, weight: float, now_ms: int) -> SourceScore:
        """Return the empty-signal score for a source with no data."""
        return cls(
            source=source,
            raw_score=0.0,
            weight=weight,
            confidence=0.0,
            data_points=0,
            decay_factor=1.0,
            last_updated=now_ms,
        )

    @property
    def is_empty(self) -> bool:
        """True when the source observed nothing."""
        return self.data_points == 0 and self.confidence == 0.0

    @property
    def effective_weight(self) -> float:
        """Configured weight scaled by current confidence."""
        return self.weight * self.confidence

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "source": self.source.value,
            "raw_score": self.raw_score,
            "weight": self.weight,
            "confidence": self.confidence,
            "data_points": self.data_points,
            "decay_factor": self.decay_factor,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> SourceScore:
        """Build a SourceScore from a plain dictionary (see :meth:`to_dict`).

        Raises
        ------
        SourceContractError
            If the dictionary names an unknown source or any field is invalid.
        """
        raw_source = str(data.get("source", ""))
        try:
            source = SourceName(raw_source)
        except ValueError:
            raise SourceContractError(raw_source, "source", raw_source, "a known source name") from None
        return cls(
            source=source,
            raw_score=data.get("raw_score"),  # type: ignore[arg-type]
            weight=data.get("weight"),  # type: ignore[arg-type]
            confidence=data.get("confidence"),  # type: ignore[arg-type]
            data_points=data.get("data_points"),  # type: ignore[arg-type]
            decay_factor=data.get("decay_factor", 1.0),  # type: ignore[arg-type]
            last_updated=data.get("last_updated", 0),  # type: ignore[arg-type]
        )
