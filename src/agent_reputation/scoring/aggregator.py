"""Aggregator — combines per-source scores into one reputation score.

The pipeline is: drop sources with no weight or no confidence, trim
low-evidence outliers, mix the rest by ``weight * confidence``, add any
signed adjustments, clamp to [0, 10000] on both ends and round. A
confidence interval is derived from the spread of the per-source scores
and narrows as the total evidence grows.

Decay is never applied here. Every ``SourceScore.raw_score`` arrives
already decayed by its collector.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from agent_reputation.scoring.policy import ReputationPolicy
from agent_reputation.scoring.source import (
    MAX_SCORE,
    MIN_SCORE,
    SourceContractError,
    SourceName,
    SourceScore,
)

logger = logging.getLogger(__name__)


class AdjustmentContractError(ValueError):
    """Raised when a ScoreAdjustment carries an invalid point value."""


@dataclass(frozen=True)
class ScoreAdjustment:
    """A signed bonus or penalty added to the weighted mean before clamping.

    Parameters
    ----------
    name:
        Short identifier, e.g. ``"dispute_penalty"``.
    points:
        Signed score points in [-10000, 10000].
    reason:
        Optional human-readable explanation.
    """

    name: str
    points: float
    reason: str = ""

    def __post_init__(self) -> None:
        if (
            isinstance(self.points, bool)
            or not isinstance(self.points, (int, float))
            or not math.isfinite(self.points)
            or not -MAX_SCORE <= self.points <= MAX_SCORE
        ):
            raise AdjustmentContractError(
                f"Adjustment {self.name!r} has invalid points={self.points!r}; "
                f"expected a finite number in [-{MAX_SCORE}, {MAX_SCORE}]."
            )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {"name": self.name, "points": self.points, "reason": self.reason}


@dataclass(frozen=True)
class AggregationResult:
    """Final reputation for a subject at one evaluation time.

    Parameters
    ----------
    score:
        Final score, an int in [0, 10000].
    confidence_low:
        Lower end of the confidence interval (<= score).
    confidence_high:
        Upper end of the confidence interval (>= score).
    tier:
        Tier name for ``score``.
    sources_used:
        Number of sources that survived filtering and outlier trimming.
    trimmed:
        Sources excluded as low-evidence outliers.
    evaluated_at:
        Epoch milliseconds of the evaluation.
    """

    score: int
    confidence_low: int
    confidence_high: int
    tier: str
    sources_used: int
    trimmed: tuple[SourceName, ...] = field(default_factory=tuple)
    evaluated_at: int = 0

    @property
    def confidence_interval(self) -> tuple[int, int]:
        """The ``(low, high)`` confidence interval."""
        return (self.confidence_low, self.confidence_high)

    def to_dict(self) -> dict[str, object]:
        """Serialize to the plain, JSON-compatible output record."""
        return {
            "score": self.score,
            "confidence_low": self.confidence_low,
            "confidence_high": self.confidence_high,
            "tier": self.tier,
            "sources_used": self.sources_used,
        }


def _clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class Aggregator:
    """Pure, stateless combiner of SourceScores.

    Safe to call concurrently for different subjects; it holds only the
    immutable policy and tier table.

    Parameters
    ----------
    policy:
        Scoring policy. Defaults to :class:`ReputationPolicy` defaults.

    Raises
    ------
    PolicyError
        If the policy's source weights do not sum to 1.0.
    """

    def __init__(self, policy: ReputationPolicy | None = None) -> None:
        self._policy: ReputationPolicy = policy if policy is not None else ReputationPolicy()
        self._policy.validate_weights()
        self._tiers = self._policy.tier_table()

    @property
    def policy(self) -> ReputationPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def aggregate(
        self,
        sources: Iterable[SourceScore],
        now_ms: int,
        adjustments: Sequence[ScoreAdjustment] = (),
    ) -> AggregationResult:
        """Combine *sources* into an :class:`AggregationResult`.

        Parameters
        ----------
        sources:
            One SourceScore per source; order does not matter.
        now_ms:
            Evaluation time, recorded on the result.
        adjustments:
            Optional signed adjustments added before clamping. Ignored when
            no source is usable.

        Returns
        -------
        AggregationResult
            ``score=0``, interval ``(0, 0)`` and ``sources_used=0`` when no
            source carries any signal.

        Raises
        ------
        SourceContractError
            If an element is not a SourceScore or a source appears twice.
        AdjustmentContractError
            If an element of *adjustments* is not a ScoreAdjustment.
        """
        checked = self._check_sources(sources)
        for adjustment in adjustments:
            if not isinstance(adjustment, ScoreAdjustment):
                raise AdjustmentContractError(
                    f"Expected ScoreAdjustment, got {type(adjustment).__name__}"
                )

        usable = [s for s in checked if s.weight > 0 and s.confidence > 0]
        kept, trimmed = self._trim_outliers(usable)

        total_weight = sum(s.effective_weight for s in kept)
        if total_weight <= 0:
            return self._neutral(now_ms, trimmed)

        weights = [s.effective_weight / total_weight for s in kept]
        mean = sum(w * s.raw_score for w, s in zip(weights, kept))
        adjusted = mean + sum(adj.points for adj in adjustments)

        score = _round_half_up(_clamp(adjusted))
        low, high = self._interval(kept, weights, mean, adjusted, score)

        return AggregationResult(
            score=score,
            confidence_low=low,
            confidence_high=high,
            tier=self._tiers.classify(score),
            sources_used=len(kept),
            trimmed=tuple(s.source for s in trimmed),
            evaluated_at=now_ms,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_sources(sources: Iterable[SourceScore]) -> list[SourceScore]:
        """Validate element types and uniqueness; return a canonical ordering."""
        seen: set[SourceName] = set()
        checked: list[SourceScore] = []
        for item in sources:
            if not isinstance(item, SourceScore):
                raise SourceContractError(
                    str(getattr(item, "source", "<unknown>")),
                    "type",
                    type(item).__name__,
                    "a SourceScore instance",
                )
            if item.source in seen:
                raise SourceContractError(
                    item.source.value, "source", item.source.value, "each source at most once"
                )
            seen.add(item.source)
            checked.append(item)
        # Fixed summation order keeps the float result independent of input order.
        checked.sort(key=lambda s: s.source.value)
        return checked

    def _trim_outliers(
        self, usable: list[SourceScore]
    ) -> tuple[list[SourceScore], list[SourceScore]]:
        """Split *usable* into (kept, trimmed).

        A source is trimmed only when it lies more than ``outlier_sigma``
        weighted standard deviations from the weighted mean *and* has fewer
        than ``outlier_min_data_points`` observations.
        """
        policy = self._policy
        if len(usable) < policy.min_sources_for_trim:
            return usable, []

        total = sum(s.effective_weight for s in usable)
        mean = sum(s.effective_weight * s.raw_score for s in usable) / total
        variance = sum(s.effective_weight * (s.raw_score - mean) ** 2 for s in usable) / total
        std = math.sqrt(variance)
        if std == 0:
            return usable, []

        kept: list[SourceScore] = []
        trimmed: list[SourceScore] = []
        for s in usable:
            deviation = abs(s.raw_score - mean) / std
            if deviation > policy.outlier_sigma and s.data_points < policy.outlier_min_data_points:
                logger.debug(
                    "Trimming outlier source %s: %.2f sigma from mean with %d data points",
                    s.source.value,
                    deviation,
                    s.data_points,
                )
                trimmed.append(s)
            else:
                kept.append(s)
        return kept, trimmed

    def _interval(
        self,
        kept: list[SourceScore],
        weights: list[float],
        mean: float,
        center: float,
        score: int,
    ) -> tuple[int, int]:
        """Return the clamped (low, high) interval around *center*.

        spread^2 = sum(w * (x - mean)^2) + sum(w^2 * prior_std^2 / n), scaled by
        sqrt(k / (k + N)) where N is the total number of data points.
        """
        policy = self._policy
        between = sum(w * (s.raw_score - mean) ** 2 for w, s in zip(weights, kept))
        within = sum(
            (w * w) * (policy.prior_std ** 2) / max(1, s.data_points)
            for w, s in zip(weights, kept)
        )
        total_points = sum(s.data_points for s in kept)
        shrink = math.sqrt(policy.evidence_scale / (policy.evidence_scale + total_points))
        margin = policy.confidence_z * math.sqrt(between + within) * shrink

        low = _round_half_up(_clamp(center - margin))
        high = _round_half_up(_clamp(center + margin))
        return min(low, score), max(high, score)

    def _neutral(self, now_ms: int, trimmed: list[SourceScore]) -> AggregationResult:
        return AggregationResult(
            score=0,
            confidence_low=0,
            confidence_high=0,
            tier=self._tiers.classify(0),
            sources_used=0,
            trimmed=tuple(s.source for s in trimmed),
            evaluated_at=now_ms,
        )
