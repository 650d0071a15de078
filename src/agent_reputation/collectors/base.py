"""SourceCollector — base class for per-source score collectors.

A collector fetches raw facts for a subject through an injected async
provider, then turns them into one :class:`SourceScore`. Decay is applied
exactly once, in :meth:`SourceCollector._build`. A collector with nothing
to go on returns the empty-signal score instead of dividing by zero.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, ClassVar, Generic, Sequence, TypeVar

from agent_reputation.scoring.decay import decay_factor
from agent_reputation.scoring.policy import PolicyError, SourceConfig
from agent_reputation.scoring.source import (
    MAX_SCORE,
    MIN_SCORE,
    SourceContractError,
    SourceName,
    SourceScore,
)

RecordT = TypeVar("RecordT")

FactProvider = Callable[[str], Awaitable[Sequence[RecordT]]]
"""Async callable returning the raw records for a subject id."""


class SourceCollector(ABC, Generic[RecordT]):
    """Turns one category of raw facts into a SourceScore.

    Parameters
    ----------
    config:
        Configuration for this collector's source.
    provider:
        Async callable that returns the subject's raw records.

    Raises
    ------
    PolicyError
        If *config* configures a different source.
    """

    source: ClassVar[SourceName]

    def __init__(self, config: SourceConfig, provider: FactProvider[RecordT]) -> None:
        if config.name != self.source:
            raise PolicyError(
                f"{type(self).__name__} collects {self.source.value!r}, "
                f"got configuration for {config.name.value!r}"
            )
        self._config = config
        self._provider = provider

    @property
    def config(self) -> SourceConfig:
        return self._config

    async def collect(self, subject_id: str, now_ms: int) -> SourceScore:
        """Fetch the subject's records and score them."""
        records = await self._provider(subject_id)
        return self.score(subject_id, list(records), now_ms)

    @abstractmethod
    def score(self, subject_id: str, records: list[RecordT], now_ms: int) -> SourceScore:
        """Score already-fetched *records*. Pure; no I/O."""

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def empty(self, now_ms: int) -> SourceScore:
        """Return the empty-signal score for this source."""
        return SourceScore.empty(self.source, self._config.weight, now_ms)

    def count_confidence(self, data_points: int) -> float:
        """Confidence from observation count, reaching 1.0 at the configured threshold."""
        return min(1.0, data_points / self._config.min_data_points_for_full_confidence)

    def _build(
        self,
        strength: float,
        confidence: float,
        data_points: int,
        last_updated: int,
        now_ms: int,
    ) -> SourceScore:
        """Clamp *strength*, decay it once, and wrap it in a SourceScore.

        Raises
        ------
        SourceContractError
            If *strength* or *confidence* is NaN or infinite.
        """
        if not math.isfinite(strength):
            raise SourceContractError(self.source.value, "strength", strength, "a finite number")
        if not math.isfinite(confidence):
            raise SourceContractError(
                self.source.value, "confidence", confidence, "a finite number in [0, 1]"
            )
        factor = decay_factor(last_updated, now_ms, self._config.half_life_days)
        clamped = max(MIN_SCORE, min(MAX_SCORE, strength))
        return SourceScore(
            source=self.source,
            raw_score=clamped * factor,
            weight=self._config.weight,
            confidence=max(0.0, min(1.0, confidence)),
            data_points=data_points,
            decay_factor=factor,
            last_updated=last_updated,
        )
