"""ReputationEngine — concurrent collection followed by aggregation.

All collectors for a subject run concurrently. A collector that raises or
misses the deadline is replaced by its empty-signal score and reported as
a :class:`CollectorFailure`; the remaining sources are still aggregated.
Contract violations (a collector producing an invalid SourceScore) are not
absorbed and abort the evaluation.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from agent_reputation.collectors.base import SourceCollector
from agent_reputation.scoring.aggregator import AggregationResult, Aggregator, ScoreAdjustment
from agent_reputation.scoring.badges import calculate_badges
from agent_reputation.scoring.source import SourceContractError, SourceName, SourceScore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class EvaluationStatus(str, Enum):
    """How an evaluation went, independent of the score it produced."""

    OK = "ok"
    NO_DATA = "no_data"
    PARTIAL = "partial"
    TOTAL_FAILURE = "total_failure"


@dataclass(frozen=True)
class CollectorFailure:
    """A collector that failed or timed out during an evaluation."""

    source: SourceName
    error: str
    timed_out: bool = False

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {"source": self.source.value, "error": self.error, "timed_out": self.timed_out}


@dataclass(frozen=True)
class Evaluation:
    """Outcome of evaluating one subject.

    Parameters
    ----------
    subject_id:
        The evaluated subject.
    result:
        Aggregated score, interval and tier.
    sources:
        Every source's score, including empty substitutes for failures.
    failures:
        Collectors that failed or timed out.
    status:
        Overall evaluation status.
    badges:
        Badges earned by the subject.
    """

    subject_id: str
    result: AggregationResult
    sources: tuple[SourceScore, ...]
    failures: tuple[CollectorFailure, ...] = field(default_factory=tuple)
    status: EvaluationStatus = EvaluationStatus.OK
    badges: tuple[str, ...] = field(default_factory=tuple)

    @property
    def all_failed(self) -> bool:
        """True when no collector could be consulted at all."""
        return self.status is EvaluationStatus.TOTAL_FAILURE

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "subject_id": self.subject_id,
            **self.result.to_dict(),
            "status": self.status.value,
            "badges": list(self.badges),
            "failures": [f.to_dict() for f in self.failures],
            "sources": [s.to_dict() for s in self.sources],
        }


class ReputationEngine:
    """Fans out to source collectors and aggregates their scores.

    Parameters
    ----------
    collectors:
        One collector per source. Sources must be unique.
    aggregator:
        Aggregator to combine source scores. Defaults to the default policy.
    timeout_s:
        Default per-evaluation deadline in seconds; None waits indefinitely.

    Raises
    ------
    ValueError
        If two collectors produce the same source.
    """

    def __init__(
        self,
        collectors: Sequence[SourceCollector],
        aggregator: Optional[Aggregator] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        sources = [c.source for c in collectors]
        if len(set(sources)) != len(sources):
            raise ValueError(f"Duplicate collectors for sources {[s.value for s in sources]}")
        self._collectors = list(collectors)
        self._aggregator = aggregator if aggregator is not None else Aggregator()
        self._timeout_s = timeout_s

    @property
    def aggregator(self) -> Aggregator:
        return self._aggregator

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def evaluate(
        self,
        subject_id: str,
        now: Optional[int] = None,
        timeout_s: Optional[float] = None,
        adjustments: Sequence[ScoreAdjustment] = (),
    ) -> Evaluation:
        """Collect every source concurrently and aggregate the result.

        Parameters
        ----------
        subject_id:
            The subject to evaluate.
        now:
            Evaluation time in epoch milliseconds. Defaults to the wall clock.
        timeout_s:
            Deadline for the collectors, overriding the engine default.
            Collectors still pending at the deadline count as failed.
        adjustments:
            Signed score adjustments passed to the aggregator.

        Raises
        ------
        SourceContractError
            If a collector produced an invalid score.
        """
        evaluated_at = now if now is not None else now_ms()
        deadline = timeout_s if timeout_s is not None else self._timeout_s

        outcomes = await asyncio.gather(
            *(self._run(c, subject_id, evaluated_at, deadline) for c in self._collectors),
            return_exceptions=True,
        )

        scores: list[SourceScore] = []
        failures: list[CollectorFailure] = []
        for collector, outcome in zip(self._collectors, outcomes):
            if isinstance(outcome, BaseException):
                # Only contract violations and cancellation escape _run.
                raise outcome
            if isinstance(outcome, CollectorFailure):
                failures.append(outcome)
                scores.append(collector.empty(evaluated_at))
            else:
                scores.append(outcome)

        result = self._aggregator.aggregate(scores, evaluated_at, adjustments)
        status = self._status(result, failures)
        if status is EvaluationStatus.TOTAL_FAILURE:
            logger.error(
                "All %d collectors failed for subject %s", len(self._collectors), subject_id
            )

        return Evaluation(
            subject_id=subject_id,
            result=result,
            sources=tuple(scores),
            failures=tuple(failures),
            status=status,
            badges=tuple(calculate_badges(result, scores)),
        )

    def evaluate_sync(
        self,
        subject_id: str,
        now: Optional[int] = None,
        timeout_s: Optional[float] = None,
        adjustments: Sequence[ScoreAdjustment] = (),
    ) -> Evaluation:
        """Blocking wrapper around :meth:`evaluate` for non-async callers."""
        return asyncio.run(self.evaluate(subject_id, now, timeout_s, adjustments))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run(
        self,
        collector: SourceCollector,
        subject_id: str,
        evaluated_at: int,
        timeout_s: Optional[float],
    ) -> SourceScore | CollectorFailure:
        try:
            if timeout_s is None:
                score = await collector.collect(subject_id, evaluated_at)
            else:
                score = await asyncio.wait_for(
                    collector.collect(subject_id, evaluated_at), timeout=timeout_s
                )
        except SourceContractError:
            raise
        except asyncio.TimeoutError:
            logger.warning(
                "Collector %s timed out after %.3fs for subject %s",
                collector.source.value,
                timeout_s,
                subject_id,
            )
            return CollectorFailure(
                source=collector.source,
                error=f"timed out after {timeout_s}s",
                timed_out=True,
            )
        except Exception as exc:
            logger.warning(
                "Collector %s failed for subject %s: %s",
                collector.source.value,
                subject_id,
                exc,
            )
            return CollectorFailure(source=collector.source, error=f"{type(exc).__name__}: {exc}")

        if not isinstance(score, SourceScore) or score.source != collector.source:
            raise SourceContractError(
                collector.source.value,
                "result",
                score,
                f"a SourceScore for {collector.source.value!r}",
            )
        return score

    def _status(
        self, result: AggregationResult, failures: list[CollectorFailure]
    ) -> EvaluationStatus:
        if self._collectors and len(failures) == len(self._collectors):
            return EvaluationStatus.TOTAL_FAILURE
        if failures:
            return EvaluationStatus.PARTIAL
        if result.sources_used == 0:
            return EvaluationStatus.NO_DATA
        return EvaluationStatus.OK
