"""SnapshotScheduler — periodic reputation snapshots for trend display.

Each run evaluates a batch of subjects and records one snapshot per
subject into :class:`ScoreHistory`. History writes are idempotent per
time bucket, so re-running the same period (at-least-once scheduling) is
harmless. Subjects whose collectors all failed are not recorded: a zero
written for "could not check" would look like "no reputation".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from agent_reputation.engine import Evaluation, EvaluationStatus, ReputationEngine, now_ms
from agent_reputation.scoring.history import ScoreHistory, ScoreSnapshot

logger = logging.getLogger(__name__)


@dataclass
class SnapshotRun:
    """Summary of one scheduler run.

    Parameters
    ----------
    run_at:
        Epoch milliseconds used as the evaluation time.
    recorded:
        Snapshots written (or already present) keyed by subject id.
    skipped:
        Subjects not recorded because every collector failed.
    """

    run_at: int
    recorded: dict[str, ScoreSnapshot] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "run_at": self.run_at,
            "recorded": {k: v.to_dict() for k, v in self.recorded.items()},
            "skipped": list(self.skipped),
        }


class SnapshotScheduler:
    """Evaluates subjects and appends their scores to history.

    Parameters
    ----------
    engine:
        Engine used to evaluate each subject.
    history:
        Destination for snapshots.
    timeout_s:
        Per-subject collector deadline.

    Raises
    ------
    ValueError
        If *history* validates tiers against a different table than the
        engine's policy classifies with.
    """

    def __init__(
        self,
        engine: ReputationEngine,
        history: ScoreHistory,
        timeout_s: Optional[float] = None,
    ) -> None:
        engine_tiers = engine.aggregator.policy.tier_table().to_list()
        if history.tier_table.to_list() != engine_tiers:
            raise ValueError(
                "History tier table does not match the engine policy's tier table; "
                "pass tier_table=policy.tier_table() to ScoreHistory"
            )
        self._engine = engine
        self._history = history
        self._timeout_s = timeout_s

    async def run_once(self, subject_ids: Iterable[str], now: Optional[int] = None) -> SnapshotRun:
        """Evaluate and record every subject in *subject_ids*.

        Subjects are evaluated one at a time; each evaluation already fans
        out across its collectors.
        """
        run = SnapshotRun(run_at=now if now is not None else now_ms())
        for subject_id in subject_ids:
            evaluation = await self._engine.evaluate(
                subject_id, now=run.run_at, timeout_s=self._timeout_s
            )
            snapshot = self._record(evaluation)
            if snapshot is None:
                run.skipped.append(subject_id)
            else:
                run.recorded[subject_id] = snapshot
        logger.info(
            "Snapshot run at %d: %d recorded, %d skipped",
            run.run_at,
            len(run.recorded),
            len(run.skipped),
        )
        return run

    def _record(self, evaluation: Evaluation) -> Optional[ScoreSnapshot]:
        if evaluation.status is EvaluationStatus.TOTAL_FAILURE:
            logger.warning(
                "Skipping snapshot for %s: all collectors failed", evaluation.subject_id
            )
            return None
        return self._history.record_result(evaluation.subject_id, evaluation.result)
