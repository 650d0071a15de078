"""ScoreHistory — append-only snapshots of reputation over time.

Snapshots hold only ``(subject_id, timestamp_ms, score, tier)`` plus a row
id. Writes are idempotent per ``(subject_id, timestamp_ms // bucket_ms)``
so a scheduler that fires more than once for the same period does not
duplicate rows. Storage is pluggable through :class:`HistoryStore`.
"""
from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from agent_reputation.scoring.aggregator import AggregationResult
from agent_reputation.scoring.tiers import DEFAULT_TIER_TABLE, TierTable, classify

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_MS: int = 3_600_000


@dataclass(frozen=True)
class ScoreSnapshot:
    """One stored reputation snapshot.

    Parameters
    ----------
    subject_id:
        The scored subject.
    timestamp_ms:
        Epoch milliseconds of the evaluation.
    score:
        Final score at that time.
    tier:
        Tier name for ``score``.
    row_id:
        Store-assigned, monotonically increasing identifier.
    """

    subject_id: str
    timestamp_ms: int
    score: int
    tier: str
    row_id: int = 0

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "row_id": self.row_id,
            "subject_id": self.subject_id,
            "timestamp_ms": self.timestamp_ms,
            "score": self.score,
            "tier": self.tier,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> ScoreSnapshot:
        return cls(
            subject_id=str(data["subject_id"]),
            timestamp_ms=int(data["timestamp_ms"]),  # type: ignore[arg-type]
            score=int(data["score"]),  # type: ignore[arg-type]
            tier=str(data["tier"]),
            row_id=int(data.get("row_id", 0)),  # type: ignore[arg-type]
        )


class HistoryStore(ABC):
    """Abstract storage backend for score snapshots."""

    @abstractmethod
    def append(self, subject_id: str, timestamp_ms: int, score: int, tier: str) -> ScoreSnapshot:
        """Persist a new snapshot and return it with its row id assigned."""

    @abstractmethod
    def snapshots(self, subject_id: str) -> list[ScoreSnapshot]:
        """Return all snapshots for *subject_id* ordered by timestamp (oldest first)."""

    @abstractmethod
    def subject_ids(self) -> list[str]:
        """Return sorted subject ids with at least one snapshot."""


class InMemoryHistoryStore(HistoryStore):
    """Thread-safe in-memory snapshot store."""

    def __init__(self) -> None:
        self._records: dict[str, list[ScoreSnapshot]] = defaultdict(list)
        self._lock = threading.Lock()
        self._next_row_id = 1

    def append(self, subject_id: str, timestamp_ms: int, score: int, tier: str) -> ScoreSnapshot:
        with self._lock:
            snapshot = ScoreSnapshot(
                subject_id=subject_id,
                timestamp_ms=timestamp_ms,
                score=score,
                tier=tier,
                row_id=self._next_row_id,
            )
            # Persist first: a failed write must leave no in-memory row behind.
            self._persist(snapshot)
            self._insert(snapshot)
            return snapshot

    def snapshots(self, subject_id: str) -> list[ScoreSnapshot]:
        with self._lock:
            return list(self._records.get(subject_id, []))

    def subject_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._records.keys())

    def _insert(self, snapshot: ScoreSnapshot) -> None:
        rows = self._records[snapshot.subject_id]
        rows.append(snapshot)
        # Out-of-order writes (backfills) are rare; keep rows sorted.
        if len(rows) > 1 and rows[-2].timestamp_ms > snapshot.timestamp_ms:
            rows.sort(key=lambda s: (s.timestamp_ms, s.row_id))
        self._next_row_id = max(self._next_row_id, snapshot.row_id + 1)

    def _persist(self, snapshot: ScoreSnapshot) -> None:
        """Hook for write-through subclasses. Called with the lock held."""


class JsonlHistoryStore(InMemoryHistoryStore):
    """Append-only JSONL file store.

    Existing lines are loaded at construction; each new snapshot is
    appended as one JSON line.

    Parameters
    ----------
    path:
        Path to the JSONL file. Parent directories are created.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        with self._path.open("r", encoding="utf-8") as fh:
            for line_number, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    snapshot = ScoreSnapshot.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                    raise ValueError(
                        f"Corrupt history line {line_number} in {self._path}: {exc}"
                    ) from exc
                self._insert(snapshot)

    def _persist(self, snapshot: ScoreSnapshot) -> None:
        line = json.dumps(snapshot.to_dict(), separators=(",", ":"))
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")


class ScoreHistory:
    """Façade for recording and querying score snapshots.

    Parameters
    ----------
    store:
        Storage backend. Defaults to :class:`InMemoryHistoryStore`.
    bucket_ms:
        Width of the idempotency bucket in milliseconds.
    tier_table:
        Table used to check the tier recorded with each score.
    """

    def __init__(
        self,
        store: HistoryStore | None = None,
        bucket_ms: int = DEFAULT_BUCKET_MS,
        tier_table: TierTable | None = None,
    ) -> None:
        if bucket_ms <= 0:
            raise ValueError(f"bucket_ms must be positive, got {bucket_ms}")
        self._store: HistoryStore = store if store is not None else InMemoryHistoryStore()
        self._bucket_ms = bucket_ms
        self._tier_table = tier_table
        self._lock = threading.Lock()

    @property
    def store(self) -> HistoryStore:
        return self._store

    @property
    def tier_table(self) -> TierTable:
        """Table used to validate recorded tiers."""
        return self._tier_table if self._tier_table is not None else DEFAULT_TIER_TABLE

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record(
        self,
        subject_id: str,
        timestamp_ms: int,
        score: int,
        tier: Optional[str] = None,
    ) -> ScoreSnapshot:
        """Record a snapshot unless one already exists in the same bucket.

        Parameters
        ----------
        subject_id:
            The scored subject.
        timestamp_ms:
            Epoch milliseconds of the evaluation.
        score:
            Final score, an int in [0, 10000].
        tier:
            Tier label. Derived from *score* when omitted.

        Returns
        -------
        ScoreSnapshot
            The new snapshot, or the existing one for this bucket.

        Raises
        ------
        ValueError
            If *tier* disagrees with the tier of *score*.
        """
        expected_tier = classify(score, self._tier_table)
        if tier is not None and tier != expected_tier:
            raise ValueError(
                f"Tier {tier!r} does not match score {score} (expected {expected_tier!r})"
            )
        bucket = timestamp_ms // self._bucket_ms
        with self._lock:
            for existing in self._store.snapshots(subject_id):
                if existing.timestamp_ms // self._bucket_ms == bucket:
                    logger.debug(
                        "Snapshot for %s already recorded in bucket %d (row %d)",
                        subject_id,
                        bucket,
                        existing.row_id,
                    )
                    return existing
            return self._store.append(subject_id, timestamp_ms, score, expected_tier)

    def record_result(self, subject_id: str, result: AggregationResult) -> ScoreSnapshot:
        """Record an :class:`AggregationResult` at its evaluation time."""
        return self.record(subject_id, result.evaluated_at, result.score, result.tier)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def recent(
        self,
        subject_id: str,
        limit: int = 10,
        since_ms: Optional[int] = None,
        until_ms: Optional[int] = None,
    ) -> list[ScoreSnapshot]:
        """Return up to *limit* snapshots, newest first.

        ``since_ms`` and ``until_ms`` are inclusive bounds when given.
        """
        if limit <= 0:
            return []
        rows = [
            s
            for s in self._store.snapshots(subject_id)
            if (since_ms is None or s.timestamp_ms >= since_ms)
            and (until_ms is None or s.timestamp_ms <= until_ms)
        ]
        rows.reverse()
        return rows[:limit]

    def latest(self, subject_id: str) -> Optional[ScoreSnapshot]:
        """Return the most recent snapshot, or None."""
        rows = self._store.snapshots(subject_id)
        return rows[-1] if rows else None

    def nearest(self, subject_id: str, timestamp_ms: int) -> Optional[ScoreSnapshot]:
        """Return the snapshot closest in time to *timestamp_ms*.

        Ties resolve to the earlier snapshot. None when the subject has no
        history.
        """
        rows = self._store.snapshots(subject_id)
        if not rows:
            return None
        return min(rows, key=lambda s: (abs(s.timestamp_ms - timestamp_ms), s.timestamp_ms))

    def subject_ids(self) -> list[str]:
        """Return sorted subject ids with recorded history."""
        return self._store.subject_ids()

    # ------------------------------------------------------------------
    # Trend analysis
    # ------------------------------------------------------------------

    def trend(self, subject_id: str, window: int = 5, threshold: int = 300) -> str:
        """Compare the oldest and newest score in the recent window.

        Returns
        -------
        str
            ``"improving"``, ``"declining"`` or ``"stable"``. Fewer than two
            snapshots is always ``"stable"``.
        """
        rows = self._store.snapshots(subject_id)
        if len(rows) < 2:
            return "stable"
        recent = rows[-window:]
        delta = recent[-1].score - recent[0].score
        if delta >= threshold:
            return "improving"
        if delta <= -threshold:
            return "declining"
        return "stable"
