#!/usr/bin/env python3
"""Example: History and Trends

Demonstrates aggregating precomputed source scores, recording the results
in a JSONL-backed ScoreHistory and reading back the trend.

Usage:
    python examples/02_history_trend.py

Requirements:
    pip install agent-reputation
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import agent_reputation
from agent_reputation import (
    Aggregator,
    JsonlHistoryStore,
    ScoreAdjustment,
    ScoreHistory,
    SourceName,
    SourceScore,
)

HOUR_MS = 3_600_000
START_MS = 1_750_000_000_000


def _source(name: SourceName, raw: float, weight: float, data_points: int) -> SourceScore:
    return SourceScore(
        source=name,
        raw_score=raw,
        weight=weight,
        confidence=min(1.0, data_points / 10),
        data_points=data_points,
        decay_factor=1.0,
        last_updated=START_MS,
    )


def main() -> None:
    print(f"agent-reputation version: {agent_reputation.__version__}")
    aggregator = Aggregator()

    with tempfile.TemporaryDirectory() as tmp:
        history = ScoreHistory(JsonlHistoryStore(Path(tmp) / "history.jsonl"))

        # Step 1: Six hourly evaluations with steadily improving reviews
        for hour in range(6):
            now = START_MS + hour * HOUR_MS
            result = aggregator.aggregate(
                [
                    _source(SourceName.PAYMENT_ACTIVITY, 6500, 0.35, 30),
                    _source(SourceName.USER_REVIEWS, 5000 + hour * 600, 0.20, 4 + hour),
                ],
                now,
            )
            history.record_result("analytics-agent-v2", result)

        # Step 2: A penalty signal lowers the score without a source going negative
        penalised = aggregator.aggregate(
            [_source(SourceName.PAYMENT_ACTIVITY, 6500, 0.35, 30)],
            START_MS,
            [ScoreAdjustment("dispute_penalty", -800, "lost a payment dispute")],
        )
        print(f"\nWith dispute penalty: {penalised.score} ({penalised.tier})")

        # Step 3: Read back
        print("\nRecent snapshots:")
        for snapshot in history.recent("analytics-agent-v2", limit=3):
            print(f"  {snapshot.timestamp_ms}: {snapshot.score} {snapshot.tier}")
        print(f"Trend: {history.trend('analytics-agent-v2')}")


if __name__ == "__main__":
    main()
