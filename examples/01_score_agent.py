#!/usr/bin/env python3
"""Example: Score an Agent

Demonstrates evaluating one agent from raw facts using ReputationEngine
and the default collectors, then reading its tier progress and badges.

Usage:
    python examples/01_score_agent.py

Requirements:
    pip install agent-reputation
"""
from __future__ import annotations

import time

import agent_reputation
from agent_reputation import ReputationEngine, ReputationPolicy, default_collectors, tier_progress
from agent_reputation.collectors import EndpointTestRecord, PaymentRecord, ReviewRecord, StakeRecord

DAY_MS = 86_400_000


def main() -> None:
    print(f"agent-reputation version: {agent_reputation.__version__}")
    now = int(time.time() * 1000)

    # Step 1: Raw facts, normally fetched from the payment indexer, staking
    # program, review database and endpoint observer
    payments = [
        PaymentRecord(succeeded=i % 12 != 0, timestamp_ms=now - i * DAY_MS // 4, response_time_ms=320)
        for i in range(40)
    ]
    stakes = [StakeRecord(amount=25_000, staked_at_ms=now - 120 * DAY_MS)]
    reviews = [ReviewRecord(rating=r, created_at_ms=now - 3 * DAY_MS) for r in (5, 5, 4, 5, 3, 4)]
    tests = [
        EndpointTestRecord(
            success=True,
            tested_at_ms=now - DAY_MS,
            response_time_ms=640,
            quality_score=82,
            capability_verified=True,
        )
    ]

    async def fetch_payments(subject_id: str) -> list[PaymentRecord]:
        return payments

    async def fetch_stakes(subject_id: str) -> list[StakeRecord]:
        return stakes

    async def fetch_credentials(subject_id: str) -> list:
        return []

    async def fetch_reviews(subject_id: str) -> list[ReviewRecord]:
        return reviews

    async def fetch_tests(subject_id: str) -> list[EndpointTestRecord]:
        return tests

    # Step 2: Build the engine from the default policy
    policy = ReputationPolicy()
    engine = ReputationEngine(
        default_collectors(
            policy,
            payments=fetch_payments,
            stakes=fetch_stakes,
            credentials=fetch_credentials,
            reviews=fetch_reviews,
            endpoint_tests=fetch_tests,
        ),
        timeout_s=2.0,
    )

    # Step 3: Evaluate
    evaluation = engine.evaluate_sync("analytics-agent-v2", now=now)
    result = evaluation.result
    print(f"\nScore: {result.score} [{result.confidence_low}, {result.confidence_high}]")
    print(f"Tier: {result.tier} ({result.sources_used} sources used, status {evaluation.status.value})")
    for source in evaluation.sources:
        print(f"  {source.source.value}: {source.raw_score:.0f} (confidence {source.confidence:.2f})")

    # Step 4: Progress and badges
    progress = tier_progress(result.score, policy.tier_table())
    if progress.next_tier is not None:
        print(f"\n{progress.points_to_next} points to {progress.next_tier}")
    print(f"Badges: {', '.join(evaluation.badges) or '(none)'}")


if __name__ == "__main__":
    main()
