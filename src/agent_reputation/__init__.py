"""agent-reputation — Multi-source reputation scoring for AI agents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agent_reputation
>>> agent_reputation.__version__
'0.1.0'

Quick start
-----------
::

    from agent_reputation import (
        # Scoring
        Aggregator, AggregationResult, SourceScore, SourceName, ReputationPolicy,
        classify, tier_progress, decay_factor,
        # Collection
        ReputationEngine, default_collectors,
        # History
        ScoreHistory, JsonlHistoryStore, SnapshotScheduler,
    )
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Scoring core
# ------------------------------------------------------------------
from agent_reputation.scoring.aggregator import (
    AdjustmentContractError,
    AggregationResult,
    Aggregator,
    ScoreAdjustment,
)
from agent_reputation.scoring.badges import calculate_badges
from agent_reputation.scoring.decay import decay_factor
from agent_reputation.scoring.policy import PolicyError, ReputationPolicy, SourceConfig
from agent_reputation.scoring.source import SourceContractError, SourceName, SourceScore
from agent_reputation.scoring.tiers import (
    DEFAULT_TIER_TABLE,
    ReputationTier,
    TierBand,
    TierContractError,
    TierProgress,
    TierTable,
    classify,
    tier_progress,
)

# ------------------------------------------------------------------
# History
# ------------------------------------------------------------------
from agent_reputation.scoring.history import (
    HistoryStore,
    InMemoryHistoryStore,
    JsonlHistoryStore,
    ScoreHistory,
    ScoreSnapshot,
)

# ------------------------------------------------------------------
# Collection
# ------------------------------------------------------------------
from agent_reputation.collectors import IssuerKeyring, SourceCollector, default_collectors
from agent_reputation.engine import (
    CollectorFailure,
    Evaluation,
    EvaluationStatus,
    ReputationEngine,
)
from agent_reputation.scheduler import SnapshotRun, SnapshotScheduler

__all__ = [
    # version
    "__version__",
    # scoring
    "AdjustmentContractError",
    "AggregationResult",
    "Aggregator",
    "DEFAULT_TIER_TABLE",
    "PolicyError",
    "ReputationPolicy",
    "ReputationTier",
    "ScoreAdjustment",
    "SourceConfig",
    "SourceContractError",
    "SourceName",
    "SourceScore",
    "TierBand",
    "TierContractError",
    "TierProgress",
    "TierTable",
    "calculate_badges",
    "classify",
    "decay_factor",
    "tier_progress",
    # history
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonlHistoryStore",
    "ScoreHistory",
    "ScoreSnapshot",
    # collection
    "CollectorFailure",
    "Evaluation",
    "EvaluationStatus",
    "IssuerKeyring",
    "ReputationEngine",
    "SnapshotRun",
    "SnapshotScheduler",
    "SourceCollector",
    "default_collectors",
]
