"""Multi-source reputation scoring.

Per-source scores (already time-decayed by their collectors) are combined
into a single 0 – 10000 score with a confidence interval, then mapped to
one of the tiers in a single shared tier table.
"""
from __future__ import annotations

from agent_reputation.scoring.aggregator import (
    AdjustmentContractError,
    AggregationResult,
    Aggregator,
    ScoreAdjustment,
)
from agent_reputation.scoring.badges import calculate_badges
from agent_reputation.scoring.decay import MS_PER_DAY, decay_factor
from agent_reputation.scoring.history import (
    HistoryStore,
    InMemoryHistoryStore,
    JsonlHistoryStore,
    ScoreHistory,
    ScoreSnapshot,
)
from agent_reputation.scoring.policy import PolicyError, ReputationPolicy, SourceConfig, TierBandConfig
from agent_reputation.scoring.source import (
    MAX_SCORE,
    MIN_SCORE,
    SourceContractError,
    SourceName,
    SourceScore,
)
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

__all__ = [
    "AdjustmentContractError",
    "AggregationResult",
    "Aggregator",
    "DEFAULT_TIER_TABLE",
    "HistoryStore",
    "InMemoryHistoryStore",
    "JsonlHistoryStore",
    "MAX_SCORE",
    "MIN_SCORE",
    "MS_PER_DAY",
    "PolicyError",
    "ReputationPolicy",
    "ReputationTier",
    "ScoreAdjustment",
    "ScoreHistory",
    "ScoreSnapshot",
    "SourceConfig",
    "SourceContractError",
    "SourceName",
    "SourceScore",
    "TierBand",
    "TierBandConfig",
    "TierContractError",
    "TierProgress",
    "TierTable",
    "calculate_badges",
    "classify",
    "decay_factor",
    "tier_progress",
]
