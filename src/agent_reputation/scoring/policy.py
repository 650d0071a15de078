"""ReputationPolicy — immutable scoring configuration.

Source weights, decay half-lives, confidence thresholds, the tier table
and the outlier/confidence-interval parameters all live here. A policy is
loaded once (defaults or a JSON file) and handed to the components that
need it; nothing reads scoring configuration from global state.
"""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from agent_reputation.scoring.source import SourceName
from agent_reputation.scoring.tiers import DEFAULT_TIER_TABLE, TierBand, TierTable


class PolicyError(ValueError):
    """Raised when a policy is internally inconsistent."""


class SourceConfig(BaseModel):
    """Per-source configuration.

    Parameters
    ----------
    name:
        The source this entry configures.
    weight:
        Designed importance in [0, 1]. Weights across a policy sum to 1.0.
    half_life_days:
        Decay half-life. Values <= 0 disable decay for the source.
    min_data_points_for_full_confidence:
        Observation count at which the source's confidence reaches 1.0.
    """

    name: SourceName
    weight: float = Field(ge=0.0, le=1.0)
    half_life_days: float
    min_data_points_for_full_confidence: int = Field(ge=1)

    model_config = {"frozen": True}


class TierBandConfig(BaseModel):
    """Serializable form of a :class:`TierBand`."""

    name: str
    min_score: int
    max_score: int

    model_config = {"frozen": True}

    def to_band(self) -> TierBand:
        return TierBand(name=self.name, min_score=self.min_score, max_score=self.max_score)


def _default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(
            name=SourceName.PAYMENT_ACTIVITY,
            weight=0.35,
            half_life_days=30,
            min_data_points_for_full_confidence=25,
        ),
        SourceConfig(
            name=SourceName.STAKING_COMMITMENT,
            weight=0.20,
            half_life_days=90,
            min_data_points_for_full_confidence=3,
        ),
        SourceConfig(
            name=SourceName.CREDENTIAL_VERIFICATIONS,
            weight=0.15,
            half_life_days=365,
            min_data_points_for_full_confidence=5,
        ),
        SourceConfig(
            name=SourceName.USER_REVIEWS,
            weight=0.20,
            half_life_days=60,
            min_data_points_for_full_confidence=10,
        ),
        SourceConfig(
            name=SourceName.API_QUALITY_METRICS,
            weight=0.10,
            half_life_days=14,
            min_data_points_for_full_confidence=25,
        ),
    ]


def _default_tiers() -> list[TierBandConfig]:
    return [
        TierBandConfig(name=band.name, min_score=band.min_score, max_score=band.max_score)
        for band in DEFAULT_TIER_TABLE.bands
    ]


class ReputationPolicy(BaseModel):
    """Configurable reputation scoring policy.

    Parameters
    ----------
    sources:
        One :class:`SourceConfig` per source. Names must be unique.
    tiers:
        Tier table rows; see :class:`TierTable` for the partition rules.
    outlier_sigma:
        A source deviating from the weighted mean by more than this many
        weighted standard deviations is an outlier candidate.
    outlier_min_data_points:
        Only sources with fewer data points than this may be trimmed as
        outliers. Well-evidenced sources are always kept.
    min_sources_for_trim:
        Outlier trimming is skipped for smaller source sets.
    confidence_z:
        Normal quantile for the confidence interval (1.96 ~ 95%).
    prior_std:
        Per-source standard deviation (score points) assumed for a single
        observation.
    evidence_scale:
        Total data points at which the interval has shrunk to ~71% of its
        no-evidence width.
    """

    sources: list[SourceConfig] = Field(default_factory=_default_sources)
    tiers: list[TierBandConfig] = Field(default_factory=_default_tiers)
    outlier_sigma: float = Field(default=2.0, gt=0.0)
    outlier_min_data_points: int = Field(default=5, ge=0)
    min_sources_for_trim: int = Field(default=3, ge=2)
    confidence_z: float = Field(default=1.96, gt=0.0)
    prior_std: float = Field(default=2500.0, ge=0.0)
    evidence_scale: float = Field(default=10.0, gt=0.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_consistency(self) -> ReputationPolicy:
        names = [cfg.name for cfg in self.sources]
        if len(set(names)) != len(names):
            raise PolicyError(f"Source names must be unique, got {[n.value for n in names]}")
        # Building the table runs the partition checks.
        self.tier_table()
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def tier_table(self) -> TierTable:
        """Return the :class:`TierTable` described by ``tiers``."""
        return TierTable(band.to_band() for band in self.tiers)

    def source_config(self, name: SourceName) -> SourceConfig:
        """Return the configuration for *name*.

        Raises
        ------
        PolicyError
            If the policy does not configure that source.
        """
        for cfg in self.sources:
            if cfg.name == name:
                return cfg
        raise PolicyError(f"Policy has no configuration for source {name.value!r}")

    def validate_weights(self) -> None:
        """Raise PolicyError if source weights do not sum to 1.0."""
        total = sum(cfg.weight for cfg in self.sources)
        if abs(total - 1.0) > 1e-6:
            raise PolicyError(f"Source weights must sum to 1.0, got {total:.6f}")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: Path | str) -> ReputationPolicy:
        """Load a policy from a JSON file.

        Keys not present in the file fall back to the defaults.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")
