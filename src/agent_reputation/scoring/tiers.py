"""Reputation tiers and the single score-to-tier classification rule.

Every band is the half-open interval ``[min_score, max_score)`` except the
top band, which also includes its upper bound: ``[min_score, 10000]``.
Any display that needs a tier (badges, progress bars, "points to next
tier") must call :func:`classify` on the score rather than carrying a
separately computed label around.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from agent_reputation.scoring.source import MAX_SCORE, MIN_SCORE


class ReputationTier(str, Enum):
    """Default tier names, lowest first."""

    NEWCOMER = "NEWCOMER"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


class TierContractError(ValueError):
    """Raised when a score handed to the classifier is not an int in [0, 10000]."""


@dataclass(frozen=True)
class TierBand:
    """One row of the tier table.

    Parameters
    ----------
    name:
        Tier label.
    min_score:
        Inclusive lower bound.
    max_score:
        Exclusive upper bound, except for the top band where it is inclusive
        and must equal 10000.
    """

    name: str
    min_score: int
    max_score: int

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Tier name must be non-empty")
        if self.min_score >= self.max_score:
            raise ValueError(
                f"Tier {self.name!r}: min_score ({self.min_score}) must be < "
                f"max_score ({self.max_score})"
            )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {"name": self.name, "min_score": self.min_score, "max_score": self.max_score}


@dataclass(frozen=True)
class TierProgress:
    """Where a score sits inside its tier, for progress displays.

    Parameters
    ----------
    score:
        The classified score.
    tier:
        Tier the score belongs to.
    next_tier:
        The tier above, or None at the top of the table.
    points_to_next:
        Points needed to reach ``next_tier`` (0 at the top).
    progress:
        Fraction of the current band covered, in [0, 1].
    """

    score: int
    tier: str
    next_tier: Optional[str]
    points_to_next: int
    progress: float

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "score": self.score,
            "tier": self.tier,
            "next_tier": self.next_tier,
            "points_to_next": self.points_to_next,
            "progress": round(self.progress, 4),
        }


class TierTable:
    """A total, non-overlapping partition of [0, 10000] into named bands.

    Parameters
    ----------
    bands:
        Bands in any order. After sorting by ``min_score`` they must start at
        0, be contiguous (each band's max is the next band's min), and the
        last band must end at 10000.

    Raises
    ------
    ValueError
        If the bands do not partition the score range or names repeat.
    """

    def __init__(self, bands: Iterable[TierBand]) -> None:
        ordered = sorted(bands, key=lambda band: band.min_score)
        if not ordered:
            raise ValueError("Tier table must contain at least one band")
        names = [band.name for band in ordered]
        if len(set(names)) != len(names):
            raise ValueError(f"Tier names must be unique, got {names}")
        if ordered[0].min_score != MIN_SCORE:
            raise ValueError(
                f"Lowest tier must start at {MIN_SCORE}, got {ordered[0].min_score}"
            )
        for lower, upper in zip(ordered, ordered[1:]):
            if lower.max_score != upper.min_score:
                raise ValueError(
                    f"Tiers {lower.name!r} and {upper.name!r} are not contiguous: "
                    f"{lower.max_score} != {upper.min_score}"
                )
        if ordered[-1].max_score != MAX_SCORE:
            raise ValueError(
                f"Highest tier must end at {MAX_SCORE}, got {ordered[-1].max_score}"
            )
        self._bands: tuple[TierBand, ...] = tuple(ordered)
        self._mins: list[int] = [band.min_score for band in ordered]

    @property
    def bands(self) -> tuple[TierBand, ...]:
        """Bands ordered from lowest to highest."""
        return self._bands

    def names(self) -> list[str]:
        """Return tier names from lowest to highest."""
        return [band.name for band in self._bands]

    def band_for(self, score: int) -> TierBand:
        """Return the band containing *score*.

        Raises
        ------
        TierContractError
            If *score* is not an ``int`` in [0, 10000].
        """
        _check_score(score)
        # bisect_right finds the last band whose min_score <= score; the
        # top band's inclusive upper bound falls out since nothing follows it.
        return self._bands[bisect.bisect_right(self._mins, score) - 1]

    def classify(self, score: int) -> str:
        """Return the tier name for *score*."""
        return self.band_for(score).name

    def progress(self, score: int) -> TierProgress:
        """Return progress of *score* through its band towards the next tier."""
        band = self.band_for(score)
        index = self._bands.index(band)
        span = band.max_score - band.min_score
        if index == len(self._bands) - 1:
            return TierProgress(
                score=score,
                tier=band.name,
                next_tier=None,
                points_to_next=0,
                progress=(score - band.min_score) / span,
            )
        return TierProgress(
            score=score,
            tier=band.name,
            next_tier=self._bands[index + 1].name,
            points_to_next=band.max_score - score,
            progress=(score - band.min_score) / span,
        )

    def to_list(self) -> list[dict[str, object]]:
        """Serialize to a list of plain dictionaries."""
        return [band.to_dict() for band in self._bands]


def _check_score(score: object) -> None:
    if isinstance(score, bool) or not isinstance(score, int):
        raise TierContractError(
            f"Tier classification requires an int score, got {type(score).__name__} {score!r}"
        )
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise TierContractError(
            f"Score {score} is outside [{MIN_SCORE}, {MAX_SCORE}]; clamp before classifying"
        )


DEFAULT_TIER_TABLE: TierTable = TierTable(
    [
        TierBand(ReputationTier.NEWCOMER.value, 0, 2500),
        TierBand(ReputationTier.BRONZE.value, 2500, 5000),
        TierBand(ReputationTier.SILVER.value, 5000, 7500),
        TierBand(ReputationTier.GOLD.value, 7500, 9000),
        TierBand(ReputationTier.PLATINUM.value, 9000, 10000),
    ]
)


def classify(score: int, table: TierTable | None = None) -> str:
    """Map an integer score in [0, 10000] to its tier name.

    Parameters
    ----------
    score:
        Final reputation score. Must already be clamped and rounded.
    table:
        Tier table to use. Defaults to :data:`DEFAULT_TIER_TABLE`.

    Raises
    ------
    TierContractError
        If *score* is not an ``int`` in [0, 10000].
    """
    return (table or DEFAULT_TIER_TABLE).classify(score)


def tier_progress(score: int, table: TierTable | None = None) -> TierProgress:
    """Return :class:`TierProgress` for *score* under *table*."""
    return (table or DEFAULT_TIER_TABLE).progress(score)
