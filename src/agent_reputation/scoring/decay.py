"""Exponential time decay for reputation signals.

A signal observed ``age`` days ago keeps ``exp(-ln(2) * age / half_life)``
of its strength, so it is worth exactly half after one half-life.
"""
from __future__ import annotations

import math

MS_PER_DAY: int = 86_400_000


def age_days(last_updated_ms: int, now_ms: int) -> float:
    """Return the non-negative age of an observation in days.

    Timestamps in the future (clock skew) count as age zero.
    """
    return max(0.0, (now_ms - last_updated_ms) / MS_PER_DAY)


def decay_factor(last_updated_ms: int, now_ms: int, half_life_days: float) -> float:
    """Map an observation timestamp to a decay multiplier in (0, 1].

    Parameters
    ----------
    last_updated_ms:
        Epoch milliseconds of the most recent observation.
    now_ms:
        Epoch milliseconds of the evaluation.
    half_life_days:
        Age in days at which the signal is worth half its strength.
        Values <= 0 mean the signal never decays.

    Returns
    -------
    float
        ``1.0`` for fresh (or future-dated) observations, approaching but
        never reaching ``0.0`` as the observation ages.
    """
    if half_life_days <= 0:
        return 1.0
    age = age_days(last_updated_ms, now_ms)
    factor = math.exp(-math.log(2) * age / half_life_days)
    # exp() underflows to 0.0 for absurd ages; keep the factor inside (0, 1].
    return max(factor, math.ulp(0.0))
