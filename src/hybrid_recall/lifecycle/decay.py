# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Temporal decay scoring.

Implements exponential decay based on chunk age, used to favour recent
memory notes in retrieval. Age is measured in caller-assigned day numbers
relative to the newest document in the index, never wall-clock time.
"""

import math

from hybrid_recall.config import DEFAULT_HALF_LIFE_DAYS
from hybrid_recall.errors import ConfigurationError


def decay_rate(half_life_days: float = DEFAULT_HALF_LIFE_DAYS) -> float:
    """Return the decay constant λ = ln(2) / half_life_days.

    Raises:
        ConfigurationError: If half_life_days is not positive.
    """
    if half_life_days <= 0:
        raise ConfigurationError(f"half_life_days must be > 0, got {half_life_days}")
    return math.log(2) / half_life_days


def decay_factor(
    age_days: float,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    """Calculate the exponential decay multiplier for an age.

    Uses the formula: factor = exp(-λ * age_days), λ = ln(2) / half_life

    Args:
        age_days: Age in days (>= 0).
        half_life_days: Days until the factor reaches 0.5 (default 30).

    Returns:
        Factor in (0, 1].
        - 1.0 exactly at age 0
        - ~0.5 at half_life_days
        - ~0.25 at 2 * half_life_days

    Raises:
        ConfigurationError: If age_days is negative or half_life_days
            is not positive.

    Example:
        >>> decay_factor(0)
        1.0
        >>> round(decay_factor(30), 6)
        0.5
    """
    if age_days < 0:
        raise ConfigurationError(f"age_days must be >= 0, got {age_days}")
    return math.exp(-decay_rate(half_life_days) * age_days)


def apply_temporal_decay(
    score: float,
    day_number: int,
    max_day_number: int,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    """Down-weight a score by the age of its chunk.

    Args:
        score: Fused relevance score.
        day_number: Day number of the chunk's document.
        max_day_number: Newest day number in the index.
        half_life_days: Days until the score halves.

    Returns:
        score * exp(-λ * (max_day_number - day_number)).
    """
    return score * decay_factor(max_day_number - day_number, half_life_days)
