"""
Wilson score: lower bound of the 95% confidence interval for the upvote proportion.

The time-aware variant dampens suspicious early velocity (bot-like voting in the
first hour) and ramps trust up linearly over the first 24 hours.
"""

import math
from datetime import datetime
from typing import Optional, Sequence

from ..utils.clock import hours_since

Z_95 = 1.96

BOT_WINDOW_HOURS = 1.0
BOT_MIN_UPVOTES = 20
BOT_MIN_UNIQUE_RATIO = 0.7
BOT_UNIQUE_PENALTY = 0.3
BOT_HIGH_SCORE = 0.8
BOT_HIGH_SCORE_PENALTY = 0.5
FULL_TRUST_HOURS = 24.0


def wilson_score(upvotes: int, downvotes: int) -> float:
    """Wilson lower bound in [0, 1]; 0 when there are no votes."""
    n = upvotes + downvotes
    if n <= 0:
        return 0.0
    p = upvotes / n
    z2 = Z_95 * Z_95
    numerator = p + z2 / (2 * n) - Z_95 * math.sqrt((p * (1 - p) + z2 / (4 * n)) / n)
    denominator = 1 + z2 / n
    return max(0.0, min(1.0, numerator / denominator))


def time_aware_wilson_score(
    upvotes: int,
    downvotes: int,
    created_at: datetime,
    voter_ids: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Wilson score with bot-velocity dampening and age-based trust.

    Under one hour old with more than 20 upvotes:
      - unique voter ratio below 0.7 -> base * 0.3
      - otherwise a base score above 0.8 -> base * 0.5
    From 24 hours on the base score is returned unchanged; before that it is
    scaled by age / 24. voter_ids=None means like history is unavailable and
    the unique-voter check is skipped.
    """
    base = wilson_score(upvotes, downvotes)
    age_hours = max(hours_since(created_at, now), 0.0)

    if age_hours < BOT_WINDOW_HOURS and upvotes > BOT_MIN_UPVOTES:
        if voter_ids is not None:
            unique_ratio = len(set(voter_ids)) / upvotes
            if unique_ratio < BOT_MIN_UNIQUE_RATIO:
                return base * BOT_UNIQUE_PENALTY
        if base > BOT_HIGH_SCORE:
            return base * BOT_HIGH_SCORE_PENALTY

    if age_hours >= FULL_TRUST_HOURS:
        return base
    return base * min(1.0, age_hours / FULL_TRUST_HOURS)
