"""
Time-decay popularity score (Hacker News style gravity formula).

score = (P - 1) / (T + 2) ** gravity, with P = likes + 2*comments + 3*shares
and T = hours since creation. Gravity is adjusted by season of creation.
The raw score is unbounded; callers normalize against [0, TIME_DECAY_NORM_MAX].
"""

from datetime import datetime
from typing import Optional

from ..utils.clock import ensure_utc, hours_since

DEFAULT_GRAVITY = 1.8
EXAM_GRAVITY = 1.5
LOW_ENGAGEMENT_GRAVITY = 2.2
TIME_DECAY_NORM_MAX = 100.0


def time_decay_score(
    likes: int,
    comments: int,
    shares: int,
    created_at: datetime,
    gravity: float = DEFAULT_GRAVITY,
    now: Optional[datetime] = None,
) -> float:
    points = likes + comments * 2 + shares * 3
    age_hours = max(hours_since(created_at, now), 0.0)
    return (points - 1) / ((age_hours + 2) ** gravity)


def seasonal_gravity(date: datetime) -> float:
    """
    Gravity for the month the content was created in.

    May-June (exam season): content stays relevant longer, slower decay.
    July-August (summer break): trends turn over quickly, faster decay.
    """
    month = ensure_utc(date).month
    if month in (5, 6):
        return EXAM_GRAVITY
    if month in (7, 8):
        return LOW_ENGAGEMENT_GRAVITY
    return DEFAULT_GRAVITY


def seasonal_time_decay_score(
    likes: int,
    comments: int,
    shares: int,
    created_at: datetime,
    now: Optional[datetime] = None,
) -> float:
    """Time-decay score with gravity chosen from the creation month."""
    return time_decay_score(likes, comments, shares, created_at, seasonal_gravity(created_at), now)


def normalize_score(value: float, min_value: float, max_value: float) -> float:
    """Clamp-normalize value into [0, 1]; a degenerate range yields 0.5."""
    if max_value == min_value:
        return 0.5
    return max(0.0, min(1.0, (value - min_value) / (max_value - min_value)))
