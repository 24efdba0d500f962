"""
Signal library: pure, side-effect-free feature scores for one candidate.

- time_decay: seasonal gravity popularity
- wilson: statistical quality with bot-velocity dampening
- grade_match, country: audience fit
- quality_gate: hard pass/fail spam and quality filter
- similarity: cosine over sparse weight maps
"""

from .country import country_match_score, should_include_content
from .grade_match import GRADE_HIERARCHY, grade_match_score
from .quality_gate import detect_spam_patterns, gate_rejection_reason, passes_quality_gate
from .similarity import cosine_similarity
from .time_decay import (
    normalize_score,
    seasonal_gravity,
    seasonal_time_decay_score,
    time_decay_score,
)
from .wilson import time_aware_wilson_score, wilson_score

__all__ = [
    "GRADE_HIERARCHY",
    "cosine_similarity",
    "country_match_score",
    "detect_spam_patterns",
    "gate_rejection_reason",
    "grade_match_score",
    "normalize_score",
    "passes_quality_gate",
    "seasonal_gravity",
    "seasonal_time_decay_score",
    "should_include_content",
    "time_aware_wilson_score",
    "time_decay_score",
    "wilson_score",
]
