"""
Cold-start policy: blend weights by account maturity, and grade-based default interests.

New accounts lean on popularity and quality (no personal or collaborative signal
exists yet); mature accounts lean on personalization and collaboration.
"""

from datetime import datetime
from typing import Dict, Optional

from ..models.config import DEFAULT_CONFIG, RankingConfig, ScoringWeights
from ..models.user import UserProfile
from ..models.vector import InterestVector, VectorMetadata
from ..utils.clock import days_since, utc_now

MATURITY_NEW = "new"
MATURITY_DEVELOPING = "developing"
MATURITY_MATURE = "mature"

# Curriculum-derived topic priors per grade.
GRADE_DEFAULT_SUBJECTS: Dict[str, Dict[str, float]] = {
    "9th Grade": {"math": 0.3, "science": 0.3, "literature": 0.2, "history": 0.1, "english": 0.1},
    "10th Grade": {"physics": 0.3, "chemistry": 0.2, "math": 0.3, "biology": 0.1, "literature": 0.1},
    "11th Grade": {"math": 0.25, "physics": 0.25, "chemistry": 0.2, "biology": 0.15, "literature": 0.15},
    "12th Grade": {"math": 0.2, "physics": 0.2, "chemistry": 0.2, "literature": 0.2, "english": 0.2},
    "University": {"general": 0.5, "specialized": 0.3, "research": 0.2},
    "Teacher": {"pedagogy": 0.3, "general": 0.4, "specialized": 0.3},
}

# Diversity score stamped on grade-default vectors.
DEFAULT_VECTOR_DIVERSITY = 0.8


def maturity_band(
    account_age_days: float,
    interaction_count: int,
    config: RankingConfig = DEFAULT_CONFIG,
) -> str:
    """Classify an account as new, developing or mature (age OR activity below a band's limit)."""
    if account_age_days < config.new_user_max_days or interaction_count < config.new_user_max_interactions:
        return MATURITY_NEW
    if (
        account_age_days < config.developing_user_max_days
        or interaction_count < config.developing_user_max_interactions
    ):
        return MATURITY_DEVELOPING
    return MATURITY_MATURE


def select_weights(
    profile: UserProfile,
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> ScoringWeights:
    """Blend weights for the profile's maturity band."""
    band = maturity_band(days_since(profile.created_at, now), profile.total_interactions, config)
    if band == MATURITY_NEW:
        return config.weights_new
    if band == MATURITY_DEVELOPING:
        return config.weights_developing
    return config.weights_mature


def grade_default_vector(
    grade: Optional[str],
    owner_id: str = "",
    now: Optional[datetime] = None,
) -> InterestVector:
    """
    Default interest vector for a grade.

    Unknown or missing grades get a single "general" topic under the General grade.
    """
    subjects = GRADE_DEFAULT_SUBJECTS.get(grade or "")
    if subjects is None:
        subjects = {"general": 1.0}
        grades = {"General": 1.0}
    else:
        grades = {grade: 1.0}
    return InterestVector(
        owner_id=owner_id,
        subjects=dict(subjects),
        grades=grades,
        metadata=VectorMetadata(
            last_updated=now or utc_now(),
            drift_score=0.0,
            diversity_score=DEFAULT_VECTOR_DIVERSITY,
        ),
    )
