"""
Ranking configuration: signal, cache, collaborative, diversity and gate parameters.

RankingConfig defaults are defined here. The server may pass a dict
(e.g. from a ranking config JSON file); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, model_validator

from .interaction import MAX_INTERACTION_WEIGHT


class ScoringWeights(BaseModel):
    """Blend weights over the five ranking signals. Each band must sum to 1.0."""

    time_decay: float
    wilson: float
    user_interest: float
    collaborative: float
    community_influence: float

    def total(self) -> float:
        return (
            self.time_decay
            + self.wilson
            + self.user_interest
            + self.collaborative
            + self.community_influence
        )


class QualityThresholds(BaseModel):
    """Hard pass/fail thresholds for the quality/spam gate."""

    min_likes: int
    min_wilson_score: float
    min_author_age_days: float
    max_report_count: int
    min_content_length: int


QUALITY_PRESETS: Dict[str, QualityThresholds] = {
    "default": QualityThresholds(
        min_likes=2,
        min_wilson_score=0.3,
        min_author_age_days=1,
        max_report_count=3,
        min_content_length=50,
    ),
    "trending": QualityThresholds(
        min_likes=10,
        min_wilson_score=0.6,
        min_author_age_days=7,
        max_report_count=1,
        min_content_length=100,
    ),
}


class RankingConfig(BaseModel):
    """Configuration for the feed ranking engine."""

    # -------------------------------------------------------------------------
    # Interest Vector
    # -------------------------------------------------------------------------

    # Interactions older than this many days are ignored when building a vector.
    vector_window_days: int = 30
    # Historical window end for drift comparison (recent = 0..window, historical = window..this).
    drift_history_days: int = 90
    # Max entries kept per subject/grade map after pruning.
    vector_top_k: int = 50
    # Rescale pruned weights back to a distribution summing to 1.
    renormalize_after_prune: bool = True

    # -------------------------------------------------------------------------
    # Stable Vector Cache
    # -------------------------------------------------------------------------

    # A cached vector younger than this is served without recomputation.
    freshness_window_hours: float = 4.0
    # Fewer interactions than this falls back to the grade-default vector.
    min_interactions_for_vector: int = 5
    # TTL for vector entries in the fast tier (seconds).
    fast_tier_vector_ttl_seconds: int = 4 * 60 * 60
    # TTL for rendered feed pages in the fast tier (seconds).
    feed_cache_ttl_seconds: int = 5 * 60
    # Max concurrent background recomputations.
    background_workers: int = 4

    # -------------------------------------------------------------------------
    # Drift Detection
    # -------------------------------------------------------------------------

    # Subject cosine similarity below this flags concept drift.
    drift_similarity_threshold: float = 0.6
    # Per-subject absolute weight change above this marks the subject as drifting.
    drift_subject_change: float = 0.2
    # Weight kept on the previous grade after a grade transition.
    grade_transition_old_weight: float = 0.3

    # -------------------------------------------------------------------------
    # Collaborative Filtering
    # -------------------------------------------------------------------------

    # Peers younger than this (days) are never used as neighbours.
    peer_min_account_age_days: int = 30
    # Peers with fewer interactions than this are never used as neighbours.
    peer_min_interactions: int = 50
    # Only peers strictly above this blended similarity are kept.
    peer_similarity_threshold: float = 0.15
    # Cap on neighbours kept per request.
    max_similar_users: int = 50
    # Blend of subject vs grade cosine in user-user similarity.
    peer_subject_weight: float = 0.7
    peer_grade_weight: float = 0.3

    # -------------------------------------------------------------------------
    # Cold-Start Bands (account age OR interaction count)
    # -------------------------------------------------------------------------

    new_user_max_days: int = 7
    new_user_max_interactions: int = 10
    developing_user_max_days: int = 30
    developing_user_max_interactions: int = 50

    weights_new: ScoringWeights = ScoringWeights(
        time_decay=0.4, wilson=0.3, user_interest=0.0, collaborative=0.0, community_influence=0.3
    )
    weights_developing: ScoringWeights = ScoringWeights(
        time_decay=0.3, wilson=0.25, user_interest=0.2, collaborative=0.1, community_influence=0.15
    )
    weights_mature: ScoringWeights = ScoringWeights(
        time_decay=0.25, wilson=0.2, user_interest=0.3, collaborative=0.15, community_influence=0.1
    )

    # -------------------------------------------------------------------------
    # Hybrid Scoring
    # -------------------------------------------------------------------------

    # Share of the final score given to country match when local preference is on.
    country_weight: float = 0.2
    # Empirical range used to normalize the raw time-decay score.
    time_decay_norm_max: float = 100.0
    # Range used to normalize the collaborative prediction (max interaction weight).
    collaborative_norm_max: float = float(MAX_INTERACTION_WEIGHT)
    # Quality preset applied as the 0/1 gate.
    quality_level: str = "default"

    # -------------------------------------------------------------------------
    # Candidate Pool
    # -------------------------------------------------------------------------

    # Candidates fetched per requested slot (page * page_size * factor).
    overfetch_factor: int = 5
    # Probability that foreign-country content survives the pre-filter.
    foreign_content_ratio: float = 0.3

    # -------------------------------------------------------------------------
    # Country Balance
    # -------------------------------------------------------------------------

    target_local_ratio: float = 0.7

    # -------------------------------------------------------------------------
    # Diversity Injection
    # -------------------------------------------------------------------------

    # Subject weight below this marks a candidate as unexplored.
    explore_weight_threshold: float = 0.1
    # Minimum Wilson score for serendipity content.
    serendipity_min_wilson: float = 0.6
    # Look-back window (days) for the serendipity pool.
    serendipity_window_days: int = 7
    # Neutral score assigned to serendipity items.
    serendipity_score: float = 0.5
    # effective_score = final_score * (subject_penalty_alpha ** subject_count)
    subject_penalty_alpha: float = 0.85

    # -------------------------------------------------------------------------
    # Request Coalescing / Fallback
    # -------------------------------------------------------------------------

    # Waiters above this on one key are logged as a stampede.
    stampede_waiter_threshold: int = 10
    # Consecutive failures before the circuit breaker opens.
    breaker_failure_threshold: int = 5
    # Seconds the breaker stays open before a half-open trial.
    breaker_reset_seconds: float = 60.0

    # -------------------------------------------------------------------------
    # Maintenance Jobs
    # -------------------------------------------------------------------------

    # Interactions older than this are deleted by the daily job (must cover drift history).
    interaction_retention_days: int = 90
    # Users with an interaction inside this window get the daily drift check.
    active_user_window_days: int = 7
    # Stored vectors untouched for longer than this are expired by the weekly job.
    vector_retention_days: int = 30

    @model_validator(mode="after")
    def check_consistency(self):
        for name in ("weights_new", "weights_developing", "weights_mature"):
            total = getattr(self, name).total()
            if abs(total - 1.0) > 0.01:
                raise ValueError(f"{name} must sum to 1.0, got {total}")
        if abs(self.peer_subject_weight + self.peer_grade_weight - 1.0) > 0.01:
            raise ValueError("peer_subject_weight + peer_grade_weight must sum to 1.0")
        if self.quality_level not in QUALITY_PRESETS:
            raise ValueError(f"Unknown quality_level {self.quality_level!r}")
        if self.interaction_retention_days < self.drift_history_days:
            raise ValueError("interaction_retention_days must cover drift_history_days")
        return self

    @property
    def quality_thresholds(self) -> QualityThresholds:
        return QUALITY_PRESETS[self.quality_level]

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RankingConfig":
        """Create config from dictionary (e.g., loaded from JSON). Nested sections are flattened."""
        flat = {}
        for section in (
            "vector", "cache", "drift", "collaborative", "scoring", "candidates", "diversity", "coalescing", "maintenance",
        ):
            if section in config_dict and isinstance(config_dict[section], dict):
                flat.update(config_dict[section])
        if "cold_start" in config_dict:
            cs = config_dict["cold_start"]
            for band in ("new", "developing", "mature"):
                if band in cs:
                    flat[f"weights_{band}"] = cs[band]
        flat.update({k: v for k, v in config_dict.items() if not isinstance(v, dict)})
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = RankingConfig()


def resolve_config(config: Optional["RankingConfig"]) -> "RankingConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
