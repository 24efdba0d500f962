"""
Pipeline stages: vector building, drift, cold start, collaborative filtering,
candidate pool, hybrid scoring, country balance, diversity, fallback feeds
and the scheduled maintenance jobs.

FeedEngine lives in stages.orchestrator and is exported from the package root.
"""

from .candidate_pool import get_candidate_pool, get_serendipity_pool
from .cold_start import grade_default_vector, maturity_band, select_weights
from .collaborative import CollaborativeFilter
from .country_balance import balance_country_distribution, country_diversity_score
from .diversity import (
    DiversityConfig,
    adaptive_diversity_config,
    inject_diversity,
    is_unexplored,
    spread_variety,
)
from .drift import DriftAnalysis, DriftDetector
from .fallback import AlgorithmCircuitBreaker, chronological_feed, simplified_feed
from .hybrid_scoring import ScoringContext, score_candidate, score_candidates
from .interest_vector import build_interest_vector, diversity_score, prune_weights
from .maintenance import MaintenanceReport, prune_vector, run_daily_maintenance, run_weekly_maintenance

__all__ = [
    "AlgorithmCircuitBreaker",
    "CollaborativeFilter",
    "DiversityConfig",
    "DriftAnalysis",
    "DriftDetector",
    "MaintenanceReport",
    "ScoringContext",
    "adaptive_diversity_config",
    "balance_country_distribution",
    "build_interest_vector",
    "chronological_feed",
    "country_diversity_score",
    "diversity_score",
    "get_candidate_pool",
    "get_serendipity_pool",
    "grade_default_vector",
    "inject_diversity",
    "is_unexplored",
    "maturity_band",
    "prune_weights",
    "prune_vector",
    "run_daily_maintenance",
    "run_weekly_maintenance",
    "score_candidate",
    "score_candidates",
    "select_weights",
    "simplified_feed",
    "spread_variety",
]
