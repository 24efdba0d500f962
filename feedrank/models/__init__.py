"""Data models for the feed ranking engine."""

from .config import (
    DEFAULT_CONFIG,
    QUALITY_PRESETS,
    QualityThresholds,
    RankingConfig,
    ScoringWeights,
    resolve_config,
)
from .content import ContentCandidate, ScoredCandidate, SignalBreakdown, ensure_candidates
from .interaction import (
    INTERACTION_WEIGHTS,
    MAX_INTERACTION_WEIGHT,
    Interaction,
    InteractionType,
    ensure_interactions,
    get_interaction_weight,
)
from .user import FeedFilters, FeedResult, PeerSummary, SimilarityEdge, UserProfile
from .vector import InterestVector, VectorMetadata

__all__ = [
    "DEFAULT_CONFIG",
    "INTERACTION_WEIGHTS",
    "MAX_INTERACTION_WEIGHT",
    "QUALITY_PRESETS",
    "ContentCandidate",
    "FeedFilters",
    "FeedResult",
    "Interaction",
    "InteractionType",
    "InterestVector",
    "PeerSummary",
    "QualityThresholds",
    "RankingConfig",
    "ScoredCandidate",
    "ScoringWeights",
    "SignalBreakdown",
    "SimilarityEdge",
    "UserProfile",
    "VectorMetadata",
    "ensure_candidates",
    "ensure_interactions",
    "get_interaction_weight",
    "resolve_config",
]
