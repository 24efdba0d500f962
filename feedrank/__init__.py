"""
Feedrank: personalized, diversity-aware feed ranking engine.

- models/: RankingConfig, Interaction, ContentCandidate, InterestVector, UserProfile
- signals/: time decay, Wilson score, grade/country match, quality gate, cosine
- stages/: vector builder, drift, cold start, collaborative, scoring, diversity, orchestrator
- cache/: stable vector cache, fast/durable tiers, background refresh, request coalescer
- services/: store protocols and in-memory implementations
"""

from .models.config import DEFAULT_CONFIG, RankingConfig, resolve_config
from .models.interaction import InteractionType
from .models.user import FeedFilters, FeedResult
from .monitoring import HealthMonitor
from .stages.orchestrator import FeedEngine

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_CONFIG",
    "FeedEngine",
    "FeedFilters",
    "FeedResult",
    "HealthMonitor",
    "InteractionType",
    "RankingConfig",
    "resolve_config",
]
