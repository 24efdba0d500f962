"""Caching layer: fast/durable tiers, stable vector cache, background refresh, coalescing."""

from .background import BackgroundRefresher
from .coalescer import RequestCoalescer, feed_cache_key
from .stable_vector import StableVectorCache, vector_key
from .tiers import (
    TIER_COMPUTED,
    TIER_DEFAULT,
    TIER_DURABLE,
    TIER_FAST,
    CacheEntry,
    FastTier,
    InMemoryFastTier,
    RedisFastTier,
)
from .vector_store import InMemoryVectorStore, JsonVectorStore, VectorStore

__all__ = [
    "TIER_COMPUTED",
    "TIER_DEFAULT",
    "TIER_DURABLE",
    "TIER_FAST",
    "BackgroundRefresher",
    "CacheEntry",
    "FastTier",
    "InMemoryFastTier",
    "InMemoryVectorStore",
    "JsonVectorStore",
    "RedisFastTier",
    "RequestCoalescer",
    "StableVectorCache",
    "VectorStore",
    "feed_cache_key",
    "vector_key",
]
