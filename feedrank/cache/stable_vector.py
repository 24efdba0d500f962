"""
Stable vector cache: two-tier cache in front of the interest vector builder.

Read path: fast tier (fresh only) -> durable tier (mirrored into the fast tier;
fresh is returned as-is, stale is returned immediately while a background
recompute is scheduled) -> stale fast-tier copy (same refresh) -> synchronous
compute. Users with too few interactions get the grade-default vector, which is
never cached so real history replaces it as soon as it exists.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.vector import InterestVector
from ..stages.cold_start import grade_default_vector
from ..stages.interest_vector import build_interest_vector
from ..utils.clock import hours_since, utc_now
from .background import BackgroundRefresher
from .tiers import (
    TIER_COMPUTED,
    TIER_DEFAULT,
    TIER_DURABLE,
    TIER_FAST,
    CacheEntry,
    FastTier,
    InMemoryFastTier,
)
from .vector_store import InMemoryVectorStore, VectorStore

logger = logging.getLogger(__name__)


def vector_key(user_id: str) -> str:
    return f"vector:{user_id}"


class StableVectorCache:
    def __init__(
        self,
        interaction_store,
        vector_store: Optional[VectorStore] = None,
        fast_tier: Optional[FastTier] = None,
        refresher: Optional[BackgroundRefresher] = None,
        config: RankingConfig = DEFAULT_CONFIG,
        monitor=None,
        clock=utc_now,
    ):
        self.interaction_store = interaction_store
        self.vector_store = vector_store if vector_store is not None else InMemoryVectorStore()
        self.fast_tier = fast_tier if fast_tier is not None else InMemoryFastTier()
        self.refresher = refresher if refresher is not None else BackgroundRefresher(config.background_workers)
        self.config = config
        self.monitor = monitor
        self._clock = clock

    def is_fresh(self, vector: InterestVector, now: Optional[datetime] = None) -> bool:
        now = now or self._clock()
        age = hours_since(vector.metadata.last_updated, now)
        return age < self.config.freshness_window_hours

    def _record_access(self, hit: bool) -> None:
        if self.monitor is not None:
            self.monitor.record_cache_access(hit)

    async def _read_fast(self, user_id: str) -> Optional[InterestVector]:
        raw = await self.fast_tier.get(vector_key(user_id))
        if raw is None:
            return None
        try:
            return InterestVector.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("[vector_cache] FAST_TIER_CORRUPT user=%s error=%s", user_id, e)
            return None

    async def _mirror_fast(self, user_id: str, vector: InterestVector) -> None:
        await self.fast_tier.set(
            vector_key(user_id),
            vector.model_dump_json(),
            self.config.fast_tier_vector_ttl_seconds,
        )

    async def _read_durable(self, user_id: str) -> Optional[InterestVector]:
        try:
            return await self.vector_store.get(user_id)
        except Exception as e:
            logger.warning("[vector_cache] DURABLE_READ_FAILED user=%s error=%s", user_id, e)
            return None

    async def get_entry(self, user_id: str, grade: Optional[str] = None) -> CacheEntry[InterestVector]:
        """Vector for user_id plus the tier that served it."""
        now = self._clock()

        cached = await self._read_fast(user_id)
        if cached is not None and self.is_fresh(cached, now):
            self._record_access(True)
            return CacheEntry(value=cached, computed_at=cached.metadata.last_updated, tier=TIER_FAST)

        durable = await self._read_durable(user_id)
        if durable is not None:
            await self._mirror_fast(user_id, durable)
            self._record_access(True)
            if not self.is_fresh(durable, now):
                submitted = self.refresher.submit(
                    vector_key(user_id), lambda: self._refresh(user_id)
                )
                logger.info(
                    "[vector_cache] STALE_SERVED user=%s age_h=%.1f refresh_scheduled=%s",
                    user_id, hours_since(durable.metadata.last_updated, now), submitted,
                )
            return CacheEntry(value=durable, computed_at=durable.metadata.last_updated, tier=TIER_DURABLE)

        if cached is not None:
            self._record_access(True)
            submitted = self.refresher.submit(vector_key(user_id), lambda: self._refresh(user_id))
            logger.info(
                "[vector_cache] STALE_SERVED user=%s tier=fast age_h=%.1f refresh_scheduled=%s",
                user_id, hours_since(cached.metadata.last_updated, now), submitted,
            )
            return CacheEntry(value=cached, computed_at=cached.metadata.last_updated, tier=TIER_FAST)

        self._record_access(False)
        return await self._compute(user_id, grade, now)

    async def get_vector(self, user_id: str, grade: Optional[str] = None) -> InterestVector:
        entry = await self.get_entry(user_id, grade)
        return entry.value

    async def get_cached(self, user_id: str) -> Optional[InterestVector]:
        """
        Cached vector only (no compute, no default). Used for peer lookups where a
        missing vector means the peer is skipped.
        """
        cached = await self._read_fast(user_id)
        if cached is not None:
            return cached
        durable = await self._read_durable(user_id)
        if durable is not None and not self.is_fresh(durable):
            self.refresher.submit(vector_key(user_id), lambda: self._refresh(user_id))
        return durable

    async def _load_window(self, user_id: str):
        return await self.interaction_store.interactions_between(
            user_id, 0, self.config.vector_window_days
        )

    def _build(self, user_id: str, interactions, now: datetime) -> InterestVector:
        cfg = self.config
        return build_interest_vector(
            user_id,
            interactions,
            max_age_days=cfg.vector_window_days,
            top_k=cfg.vector_top_k,
            renormalize_after_prune=cfg.renormalize_after_prune,
            now=now,
        )

    async def _compute(
        self,
        user_id: str,
        grade: Optional[str],
        now: datetime,
    ) -> CacheEntry[InterestVector]:
        interactions = await self._load_window(user_id)
        if len(interactions) < self.config.min_interactions_for_vector:
            logger.info(
                "[vector_cache] GRADE_DEFAULT user=%s interactions=%d grade=%s",
                user_id, len(interactions), grade,
            )
            return CacheEntry(
                value=grade_default_vector(grade, owner_id=user_id, now=now),
                computed_at=now,
                tier=TIER_DEFAULT,
            )
        vector = self._build(user_id, interactions, now)
        await self.put_vector(user_id, vector)
        return CacheEntry(value=vector, computed_at=now, tier=TIER_COMPUTED)

    async def _refresh(self, user_id: str) -> None:
        interactions = await self._load_window(user_id)
        if len(interactions) < self.config.min_interactions_for_vector:
            logger.info("[vector_cache] REFRESH_SKIPPED user=%s interactions=%d", user_id, len(interactions))
            return
        vector = self._build(user_id, interactions, self._clock())
        await self.put_vector(user_id, vector)
        logger.info("[vector_cache] REFRESHED user=%s subjects=%d", user_id, len(vector.subjects))

    async def force_recompute(self, user_id: str, grade: Optional[str] = None) -> InterestVector:
        """
        Rebuild synchronously, bypassing freshness (drift, manual trigger).

        Below the minimum interaction count the cached vector is dropped and the
        grade default is returned uncached, as on the normal read path.
        """
        now = self._clock()
        interactions = await self._load_window(user_id)
        if len(interactions) < self.config.min_interactions_for_vector:
            await self.invalidate(user_id)
            logger.info(
                "[vector_cache] FORCED_DEFAULT user=%s interactions=%d grade=%s",
                user_id, len(interactions), grade,
            )
            return grade_default_vector(grade, owner_id=user_id, now=now)
        vector = self._build(user_id, interactions, now)
        await self.put_vector(user_id, vector)
        return vector

    async def put_vector(self, user_id: str, vector: InterestVector) -> None:
        """Write through both tiers. The durable write must succeed; the fast tier is best-effort."""
        await self.vector_store.put(user_id, vector)
        await self._mirror_fast(user_id, vector)

    async def invalidate(self, user_id: str) -> None:
        await self.fast_tier.delete(vector_key(user_id))
        await self.vector_store.delete(user_id)
