"""
Feed orchestrator: FeedEngine composes every stage into one request pipeline.

rank_feed: coalesced per (user, page, filters) key; served from the short-lived
feed cache when possible; otherwise profile -> stable vector -> similar users ->
candidate pool -> hybrid scoring -> country balance -> diversity injection ->
paginate. Pipeline failures fall back to the simplified, then chronological feed,
so callers always get a (possibly empty) list.

run_maintenance runs the daily (retention, drift sweep, vector pruning) or
weekly (vector expiry, peer vector rebuild) job.
"""

import logging
import random
import time
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError

from ..cache.background import BackgroundRefresher
from ..cache.coalescer import RequestCoalescer, feed_cache_key
from ..cache.stable_vector import StableVectorCache
from ..cache.tiers import FastTier, InMemoryFastTier
from ..cache.vector_store import VectorStore
from ..errors import UserNotFoundError
from ..models.config import RankingConfig, resolve_config
from ..models.interaction import Interaction, InteractionType
from ..models.user import FeedFilters, FeedResult, SimilarityEdge, UserProfile
from ..models.vector import InterestVector
from ..monitoring import HealthMonitor
from ..services.content_store import ContentStore
from ..services.interaction_store import InteractionStore
from ..services.user_store import UserStore
from ..utils.clock import days_since, hours_since, utc_now
from .candidate_pool import get_candidate_pool, get_serendipity_pool
from .cold_start import maturity_band, select_weights
from .collaborative import CollaborativeFilter
from .country_balance import balance_country_distribution, country_diversity_score
from .diversity import adaptive_diversity_config, inject_diversity
from .drift import DriftAnalysis, DriftDetector
from .fallback import AlgorithmCircuitBreaker, chronological_feed, simplified_feed
from .hybrid_scoring import ScoringContext, score_candidates
from .maintenance import (
    JOB_DAILY,
    JOB_WEEKLY,
    JOBS,
    MaintenanceReport,
    run_daily_maintenance,
    run_weekly_maintenance,
)

logger = logging.getLogger(__name__)

ALGORITHM_HYBRID = "hybrid"
ALGORITHM_SIMPLIFIED = "simplified"
ALGORITHM_CHRONOLOGICAL = "chronological"


class FeedEngine:
    """
    Ranking engine service object. Construct one per process and share it.

    Only the three stores are required; caches, monitor and config default to
    in-process implementations.
    """

    def __init__(
        self,
        content_store: ContentStore,
        interaction_store: InteractionStore,
        user_store: UserStore,
        config: Optional[RankingConfig] = None,
        vector_store: Optional[VectorStore] = None,
        fast_tier: Optional[FastTier] = None,
        monitor: Optional[HealthMonitor] = None,
        rng: Optional[random.Random] = None,
        clock=utc_now,
    ):
        self.config = resolve_config(config)
        self.content_store = content_store
        self.interaction_store = interaction_store
        self.user_store = user_store
        self.monitor = monitor if monitor is not None else HealthMonitor()
        self.fast_tier = fast_tier if fast_tier is not None else InMemoryFastTier()
        self.refresher = BackgroundRefresher(self.config.background_workers)
        self.vectors = StableVectorCache(
            interaction_store,
            vector_store=vector_store,
            fast_tier=self.fast_tier,
            refresher=self.refresher,
            config=self.config,
            monitor=self.monitor,
            clock=clock,
        )
        self.coalescer = RequestCoalescer(self.config.stampede_waiter_threshold, self.monitor)
        self.collaborative = CollaborativeFilter(self.config)
        self.drift_detector = DriftDetector(self.config)
        self.breaker = AlgorithmCircuitBreaker(
            self.config.breaker_failure_threshold, self.config.breaker_reset_seconds
        )
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

    # -------------------------------------------------------------------------
    # Ranking
    # -------------------------------------------------------------------------

    async def rank_feed(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = 20,
        filters: Optional[FeedFilters] = None,
    ) -> List[str]:
        """Ordered content ids for one page of the user's feed."""
        result = await self.rank_feed_detailed(user_id, page, page_size, filters)
        return result.content_ids

    async def rank_feed_detailed(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = 20,
        filters: Optional[FeedFilters] = None,
    ) -> FeedResult:
        """rank_feed plus the tier (hybrid / simplified / chronological) that produced it."""
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be >= 1")
        filters = filters or FeedFilters()
        key = feed_cache_key(user_id, page, page_size, filters)
        return await self.coalescer.get_or_compute(
            key, lambda: self._produce_feed(key, user_id, page, page_size, filters)
        )

    async def _produce_feed(
        self,
        key: str,
        user_id: str,
        page: int,
        page_size: int,
        filters: FeedFilters,
    ) -> FeedResult:
        cached = await self._read_feed_cache(key)
        if cached is not None:
            return cached

        try:
            profile = await self.user_store.get_profile(user_id)
        except Exception:
            logger.exception("[feed] PROFILE_LOOKUP_FAILED user=%s", user_id)
            return await self._chronological(user_id, page, page_size)
        if profile is None:
            logger.info("[feed] UNKNOWN_USER user=%s serving=chronological", user_id)
            return await self._chronological(user_id, page, page_size)

        if self.breaker.allow_request():
            start = time.perf_counter()
            try:
                content_ids = await self._hybrid_feed(profile, page, page_size, filters)
            except Exception:
                self.breaker.record_failure()
                self.monitor.record_error()
                logger.exception("[feed] HYBRID_FAILED user=%s", user_id)
            else:
                self.breaker.record_success()
                self.monitor.record_success()
                self.monitor.record_calculation_time((time.perf_counter() - start) * 1000.0)
                result = FeedResult(
                    content_ids=content_ids,
                    algorithm=ALGORITHM_HYBRID,
                    page=page,
                    page_size=page_size,
                )
                await self.fast_tier.set(
                    key, result.model_dump_json(), self.config.feed_cache_ttl_seconds
                )
                return result
        else:
            logger.info("[feed] BREAKER_OPEN user=%s serving=simplified", user_id)

        try:
            content_ids = await simplified_feed(
                self.content_store, user_id, profile, page, page_size
            )
            return FeedResult(
                content_ids=content_ids,
                algorithm=ALGORITHM_SIMPLIFIED,
                page=page,
                page_size=page_size,
            )
        except Exception:
            logger.exception("[feed] SIMPLIFIED_FAILED user=%s", user_id)
        return await self._chronological(user_id, page, page_size)

    async def _chronological(self, user_id: str, page: int, page_size: int) -> FeedResult:
        try:
            content_ids = await chronological_feed(self.content_store, user_id, page, page_size)
        except Exception:
            logger.exception("[feed] CHRONOLOGICAL_FAILED user=%s", user_id)
            content_ids = []
        return FeedResult(
            content_ids=content_ids,
            algorithm=ALGORITHM_CHRONOLOGICAL,
            page=page,
            page_size=page_size,
        )

    async def _read_feed_cache(self, key: str) -> Optional[FeedResult]:
        raw = await self.fast_tier.get(key)
        if raw is None:
            return None
        try:
            return FeedResult.model_validate_json(raw)
        except ValidationError:
            logger.warning("[feed] FEED_CACHE_CORRUPT key=%s", key)
            return None

    async def _similar_users(
        self,
        profile: UserProfile,
        vector: InterestVector,
        now: datetime,
    ) -> List[SimilarityEdge]:
        cfg = self.config
        peers = await self.user_store.mature_peers(
            profile.id, cfg.peer_min_account_age_days, cfg.peer_min_interactions
        )
        return await self.collaborative.find_similar_users(
            profile.id, vector, peers, self.vectors.get_cached, now
        )

    async def _hybrid_feed(
        self,
        profile: UserProfile,
        page: int,
        page_size: int,
        filters: FeedFilters,
    ) -> List[str]:
        cfg = self.config
        now = self._clock()

        vector = await self.vectors.get_vector(profile.id, profile.grade)
        weights = select_weights(profile, cfg, now)

        similar: List[SimilarityEdge] = []
        if weights.collaborative > 0:
            similar = await self._similar_users(profile, vector, now)

        candidates = await get_candidate_pool(
            self.content_store, profile, page, page_size, filters, cfg, self._rng
        )
        collaborative = await self.collaborative.predict_scores(
            [c.id for c in candidates], similar, self.interaction_store.latest_weight
        )

        ctx = ScoringContext(
            profile=profile,
            vector=vector,
            weights=weights,
            collaborative=collaborative,
            config=cfg,
            now=now,
        )
        scored = score_candidates(candidates, ctx, self.monitor)

        if profile.prefer_local_content:
            scored = balance_country_distribution(scored, profile.country, cfg.target_local_ratio)

        diversity = adaptive_diversity_config(
            days_since(profile.created_at, now), vector.metadata.diversity_score
        )
        serendipity_pool = await get_serendipity_pool(
            self.content_store,
            profile,
            [s.id for s in scored],
            diversity.serendipity_count,
            cfg,
            now,
        )
        ranked = inject_diversity(scored, vector, diversity, serendipity_pool, cfg, self._rng, now)
        self.monitor.record_diversity_score(vector.metadata.diversity_score)

        start = (page - 1) * page_size
        page_items = ranked[start : start + page_size]
        logger.info(
            "[feed] RANKED user=%s band=%s candidates=%d scored=%d peers=%d returned=%d country_div=%.2f",
            profile.id,
            maturity_band(days_since(profile.created_at, now), profile.total_interactions, cfg),
            len(candidates),
            len(scored),
            len(similar),
            len(page_items),
            country_diversity_score([s.candidate.country for s in page_items]),
        )
        return [s.id for s in page_items]

    # -------------------------------------------------------------------------
    # Interactions, drift, grade transitions
    # -------------------------------------------------------------------------

    async def record_interaction(
        self,
        user_id: str,
        content_id: str,
        content_type: str,
        interaction_type: InteractionType,
        subject: Optional[str] = None,
        grade: Optional[str] = None,
    ) -> None:
        """Append one interaction event. Best-effort: failures are logged, never raised."""
        try:
            interaction = Interaction(
                user_id=user_id,
                content_id=content_id,
                content_type=content_type,
                interaction_type=interaction_type,
                subject=subject,
                grade=grade,
                created_at=self._clock(),
            )
            await self.interaction_store.append(interaction)
            await self.user_store.increment_interactions(user_id)
        except Exception:
            logger.exception(
                "[interactions] RECORD_FAILED user=%s content=%s type=%s",
                user_id, content_id, interaction_type,
            )

    async def invalidate_feed(self, user_id: str) -> int:
        """Drop every cached feed page for the user."""
        removed = await self.fast_tier.delete_prefix(f"feed:{user_id}:")
        logger.info("[feed] INVALIDATED user=%s pages=%d", user_id, removed)
        return removed

    async def on_grade_transition(self, user_id: str, old_grade: str, new_grade: str) -> InterestVector:
        """
        Move the user to new_grade: the profile grade is updated, subject interests
        are kept, grade weights reset to the transitional blend and cached feeds dropped.
        """
        if await self.user_store.get_profile(user_id) is None:
            raise UserNotFoundError(user_id)
        current = await self.vectors.get_vector(user_id, old_grade)
        vector = self.drift_detector.grade_transition_vector(
            current, old_grade, new_grade, now=self._clock()
        )
        await self.vectors.put_vector(user_id, vector)
        await self.user_store.update_grade(user_id, new_grade)
        await self.invalidate_feed(user_id)
        logger.info("[drift] GRADE_TRANSITION user=%s from=%s to=%s", user_id, old_grade, new_grade)
        return vector

    async def check_drift(self, user_id: str) -> DriftAnalysis:
        """Compare recent vs historical interests; on drift, rebuild the vector and drop cached feeds."""
        profile = await self.user_store.get_profile(user_id)
        if profile is None:
            raise UserNotFoundError(user_id)
        analysis = await self.drift_detector.detect_concept_drift(user_id, self.interaction_store)
        self.monitor.record_drift_detection(analysis.has_drift)
        if analysis.has_drift:
            await self.vectors.force_recompute(user_id, profile.grade)
            await self.invalidate_feed(user_id)
        return analysis

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def run_maintenance(self, job: str) -> MaintenanceReport:
        """Run the daily or weekly maintenance job."""
        if job == JOB_DAILY:
            return await run_daily_maintenance(self)
        if job == JOB_WEEKLY:
            return await run_weekly_maintenance(self, self._clock())
        raise ValueError(f"Unknown maintenance job {job!r}; expected one of: {', '.join(JOBS)}")

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------

    def health(self) -> dict:
        return {
            "metrics": self.monitor.metrics(),
            "alerts": self.monitor.check_thresholds(),
            "coalescer": self.coalescer.stats(),
            "breaker_state": self.breaker.state,
            "background_pending": self.refresher.pending,
        }

    async def stats(self) -> dict:
        """Store-level counts: vectors, interactions, posts, active users and vector age."""
        now = self._clock()
        store = self.vectors.vector_store
        ages = []
        for user_id in await store.user_ids():
            vector = await store.get(user_id)
            if vector is not None:
                ages.append(hours_since(vector.metadata.last_updated, now))
        interaction_types = await self.interaction_store.type_counts()
        return {
            "total_vectors": len(ages),
            "total_interactions": sum(interaction_types.values()),
            "total_posts": await self.content_store.count(),
            "active_users_24h": len(await self.interaction_store.active_user_ids(1)),
            "avg_vector_age_hours": sum(ages) / len(ages) if ages else 0.0,
            "interaction_types": interaction_types,
        }

    async def drain(self) -> None:
        """Wait for background vector refreshes to finish."""
        await self.refresher.drain()
