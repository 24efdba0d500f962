"""
Candidate pool: bounded, pre-filtered candidate fetch for one feed request.

Filters: visibility, own posts, grade (user grade, General, ungraded), subject,
and a probabilistic country pre-filter that keeps local, same-language and
global content and a sample of foreign content. Over-fetches so that
post-filtering and diversity injection still fill the requested page.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import List, Optional

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.content import ContentCandidate
from ..models.user import FeedFilters, UserProfile
from ..services.content_store import CandidateQuery, ContentStore
from ..signals.country import should_include_content
from ..utils.clock import utc_now

logger = logging.getLogger(__name__)


def allowed_grades(profile: UserProfile, filters: FeedFilters) -> Optional[List[Optional[str]]]:
    """Grade filter for the query, or None when grade filtering is off or the grade is unknown."""
    grade = filters.grade or profile.grade
    if not filters.filter_by_grade or not grade:
        return None
    return [grade, "General", None]


def candidate_query(
    profile: UserProfile,
    page: int,
    page_size: int,
    filters: FeedFilters,
    config: RankingConfig = DEFAULT_CONFIG,
) -> CandidateQuery:
    return CandidateQuery(
        exclude_author_id=profile.id,
        allowed_grades=allowed_grades(profile, filters),
        subject=filters.subject,
        order_by="recent",
        limit=page * page_size * config.overfetch_factor,
    )


async def get_candidate_pool(
    content_store: ContentStore,
    profile: UserProfile,
    page: int,
    page_size: int,
    filters: Optional[FeedFilters] = None,
    config: RankingConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> List[ContentCandidate]:
    filters = filters or FeedFilters()
    query = candidate_query(profile, page, page_size, filters, config)
    fetched = await content_store.fetch_candidates(query)
    pool = [
        c for c in fetched
        if should_include_content(
            profile.country,
            profile.language,
            c.country,
            c.language,
            profile.prefer_local_content,
            config.foreign_content_ratio,
            rng,
        )
    ]
    logger.debug(
        "[candidate_pool] FETCHED user=%s fetched=%d kept=%d limit=%d",
        profile.id, len(fetched), len(pool), query.limit,
    )
    return pool


async def get_serendipity_pool(
    content_store: ContentStore,
    profile: UserProfile,
    exclude_ids: List[str],
    count: int,
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> List[ContentCandidate]:
    """Recent public content outside the scored list (quality is checked by the injector)."""
    if count <= 0:
        return []
    since = (now or utc_now()) - timedelta(days=config.serendipity_window_days)
    query = CandidateQuery(
        exclude_author_id=profile.id,
        exclude_ids=set(exclude_ids),
        created_after=since,
        order_by="recent",
        limit=count * 3,
    )
    return await content_store.fetch_candidates(query)
