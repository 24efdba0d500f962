"""
Fallback feeds and the circuit breaker guarding the hybrid pipeline.

Tier 1 is the full hybrid pipeline; tier 2 a simplified popularity feed
(likes, then recency); tier 3 a chronological feed that only needs the
content store. After repeated hybrid failures the breaker opens and requests go
straight to the simplified tier until the reset timeout passes.
"""

import logging
import time
from typing import List, Optional

from ..models.user import UserProfile
from ..services.content_store import CandidateQuery, ContentStore

logger = logging.getLogger(__name__)

STATE_CLOSED = "CLOSED"
STATE_OPEN = "OPEN"
STATE_HALF_OPEN = "HALF_OPEN"


class AlgorithmCircuitBreaker:
    def __init__(self, failure_threshold: int = 5, reset_seconds: float = 60.0, clock=time.monotonic):
        self.failure_threshold = failure_threshold
        self.reset_seconds = reset_seconds
        self._clock = clock
        self.failure_count = 0
        self.last_failure_time = 0.0
        self.state = STATE_CLOSED

    def allow_request(self) -> bool:
        """False while open; moves to half-open once the reset timeout has passed."""
        if self.state == STATE_OPEN:
            if self._clock() - self.last_failure_time > self.reset_seconds:
                self.state = STATE_HALF_OPEN
                logger.info("[breaker] HALF_OPEN")
                return True
            return False
        return True

    def record_success(self) -> None:
        if self.state != STATE_CLOSED:
            logger.info("[breaker] CLOSED")
        self.failure_count = 0
        self.state = STATE_CLOSED

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = self._clock()
        if self.state == STATE_HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != STATE_OPEN:
                logger.warning("[breaker] OPEN failures=%d", self.failure_count)
            self.state = STATE_OPEN


async def simplified_feed(
    content_store: ContentStore,
    user_id: str,
    profile: Optional[UserProfile],
    page: int,
    page_size: int,
) -> List[str]:
    """Most-liked first, then newest; grade-filtered when the user's grade is known."""
    grades = None
    if profile is not None and profile.grade:
        grades = [profile.grade, "General", None]
    query = CandidateQuery(
        exclude_author_id=user_id,
        allowed_grades=grades,
        order_by="popular",
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return [c.id for c in await content_store.fetch_candidates(query)]


async def chronological_feed(
    content_store: ContentStore,
    user_id: str,
    page: int,
    page_size: int,
) -> List[str]:
    """Newest public content not authored by the user."""
    query = CandidateQuery(
        exclude_author_id=user_id,
        order_by="recent",
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return [c.id for c in await content_store.fetch_candidates(query)]
