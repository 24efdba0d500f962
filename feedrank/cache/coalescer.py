"""
Request coalescer (single-flight) for cache-stampede protection.

Concurrent callers asking for the same key share one computation: the first
caller starts an asyncio.Task, later callers await the same task. Waiters are
shielded so an abandoning caller never cancels work others depend on. The
in-flight entry is cleared when the task finishes, successfully or not.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from ..models.user import FeedFilters

logger = logging.getLogger(__name__)

T = TypeVar("T")


def feed_cache_key(
    user_id: str,
    page: int,
    page_size: int,
    filters: Optional[FeedFilters] = None,
) -> str:
    """Deterministic key for one feed page (user + pagination + filters)."""
    filters = filters or FeedFilters()
    return f"feed:{user_id}:{page}:{page_size}:{filters.cache_fragment()}"


def _consume_result(task: asyncio.Task) -> None:
    # Mark the exception retrieved when every waiter has gone away.
    if not task.cancelled():
        task.exception()


class RequestCoalescer:
    def __init__(self, stampede_threshold: int = 10, monitor=None):
        self.stampede_threshold = stampede_threshold
        self.monitor = monitor
        self._inflight: Dict[str, asyncio.Task] = {}
        self._waiters: Dict[str, int] = {}

    async def get_or_compute(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        """
        Return compute()'s result, running it at most once per key at a time.

        Check and insert happen with no await in between, so two callers on the
        same loop can never both start a computation for one key.
        """
        task = self._inflight.get(key)
        if task is not None:
            count = self._waiters.get(key, 0) + 1
            self._waiters[key] = count
            if count > self.stampede_threshold:
                logger.warning("[coalescer] STAMPEDE key=%s waiters=%d", key, count)
                if self.monitor is not None:
                    self.monitor.record_stampede()
            else:
                logger.debug("[coalescer] JOIN key=%s waiters=%d", key, count)
            return await asyncio.shield(task)

        task = asyncio.get_running_loop().create_task(self._run(key, compute))
        task.add_done_callback(_consume_result)
        self._inflight[key] = task
        self._waiters[key] = 1
        return await asyncio.shield(task)

    async def _run(self, key: str, compute: Callable[[], Awaitable[T]]) -> T:
        try:
            return await compute()
        finally:
            self._inflight.pop(key, None)
            self._waiters.pop(key, None)

    def stats(self) -> Dict[str, int]:
        return {
            "active_computes": len(self._inflight),
            "max_waiters": max(self._waiters.values(), default=0),
        }
