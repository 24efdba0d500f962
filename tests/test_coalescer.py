"""
Request Coalescer Tests

Concurrent callers on one key share a single computation; failures reach
every waiter and clear the in-flight entry.
"""

import asyncio

import pytest

from feedrank.cache.coalescer import RequestCoalescer, feed_cache_key
from feedrank.models.user import FeedFilters
from feedrank.monitoring import HealthMonitor


class TestRequestCoalescer:
    def test_concurrent_callers_share_one_computation(self):
        calls = []

        async def compute():
            calls.append(1)
            await asyncio.sleep(0.01)
            return {"content_ids": ["c1", "c2"]}

        async def scenario():
            coalescer = RequestCoalescer()
            results = await asyncio.gather(*(coalescer.get_or_compute("k", compute) for _ in range(5)))
            return results, coalescer.stats()

        results, stats = asyncio.run(scenario())
        assert len(calls) == 1
        assert all(r is results[0] for r in results)
        assert stats == {"active_computes": 0, "max_waiters": 0}

    def test_failure_reaches_every_waiter_and_clears_entry(self):
        calls = []

        async def failing():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise ValueError("ranking failed")

        async def succeeding():
            calls.append(1)
            return "ok"

        async def scenario():
            coalescer = RequestCoalescer()
            results = await asyncio.gather(
                *(coalescer.get_or_compute("k", failing) for _ in range(3)), return_exceptions=True
            )
            retry = await coalescer.get_or_compute("k", succeeding)
            return results, retry

        results, retry = asyncio.run(scenario())
        assert all(isinstance(r, ValueError) for r in results)
        assert retry == "ok"
        assert len(calls) == 2

    def test_distinct_keys_compute_separately(self):
        calls = []

        async def compute():
            calls.append(1)
            await asyncio.sleep(0.01)
            return len(calls)

        async def scenario():
            coalescer = RequestCoalescer()
            return await asyncio.gather(
                coalescer.get_or_compute("a", compute),
                coalescer.get_or_compute("b", compute),
            )

        asyncio.run(scenario())
        assert len(calls) == 2

    def test_stampede_recorded_above_threshold(self):
        monitor = HealthMonitor()

        async def compute():
            await asyncio.sleep(0.01)
            return 1

        async def scenario():
            coalescer = RequestCoalescer(stampede_threshold=2, monitor=monitor)
            await asyncio.gather(*(coalescer.get_or_compute("k", compute) for _ in range(5)))

        asyncio.run(scenario())
        assert monitor.stampede_count == 3


class TestFeedCacheKey:
    def test_key_includes_pagination_and_filters(self):
        key = feed_cache_key("u1", 2, 20, FeedFilters(grade="10th Grade", subject="physics"))
        assert key == "feed:u1:2:20:True:10th Grade:physics"

    def test_default_filters(self):
        assert feed_cache_key("u1", 1, 20) == "feed:u1:1:20:True:any:all"

    @pytest.mark.parametrize("page, size", [(1, 10), (2, 20)])
    def test_keys_share_user_prefix(self, page, size):
        assert feed_cache_key("u1", page, size).startswith("feed:u1:")
