"""
Feed Orchestrator Tests

End-to-end ranking through FeedEngine: cold-start users, mature users with
collaborative neighbours, caching and coalescing, the fallback tiers,
interaction recording, grade transitions and drift handling.
"""

import asyncio
from datetime import timedelta

import pytest

from feedrank.cache.coalescer import feed_cache_key
from feedrank.cache.tiers import TIER_DEFAULT
from feedrank.errors import UserNotFoundError
from feedrank.models.interaction import InteractionType
from feedrank.services import InMemoryContentStore, InMemoryInteractionStore
from feedrank.stages.candidate_pool import get_candidate_pool
from feedrank.stages.cold_start import GRADE_DEFAULT_SUBJECTS, select_weights
from feedrank.stages.fallback import STATE_OPEN
from feedrank.stages.orchestrator import FeedEngine


class PopularDownContentStore(InMemoryContentStore):
    """Content store whose popularity query is broken."""

    async def fetch_candidates(self, query):
        if query.order_by == "popular":
            raise ConnectionError("popular index unavailable")
        return await super().fetch_candidates(query)


class BrokenInteractionStore(InMemoryInteractionStore):
    async def append(self, interaction):
        raise ConnectionError("interaction log unavailable")


class TestNewUser:
    def test_cold_start_feed(self, seeded_engine, user_store, now):
        profile = asyncio.run(user_store.get_profile("u_new"))
        weights = select_weights(profile, seeded_engine.config, now)
        assert weights == seeded_engine.config.weights_new

        entry = asyncio.run(seeded_engine.vectors.get_entry("u_new", profile.grade))
        assert entry.tier == TIER_DEFAULT
        assert entry.value.subjects == GRADE_DEFAULT_SUBJECTS["10th Grade"]

        result = asyncio.run(seeded_engine.rank_feed_detailed("u_new", 1, 20))
        assert result.algorithm == "hybrid"
        assert result.content_ids
        assert len(result.content_ids) == len(set(result.content_ids))

    def test_pages_do_not_exceed_page_size(self, seeded_engine):
        ids = asyncio.run(seeded_engine.rank_feed("u_new", 1, 3))
        assert 0 < len(ids) <= 3

    def test_grade_filter(self, seeded_engine, content_store):
        ids = asyncio.run(seeded_engine.rank_feed("u_new", 1, 20))
        for content_id in ids:
            assert content_store.get(content_id).grade in ("10th Grade", "General", None)

    def test_gate_failed_post_never_served(self, seeded_engine, content_store, make_candidate, now):
        content_store.add(
            make_candidate(
                "spam",
                created_at=now - timedelta(days=1, hours=1),
                like_count=90,
                report_count=50,
                body="Click here for free exam answers " * 3,
            )
        )
        ids = asyncio.run(seeded_engine.rank_feed("u_new", 1, 20))
        assert ids
        assert "spam" not in ids


class TestMatureUser:
    def test_hybrid_feed_with_neighbours(self, seeded_engine):
        async def scenario():
            for peer in ("peer_1", "peer_2"):
                await seeded_engine.vectors.force_recompute(peer)
            return await seeded_engine.rank_feed_detailed("u_mature", 1, 10)

        result = asyncio.run(scenario())
        assert result.algorithm == "hybrid"
        assert result.content_ids
        assert seeded_engine.breaker.state == "CLOSED"
        assert seeded_engine.monitor.metrics()["avg_calculation_ms"] > 0

    def test_unknown_user_gets_chronological_feed(self, seeded_engine):
        result = asyncio.run(seeded_engine.rank_feed_detailed("stranger", 1, 3))
        assert result.algorithm == "chronological"
        assert result.content_ids == ["c00", "c01", "c02"]

    def test_invalid_page_rejected(self, seeded_engine):
        with pytest.raises(ValueError):
            asyncio.run(seeded_engine.rank_feed("u_new", 0, 20))


class TestCachingAndCoalescing:
    def test_feed_cached_after_hybrid_run(self, seeded_engine):
        async def scenario():
            first = await seeded_engine.rank_feed("u_new", 1, 20)
            cached = await seeded_engine.fast_tier.get(feed_cache_key("u_new", 1, 20))
            second = await seeded_engine.rank_feed("u_new", 1, 20)
            return first, cached, second

        first, cached, second = asyncio.run(scenario())
        assert cached is not None
        assert first == second

    def test_concurrent_requests_rank_once(self, seeded_engine, monkeypatch):
        calls = []
        original = seeded_engine._hybrid_feed

        async def counting(*args, **kwargs):
            calls.append(1)
            await asyncio.sleep(0.01)
            return await original(*args, **kwargs)

        monkeypatch.setattr(seeded_engine, "_hybrid_feed", counting)

        async def scenario():
            return await asyncio.gather(*(seeded_engine.rank_feed("u_new", 1, 20) for _ in range(5)))

        results = asyncio.run(scenario())
        assert len(calls) == 1
        assert all(r == results[0] for r in results)


class TestFallback:
    def test_breaker_opens_after_repeated_failures(self, seeded_engine, monkeypatch):
        calls = []

        async def failing(*args, **kwargs):
            calls.append(1)
            raise RuntimeError("scoring exploded")

        monkeypatch.setattr(seeded_engine, "_hybrid_feed", failing)

        async def scenario():
            return [await seeded_engine.rank_feed_detailed("u_new", 1, 5) for _ in range(6)]

        results = asyncio.run(scenario())
        assert {r.algorithm for r in results} == {"simplified"}
        assert seeded_engine.breaker.state == STATE_OPEN
        assert len(calls) == 5
        assert results[-1].content_ids

    def test_chronological_when_simplified_fails(self, user_store, interaction_store, make_candidate, make_profile, monkeypatch):
        store = PopularDownContentStore([make_candidate("c1"), make_candidate("c2")])
        user_store.add(make_profile("u1"))
        engine = FeedEngine(store, interaction_store, user_store)

        async def failing(*args, **kwargs):
            raise RuntimeError("scoring exploded")

        monkeypatch.setattr(engine, "_hybrid_feed", failing)
        result = asyncio.run(engine.rank_feed_detailed("u1", 1, 10))
        assert result.algorithm == "chronological"
        assert sorted(result.content_ids) == ["c1", "c2"]


class TestInteractions:
    def test_record_interaction_updates_log_and_counter(self, seeded_engine, interaction_store, user_store):
        async def scenario():
            await seeded_engine.record_interaction(
                "u_new", "c01", "post", InteractionType.LIKE, subject="math", grade="General"
            )
            return await user_store.get_profile("u_new")

        profile = asyncio.run(scenario())
        assert profile.total_interactions == 4
        assert interaction_store.count_for_user("u_new") == 4

    def test_record_interaction_never_raises(self, user_store, content_store, make_profile, caplog):
        user_store.add(make_profile("u1"))
        engine = FeedEngine(content_store, BrokenInteractionStore(), user_store)
        asyncio.run(engine.record_interaction("u1", "c1", "post", InteractionType.VIEW))
        assert "RECORD_FAILED" in caplog.text


class TestGradeTransitionAndDrift:
    def test_grade_transition_resets_grades_and_drops_cached_feed(self, seeded_engine):
        key = feed_cache_key("u_mature", 1, 10)

        async def scenario():
            before = await seeded_engine.vectors.get_vector("u_mature", "10th Grade")
            await seeded_engine.rank_feed("u_mature", 1, 10)
            cached = await seeded_engine.fast_tier.get(key)
            vector = await seeded_engine.on_grade_transition("u_mature", "10th Grade", "11th Grade")
            after = await seeded_engine.fast_tier.get(key)
            stored = await seeded_engine.vectors.get_vector("u_mature")
            return before, cached, vector, after, stored

        before, cached, vector, after, stored = asyncio.run(scenario())
        assert cached is not None
        assert after is None
        assert vector.subjects == before.subjects
        assert vector.grades == {"11th Grade": 1.0, "10th Grade": 0.3}
        assert stored.grades == vector.grades

    def test_grade_transition_unknown_user(self, seeded_engine):
        with pytest.raises(UserNotFoundError):
            asyncio.run(seeded_engine.on_grade_transition("stranger", "9th Grade", "10th Grade"))

    def test_grade_transition_updates_profile_and_next_feed(self, seeded_engine, user_store, content_store):
        async def scenario():
            await seeded_engine.on_grade_transition("u_mature", "10th Grade", "11th Grade")
            profile = await user_store.get_profile("u_mature")
            pool = await get_candidate_pool(content_store, profile, 1, 20, config=seeded_engine.config)
            ids = await seeded_engine.rank_feed("u_mature", 1, 20)
            return profile, pool, ids

        profile, pool, ids = asyncio.run(scenario())
        assert profile.grade == "11th Grade"
        assert pool
        assert all(c.grade in ("General", None) for c in pool)
        assert ids

    def test_drift_check_unknown_user(self, seeded_engine):
        async def scenario():
            with pytest.raises(UserNotFoundError):
                await seeded_engine.check_drift("ghost_user")
            return await seeded_engine.vectors.vector_store.get("ghost_user")

        assert asyncio.run(scenario()) is None
        assert seeded_engine.monitor.drift_rate == 0.0

    def test_drift_triggers_recompute(self, seeded_engine, interaction_store, make_interactions):
        interaction_store.add_many(make_interactions("u_mature", "history", 10, days_ago=45))

        async def scenario():
            analysis = await seeded_engine.check_drift("u_mature")
            return analysis, await seeded_engine.vectors.vector_store.get("u_mature")

        analysis, stored = asyncio.run(scenario())
        assert analysis.has_drift
        assert stored is not None
        assert "physics" in stored.subjects
        assert seeded_engine.monitor.drift_rate == pytest.approx(0.1)

    def test_health_report(self, seeded_engine):
        asyncio.run(seeded_engine.rank_feed("u_new", 1, 5))
        report = seeded_engine.health()
        assert report["breaker_state"] == "CLOSED"
        assert report["coalescer"]["active_computes"] == 0
        assert isinstance(report["alerts"], list)
