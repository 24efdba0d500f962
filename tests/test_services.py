"""
Store and Dataset Tests

In-memory content/interaction/user stores, the fast and durable cache tiers,
and loading dataset folders from disk.
"""

import asyncio
import json
from datetime import timedelta
from pathlib import Path

import pytest

from feedrank.cache.tiers import InMemoryFastTier, RedisFastTier
from feedrank.cache.vector_store import JsonVectorStore
from feedrank.errors import DatasetError
from feedrank.models.interaction import Interaction, InteractionType
from feedrank.models.vector import InterestVector
from feedrank.services import CandidateQuery, DatasetLoader, InMemoryContentStore

DATASETS_DIR = Path(__file__).parent.parent / "data" / "datasets"


class TestContentStore:
    @pytest.fixture(autouse=True)
    def setup(self, make_candidate, now):
        self.store = InMemoryContentStore(
            [
                make_candidate("old_popular", created_at=now - timedelta(days=6), like_count=90),
                make_candidate("new_quiet", created_at=now - timedelta(days=1), like_count=3),
                make_candidate("mine", author_id="u1", created_at=now - timedelta(hours=30)),
                make_candidate("private", is_public=False),
                make_candidate("ungraded", grade=None, subject="math", created_at=now - timedelta(days=3)),
                make_candidate("senior", grade="12th Grade", created_at=now - timedelta(days=4)),
            ]
        )

    def _fetch(self, **kwargs):
        return [c.id for c in asyncio.run(self.store.fetch_candidates(CandidateQuery(**kwargs)))]

    def test_recent_order_excludes_own_and_private(self):
        ids = self._fetch(exclude_author_id="u1")
        assert ids[0] == "new_quiet"
        assert "mine" not in ids and "private" not in ids

    def test_popular_order(self):
        assert self._fetch(order_by="popular", limit=1) == ["old_popular"]

    def test_grade_filter_matches_ungraded(self):
        ids = self._fetch(allowed_grades=["10th Grade", "General", None])
        assert "ungraded" in ids
        assert "senior" not in ids

    def test_subject_and_offset(self):
        assert self._fetch(subject="math") == ["ungraded"]
        all_ids = self._fetch()
        assert self._fetch(offset=2, limit=2) == all_ids[2:4]

    def test_count(self):
        assert asyncio.run(self.store.count()) == 6


class TestInteractionStore:
    def test_window_bounds_and_order(self, interaction_store, make_interactions):
        interaction_store.add_many(make_interactions("u1", "physics", 3))
        interaction_store.add_many(make_interactions("u1", "history", 2, days_ago=45))
        recent = asyncio.run(interaction_store.interactions_between("u1", 0, 30))
        older = asyncio.run(interaction_store.interactions_between("u1", 30, 90))
        assert [i.subject for i in recent] == ["physics"] * 3
        assert recent[0].created_at > recent[-1].created_at
        assert [i.subject for i in older] == ["history"] * 2

    def test_latest_weight(self, interaction_store, now):
        async def scenario():
            await interaction_store.append(
                Interaction(
                    user_id="u1",
                    content_id="c1",
                    interaction_type=InteractionType.VIEW,
                    created_at=now - timedelta(hours=2),
                )
            )
            await interaction_store.append(
                Interaction(
                    user_id="u1",
                    content_id="c1",
                    interaction_type=InteractionType.SHARE,
                    created_at=now - timedelta(hours=1),
                )
            )
            return (
                await interaction_store.latest_weight("u1", "c1"),
                await interaction_store.latest_weight("u1", "c2"),
            )

        assert asyncio.run(scenario()) == (7, None)

    def test_retention_and_activity(self, interaction_store, make_interactions):
        interaction_store.add_many(make_interactions("u1", "physics", 3))
        interaction_store.add_many(make_interactions("u1", "history", 2, days_ago=100))
        interaction_store.add_many(make_interactions("u2", "math", 2, InteractionType.COMMENT, days_ago=100))

        async def scenario():
            active = await interaction_store.active_user_ids(7)
            deleted = await interaction_store.delete_older_than(90)
            return active, deleted, await interaction_store.type_counts()

        active, deleted, counts = asyncio.run(scenario())
        assert active == ["u1"]
        assert deleted == 4
        assert counts == {"LIKE": 3}
        assert interaction_store.count_for_user("u2") == 0


class TestUserStore:
    def test_mature_peers(self, user_store, make_profile):
        user_store.add(make_profile("me", age_days=400, total_interactions=200))
        user_store.add(make_profile("veteran", age_days=90, total_interactions=60))
        user_store.add(make_profile("newbie", age_days=3, total_interactions=60))
        user_store.add(make_profile("lurker", age_days=300, total_interactions=4))
        peers = asyncio.run(user_store.mature_peers("me", 30, 50))
        assert [p.id for p in peers] == ["veteran"]

    def test_increment_interactions(self, user_store, make_profile):
        user_store.add(make_profile("me", total_interactions=5))

        async def scenario():
            await user_store.increment_interactions("me")
            await user_store.increment_interactions("nobody")
            return await user_store.get_profile("me")

        assert asyncio.run(scenario()).total_interactions == 6

    def test_update_grade(self, user_store, make_profile):
        user_store.add(make_profile("me", grade="10th Grade"))

        async def scenario():
            updated = await user_store.update_grade("me", "11th Grade")
            missing = await user_store.update_grade("nobody", "11th Grade")
            return updated, missing, await user_store.get_profile("me")

        updated, missing, stored = asyncio.run(scenario())
        assert updated.grade == "11th Grade"
        assert missing is None
        assert stored.grade == "11th Grade"


class TestCacheTiers:
    def test_fast_tier_expiry_and_prefix_delete(self):
        ticks = [100.0]
        tier = InMemoryFastTier(clock=lambda: ticks[0])

        async def scenario():
            await tier.set("feed:u1:1", "a", 10)
            await tier.set("feed:u1:2", "b", 100)
            await tier.set("feed:u2:1", "c", 100)
            ticks[0] = 111.0
            expired = await tier.get("feed:u1:1")
            removed = await tier.delete_prefix("feed:u1:")
            return expired, removed, await tier.get("feed:u2:1")

        assert asyncio.run(scenario()) == (None, 1, "c")

    def test_redis_errors_degrade_to_miss(self):
        class DownClient:
            async def get(self, key):
                raise ConnectionError("refused")

            async def set(self, key, value, ex=None):
                raise ConnectionError("refused")

            async def ping(self):
                raise ConnectionError("refused")

        tier = RedisFastTier(DownClient())

        async def scenario():
            await tier.set("vector:u1", "{}", 60)
            return await tier.get("vector:u1"), await tier.ping()

        assert asyncio.run(scenario()) == (None, False)

    def test_json_vector_store(self, tmp_path):
        store = JsonVectorStore(tmp_path / "vectors")
        vector = InterestVector(owner_id="user/1", subjects={"physics": 1.0})

        async def scenario():
            await store.put("user/1", vector)
            loaded = await store.get("user/1")
            await store.delete("user/1")
            return loaded, await store.get("user/1")

        loaded, deleted = asyncio.run(scenario())
        assert loaded.subjects == {"physics": 1.0}
        assert deleted is None
        assert store.count() == 0

    def test_json_vector_store_ids_do_not_collide(self, tmp_path):
        store = JsonVectorStore(tmp_path / "vectors")

        async def scenario():
            await store.put("a.b", InterestVector(owner_id="a.b", subjects={"physics": 1.0}))
            await store.put("x/y", InterestVector(owner_id="x/y", subjects={"math": 1.0}))
            return await store.get("a_b"), await store.get("x_y"), await store.user_ids()

        dotted, slashed, ids = asyncio.run(scenario())
        assert dotted is None
        assert slashed is None
        assert sorted(ids) == ["a.b", "x/y"]
        assert store.count() == 2


class TestDatasetLoader:
    def _write(self, folder, name, data):
        folder.mkdir(parents=True, exist_ok=True)
        (folder / name).write_text(json.dumps(data))

    def test_load_from_folder(self, tmp_path):
        folder = tmp_path / "tiny"
        self._write(folder, "manifest.json", {"name": "Tiny", "version": "0.1"})
        self._write(folder, "users.json", [{"id": "u1", "created_at": "2026-01-01T00:00:00Z"}])
        self._write(
            folder,
            "content.json",
            {"items": [{"id": "c1", "author_id": "u2", "created_at": "2026-01-02T00:00:00Z"}]},
        )
        loader = DatasetLoader(tmp_path)
        assert [d["folder_name"] for d in loader.list_datasets()] == ["tiny"]

        dataset = loader.load_dataset("tiny")
        assert dataset.manifest.name == "Tiny"
        assert len(dataset.content_store) == 1
        assert asyncio.run(dataset.user_store.get_profile("u1")) is not None
        assert loader.load_dataset("tiny") is dataset

    def test_missing_folder_or_file(self, tmp_path):
        loader = DatasetLoader(tmp_path)
        with pytest.raises(DatasetError):
            loader.load_dataset("nope")
        self._write(tmp_path / "partial", "manifest.json", {"name": "Partial"})
        with pytest.raises(DatasetError):
            loader.load_dataset("partial")

    def test_bundled_sample_dataset(self):
        dataset = DatasetLoader(DATASETS_DIR).load_dataset("sample")
        assert len(dataset.content_store) == 6
        assert dataset.interaction_store.count_for_user("u_amina") == 5
