"""
Diversity Injector Tests

Adaptive bucket ratios, exploit/explore/serendipity split with backfill,
and subject spreading.
"""

import pytest

from feedrank.models.content import ScoredCandidate
from feedrank.models.vector import InterestVector
from feedrank.stages.diversity import (
    BUCKET_EXPLORE,
    BUCKET_SERENDIPITY,
    DiversityConfig,
    adaptive_diversity_config,
    inject_diversity,
    is_unexplored,
    spread_variety,
)


class TestAdaptiveConfig:
    def test_stuck_veteran_explores_more(self):
        config = adaptive_diversity_config(400, 0.2)
        assert (config.exploit_ratio, config.explore_ratio) == (0.65, 0.30)

    def test_new_account(self):
        config = adaptive_diversity_config(10, 0.9)
        assert (config.exploit_ratio, config.explore_ratio) == (0.70, 0.25)

    def test_default(self):
        config = adaptive_diversity_config(100, 0.5)
        assert (config.exploit_ratio, config.explore_ratio, config.serendipity_count) == (0.75, 0.20, 5)


class TestSpreadVariety:
    def test_avoids_back_to_back_subject(self, make_candidate):
        scored = [
            ScoredCandidate(candidate=make_candidate("p1", subject="physics"), final_score=0.9),
            ScoredCandidate(candidate=make_candidate("p2", subject="physics"), final_score=0.8),
            ScoredCandidate(candidate=make_candidate("m1", subject="math"), final_score=0.5),
        ]
        assert [s.id for s in spread_variety(scored)] == ["p1", "m1", "p2"]

    def test_single_subject_keeps_everything(self, make_candidate):
        scored = [
            ScoredCandidate(candidate=make_candidate(f"p{i}"), final_score=1.0 - i * 0.1) for i in range(4)
        ]
        assert [s.id for s in spread_variety(scored)] == ["p0", "p1", "p2", "p3"]


class TestInjectDiversity:
    @pytest.fixture(autouse=True)
    def setup(self, make_candidate, rng):
        self.make_candidate = make_candidate
        self.rng = rng
        self.vector = InterestVector(owner_id="u1", subjects={"physics": 1.0})
        self.config = DiversityConfig(exploit_ratio=0.7, explore_ratio=0.2, serendipity_count=1)

    def _scored(self, subjects):
        return [
            ScoredCandidate(
                candidate=self.make_candidate(f"c{i}", subject=subject),
                final_score=1.0 - i * 0.05,
            )
            for i, subject in enumerate(subjects)
        ]

    def test_buckets(self):
        scored = self._scored(["physics"] * 8 + ["art", "art"])
        pool = [
            self.make_candidate("lucky", subject="music", like_count=50, dislike_count=1),
            self.make_candidate("weak", subject="music", like_count=1, dislike_count=5),
        ]
        ranked = inject_diversity(scored, self.vector, self.config, pool, rng=self.rng)
        ids = [s.id for s in ranked]
        assert len(ids) == 10
        assert set(ids) == {f"c{i}" for i in range(7)} | {"c8", "c9", "lucky"}
        buckets = {s.id: s.bucket for s in ranked}
        assert buckets["lucky"] == BUCKET_SERENDIPITY
        assert buckets["c8"] == buckets["c9"] == BUCKET_EXPLORE

    def test_backfills_when_nothing_unexplored(self):
        scored = self._scored(["physics"] * 10)
        ranked = inject_diversity(scored, self.vector, self.config, [], rng=self.rng)
        assert sorted(s.id for s in ranked) == sorted(s.id for s in scored)

    def test_serendipity_never_repeats_ranked_items(self):
        scored = self._scored(["physics"] * 10)
        pool = [scored[0].candidate, scored[9].candidate]
        ranked = inject_diversity(scored, self.vector, self.config, pool, rng=self.rng)
        ids = [s.id for s in ranked]
        assert len(ids) == len(set(ids)) == 10

    def test_serendipity_skips_gate_failures(self):
        scored = self._scored(["physics"] * 10)
        pool = [
            self.make_candidate("reported", subject="music", like_count=60, report_count=50),
            self.make_candidate("fine", subject="music", like_count=60, dislike_count=1),
        ]
        ranked = inject_diversity(scored, self.vector, self.config, pool, rng=self.rng)
        ids = {s.id for s in ranked}
        assert "fine" in ids
        assert "reported" not in ids

    def test_is_unexplored(self):
        assert is_unexplored(self.make_candidate("c1", subject="art"), self.vector)
        assert not is_unexplored(self.make_candidate("c1", subject="physics"), self.vector)
        assert not is_unexplored(self.make_candidate("c1", subject=None), self.vector)
