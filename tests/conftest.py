"""
Shared fixtures for the feedrank test suite.

Factories build models relative to a pinned `now` so ages (hours/days since
creation) are exact. Store fixtures hold fresh in-memory state per test.
"""

import random
from datetime import timedelta

import pytest

from feedrank.models.content import ContentCandidate
from feedrank.models.interaction import Interaction, InteractionType
from feedrank.models.user import UserProfile
from feedrank.services import InMemoryContentStore, InMemoryInteractionStore, InMemoryUserStore
from feedrank.stages.orchestrator import FeedEngine
from feedrank.utils.clock import utc_now

LONG_BODY = (
    "A worked explanation with enough detail to clear the minimum content length "
    "used by the quality gate."
)


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def make_candidate(now):
    """Candidate that passes the default quality gate unless overridden."""

    def _make(content_id, **overrides):
        fields = {
            "id": content_id,
            "author_id": "author_1",
            "created_at": now - timedelta(days=2),
            "subject": "physics",
            "grade": "10th Grade",
            "country": "NG",
            "language": "en",
            "like_count": 20,
            "dislike_count": 1,
            "comment_count": 3,
            "share_count": 1,
            "title": "Study notes",
            "body": LONG_BODY,
        }
        fields.update(overrides)
        return ContentCandidate(**fields)

    return _make


@pytest.fixture
def make_profile(now):
    def _make(user_id, age_days=120, total_interactions=80, **overrides):
        fields = {
            "id": user_id,
            "created_at": now - timedelta(days=age_days),
            "grade": "10th Grade",
            "country": "NG",
            "language": "en",
            "total_interactions": total_interactions,
        }
        fields.update(overrides)
        return UserProfile(**fields)

    return _make


@pytest.fixture
def make_interactions(now):
    """N interactions on one subject, spaced an hour apart starting an hour ago."""

    def _make(user_id, subject, count, interaction_type=InteractionType.LIKE, days_ago=0, grade="10th Grade"):
        start = now - timedelta(days=days_ago, hours=1)
        return [
            Interaction(
                user_id=user_id,
                content_id=f"{subject}_{days_ago}_{i}",
                interaction_type=interaction_type,
                subject=subject,
                grade=grade,
                created_at=start - timedelta(hours=i),
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def content_store():
    return InMemoryContentStore()


@pytest.fixture
def interaction_store():
    return InMemoryInteractionStore()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def seeded_engine(content_store, interaction_store, user_store, make_candidate, make_profile, make_interactions, now):
    """
    FeedEngine over a small classroom: a brand-new 10th grader, a mature
    physics-heavy user, two mature peers and twelve posts.
    """
    subjects = ["physics", "math", "chemistry", "literature"]
    grades = ["10th Grade", "General", None]
    for i in range(12):
        content_store.add(
            make_candidate(
                f"c{i:02d}",
                subject=subjects[i % len(subjects)],
                grade=grades[i % len(grades)],
                country="NG" if i % 2 == 0 else None,
                created_at=now - timedelta(days=2 + i),
                like_count=10 + i * 3,
            )
        )

    user_store.add(make_profile("u_new", age_days=2, total_interactions=3))
    user_store.add(make_profile("u_mature", age_days=400, total_interactions=120))
    user_store.add(make_profile("peer_1", age_days=200, total_interactions=100))
    user_store.add(make_profile("peer_2", age_days=200, total_interactions=100))

    interaction_store.add_many(make_interactions("u_new", "literature", 3))
    interaction_store.add_many(make_interactions("u_mature", "physics", 8))
    interaction_store.add_many(make_interactions("u_mature", "math", 3, InteractionType.COMMENT))
    for peer in ("peer_1", "peer_2"):
        interaction_store.add_many(make_interactions(peer, "physics", 6))
        interaction_store.add_many(
            [
                Interaction(user_id=peer, content_id="c01", interaction_type=InteractionType.ECHO),
                Interaction(user_id=peer, content_id="c05", interaction_type=InteractionType.SHARE),
            ]
        )

    return FeedEngine(content_store, interaction_store, user_store, rng=random.Random(7))
