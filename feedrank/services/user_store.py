"""
User store abstraction.

Resolves the requesting user's profile and the population of candidate peers
for collaborative filtering. Peer rows carry id/age/activity only; peer vectors
are fetched lazily through the stable vector cache.
"""

from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Protocol

from ..models.user import PeerSummary, UserProfile
from ..utils.clock import ensure_utc, utc_now


class UserStore(Protocol):
    """Protocol for user profile reads and updates."""

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the profile, or None when the user does not exist."""
        ...

    async def mature_peers(
        self,
        user_id: str,
        min_account_age_days: float,
        min_interactions: int,
    ) -> List[PeerSummary]:
        """Peers (excluding user_id) old and active enough to act as neighbours."""
        ...

    async def increment_interactions(self, user_id: str) -> None:
        """Bump the user's total interaction counter. No-op for unknown users."""
        ...

    async def update_grade(self, user_id: str, grade: str) -> Optional[UserProfile]:
        """Set the profile grade. Returns the updated profile, or None for unknown users."""
        ...


class InMemoryUserStore:
    """User profiles held in process memory."""

    def __init__(self, profiles: Optional[Iterable[UserProfile]] = None, clock=utc_now):
        self._profiles: Dict[str, UserProfile] = {}
        self._clock = clock
        for p in profiles or []:
            self.add(p)

    def add(self, profile: UserProfile) -> None:
        self._profiles[profile.id] = profile

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    async def mature_peers(
        self,
        user_id: str,
        min_account_age_days: float,
        min_interactions: int,
    ) -> List[PeerSummary]:
        cutoff = self._clock() - timedelta(days=min_account_age_days)
        return [
            PeerSummary(id=p.id, created_at=p.created_at, total_interactions=p.total_interactions)
            for p in self._profiles.values()
            if p.id != user_id
            and ensure_utc(p.created_at) <= cutoff
            and p.total_interactions >= min_interactions
        ]

    async def increment_interactions(self, user_id: str) -> None:
        profile = self._profiles.get(user_id)
        if profile is None:
            return
        self._profiles[user_id] = profile.model_copy(
            update={"total_interactions": profile.total_interactions + 1}
        )

    async def update_grade(self, user_id: str, grade: str) -> Optional[UserProfile]:
        profile = self._profiles.get(user_id)
        if profile is None:
            return None
        updated = profile.model_copy(update={"grade": grade})
        self._profiles[user_id] = updated
        return updated
