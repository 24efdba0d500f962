"""
Interaction store abstraction.

Append-only event log of user interactions. The engine appends through
record_interaction and reads windows for vector building, drift detection and
collaborative prediction. Implementations: in-memory (tests, local runs).
"""

import asyncio
from datetime import timedelta
from typing import Dict, List, Optional, Protocol

from ..models.interaction import Interaction
from ..utils.clock import ensure_utc, utc_now


class InteractionStore(Protocol):
    """Protocol for interaction read/append."""

    async def append(self, interaction: Interaction) -> None:
        """Persist one interaction. Never mutates existing events."""
        ...

    async def interactions_between(
        self,
        user_id: str,
        min_age_days: float,
        max_age_days: float,
    ) -> List[Interaction]:
        """Interactions with now - max_age_days < created_at <= now - min_age_days, newest first."""
        ...

    async def latest_weight(self, user_id: str, content_id: str) -> Optional[int]:
        """Weight of the user's most recent interaction with content_id, or None."""
        ...

    async def active_user_ids(self, max_age_days: float) -> List[str]:
        """Users with at least one interaction in the last max_age_days."""
        ...

    async def delete_older_than(self, max_age_days: float) -> int:
        """Drop interactions older than max_age_days; returns how many were removed."""
        ...

    async def type_counts(self) -> Dict[str, int]:
        """Interaction count per interaction type."""
        ...


class InMemoryInteractionStore:
    """Interaction log held in process memory."""

    def __init__(self, clock=utc_now):
        self._by_user: Dict[str, List[Interaction]] = {}
        self._clock = clock
        self._lock = asyncio.Lock()

    async def append(self, interaction: Interaction) -> None:
        async with self._lock:
            self._by_user.setdefault(interaction.user_id, []).append(interaction)

    def add_many(self, interactions: List[Interaction]) -> None:
        """Synchronous bulk load (fixtures, dataset loading)."""
        for i in interactions:
            self._by_user.setdefault(i.user_id, []).append(i)

    def count_for_user(self, user_id: str) -> int:
        return len(self._by_user.get(user_id, []))

    async def interactions_between(
        self,
        user_id: str,
        min_age_days: float,
        max_age_days: float,
    ) -> List[Interaction]:
        now = self._clock()
        newest = now - timedelta(days=min_age_days)
        oldest = now - timedelta(days=max_age_days)
        rows = [
            i for i in self._by_user.get(user_id, [])
            if oldest < ensure_utc(i.created_at) <= newest
        ]
        rows.sort(key=lambda i: ensure_utc(i.created_at), reverse=True)
        return rows

    async def latest_weight(self, user_id: str, content_id: str) -> Optional[int]:
        latest: Optional[Interaction] = None
        for i in self._by_user.get(user_id, []):
            if i.content_id != content_id:
                continue
            if latest is None or ensure_utc(i.created_at) > ensure_utc(latest.created_at):
                latest = i
        return latest.weight if latest is not None else None

    async def active_user_ids(self, max_age_days: float) -> List[str]:
        cutoff = self._clock() - timedelta(days=max_age_days)
        return [
            user_id for user_id, rows in self._by_user.items()
            if any(ensure_utc(i.created_at) > cutoff for i in rows)
        ]

    async def delete_older_than(self, max_age_days: float) -> int:
        cutoff = self._clock() - timedelta(days=max_age_days)
        removed = 0
        async with self._lock:
            for user_id in list(self._by_user):
                rows = self._by_user[user_id]
                kept = [i for i in rows if ensure_utc(i.created_at) >= cutoff]
                removed += len(rows) - len(kept)
                if kept:
                    self._by_user[user_id] = kept
                else:
                    del self._by_user[user_id]
        return removed

    async def type_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for rows in self._by_user.values():
            for i in rows:
                counts[i.interaction_type.value] = counts.get(i.interaction_type.value, 0) + 1
        return counts
