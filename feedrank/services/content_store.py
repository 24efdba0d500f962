"""
Content store abstraction.

Supplies candidate content for ranking. The engine only reads: it passes a
CandidateQuery (the equivalent of a WHERE clause) and receives a bounded list
ordered by recency or popularity. Implementations: in-memory (tests, JSON
datasets); production stores plug in behind the same protocol.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional, Protocol, Set

from pydantic import BaseModel, ConfigDict, Field

from ..models.content import ContentCandidate
from ..utils.clock import ensure_utc


class CandidateQuery(BaseModel):
    """
    Candidate pre-filter criteria.

    allowed_grades: content grade must be one of these; None in the list matches
    content without a grade.
    """

    model_config = ConfigDict(frozen=True)

    exclude_author_id: Optional[str] = None
    exclude_ids: Set[str] = Field(default_factory=set)
    allowed_grades: Optional[List[Optional[str]]] = None
    subject: Optional[str] = None
    created_after: Optional[datetime] = None
    public_only: bool = True
    order_by: Literal["recent", "popular"] = "recent"
    offset: int = 0
    limit: int = 100


class ContentStore(Protocol):
    """Protocol for reading candidate content."""

    async def fetch_candidates(self, query: CandidateQuery) -> List[ContentCandidate]:
        """Return up to query.limit candidates matching query, ordered per query.order_by."""
        ...

    async def count(self) -> int:
        """Total number of stored content items."""
        ...


def matches_query(candidate: ContentCandidate, query: CandidateQuery) -> bool:
    """True if candidate satisfies every criterion in query."""
    if query.public_only and not candidate.is_public:
        return False
    if query.exclude_author_id and candidate.author_id == query.exclude_author_id:
        return False
    if candidate.id in query.exclude_ids:
        return False
    if query.allowed_grades is not None and candidate.grade not in query.allowed_grades:
        return False
    if query.subject and candidate.subject != query.subject:
        return False
    if query.created_after and ensure_utc(candidate.created_at) < ensure_utc(query.created_after):
        return False
    return True


class InMemoryContentStore:
    """Content store over an in-process dict. Used for tests and JSON datasets."""

    def __init__(self, candidates: Optional[Iterable[ContentCandidate]] = None):
        self._items: Dict[str, ContentCandidate] = {}
        for c in candidates or []:
            self.add(c)

    def add(self, candidate: ContentCandidate) -> None:
        self._items[candidate.id] = candidate

    def get(self, content_id: str) -> Optional[ContentCandidate]:
        return self._items.get(content_id)

    def __len__(self) -> int:
        return len(self._items)

    async def count(self) -> int:
        return len(self._items)

    async def fetch_candidates(self, query: CandidateQuery) -> List[ContentCandidate]:
        matched = [c for c in self._items.values() if matches_query(c, query)]
        if query.order_by == "popular":
            matched.sort(key=lambda c: (c.like_count, ensure_utc(c.created_at)), reverse=True)
        else:
            matched.sort(key=lambda c: ensure_utc(c.created_at), reverse=True)
        return matched[query.offset : query.offset + query.limit]
