"""
User-side models: profile, peer summary, feed filters and the feed result.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Profile fields the ranking engine reads. Country/language/grade may be missing."""

    model_config = ConfigDict(extra="allow")

    id: str
    created_at: datetime
    grade: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    prefer_local_content: bool = True
    total_interactions: int = 0
    community_ids: List[str] = Field(default_factory=list)


class PeerSummary(BaseModel):
    """Peer-population row: id, age and activity only. Vectors are fetched lazily."""

    id: str
    created_at: datetime
    total_interactions: int = 0


class SimilarityEdge(BaseModel):
    """User-to-peer similarity computed per request (never persisted)."""

    user_id: str
    peer_id: str
    similarity: float


class FeedFilters(BaseModel):
    """Caller-validated feed filters."""

    model_config = ConfigDict(frozen=True)

    grade: Optional[str] = None
    subject: Optional[str] = None
    filter_by_grade: bool = True

    def cache_fragment(self) -> str:
        return f"{self.filter_by_grade}:{self.grade or 'any'}:{self.subject or 'all'}"


class FeedResult(BaseModel):
    """Ordered content ids for one page plus the pipeline tier that produced them."""

    content_ids: List[str]
    algorithm: Literal["hybrid", "simplified", "chronological"] = "hybrid"
    page: int = 1
    page_size: int = 20
