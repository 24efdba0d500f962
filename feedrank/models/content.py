"""
Content models: the read-only candidate projection and its per-request scored form.

ContentCandidate is supplied by the external content store. Optional fields
(country, language, grade, subject, community) are tolerated as missing.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ContentCandidate(BaseModel):
    """
    Candidate content item for ranking.

    voter_ids: recent likers (most recent first) used by the bot-velocity heuristic;
    None when the store cannot supply like history.
    author_created_at: author account creation time for the trust gate; None skips that check.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    author_id: str
    created_at: datetime
    subject: Optional[str] = None
    grade: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    community_id: Optional[str] = None
    like_count: int = 0
    dislike_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    report_count: int = 0
    title: Optional[str] = None
    body: Optional[str] = None
    author_created_at: Optional[datetime] = None
    voter_ids: Optional[List[str]] = None
    is_public: bool = True

    def text_length(self) -> int:
        """Combined title + body length for the minimum-content gate."""
        return len(self.title or "") + len(self.body or "")


class SignalBreakdown(BaseModel):
    """Normalized per-signal scores for one candidate (all in [0, 1])."""

    time_decay: float = 0.0
    wilson: float = 0.0
    user_interest: float = 0.0
    collaborative: float = 0.0
    community_influence: float = 0.0
    grade_match: float = 1.0
    quality_gate: float = 1.0
    country_match: float = 0.5


class ScoredCandidate(BaseModel):
    """A candidate with its signal breakdown and blended final score (request-scoped)."""

    candidate: ContentCandidate
    signals: SignalBreakdown = Field(default_factory=SignalBreakdown)
    final_score: float = 0.0
    bucket: str = "exploit"

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def subject(self) -> Optional[str]:
        return self.candidate.subject


def ensure_candidates(
    items: List[Union[Dict[str, Any], "ContentCandidate"]],
) -> List["ContentCandidate"]:
    """Convert list of dicts or ContentCandidates to models for use in the pipeline."""
    return [
        ContentCandidate.model_validate(c) if isinstance(c, dict) else c
        for c in items
    ]
