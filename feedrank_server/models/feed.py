"""Feed-related Pydantic models."""

from typing import List, Optional

from pydantic import BaseModel


class FeedResponse(BaseModel):
    user_id: str
    content_ids: List[str]
    algorithm: str
    page: int
    page_size: int


class InteractionRequest(BaseModel):
    user_id: str
    content_id: str
    content_type: str = "post"
    interaction_type: str
    subject: Optional[str] = None
    grade: Optional[str] = None


class InteractionResponse(BaseModel):
    status: str = "recorded"
    weight: int
