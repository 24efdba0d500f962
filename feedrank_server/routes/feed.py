"""Feed endpoint."""

from typing import Optional

from fastapi import APIRouter, HTTPException

from feedrank.models.user import FeedFilters

from ..models import FeedResponse
from ..state import get_state

router = APIRouter()

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


@router.get("", response_model=FeedResponse)
async def get_feed(
    user_id: str,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    grade: Optional[str] = None,
    subject: Optional[str] = None,
    filter_by_grade: bool = True,
):
    """Ranked content ids for one page of the user's feed."""
    if not user_id.strip():
        raise HTTPException(status_code=400, detail="user_id is required")
    if page < 1:
        raise HTTPException(status_code=400, detail="page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise HTTPException(status_code=400, detail=f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    filters = FeedFilters(grade=grade or None, subject=subject or None, filter_by_grade=filter_by_grade)
    result = await get_state().engine.rank_feed_detailed(user_id.strip(), page, page_size, filters)
    return FeedResponse(
        user_id=user_id.strip(),
        content_ids=result.content_ids,
        algorithm=result.algorithm,
        page=result.page,
        page_size=result.page_size,
    )
