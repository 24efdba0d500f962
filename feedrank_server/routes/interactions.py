"""Interaction tracking endpoint."""

from fastapi import APIRouter, HTTPException

from feedrank.models.interaction import InteractionType, get_interaction_weight

from ..models import InteractionRequest, InteractionResponse
from ..state import get_state

router = APIRouter()


@router.post("", response_model=InteractionResponse, status_code=202)
async def record_interaction(request: InteractionRequest):
    """Record one interaction. Storage failures are logged by the engine, not returned."""
    try:
        interaction_type = InteractionType(request.interaction_type.strip().upper())
    except ValueError:
        allowed = ", ".join(t.value for t in InteractionType)
        raise HTTPException(
            status_code=400,
            detail=f"Unknown interaction_type {request.interaction_type!r}; expected one of {allowed}",
        )
    await get_state().engine.record_interaction(
        request.user_id,
        request.content_id,
        request.content_type,
        interaction_type,
        subject=request.subject,
        grade=request.grade,
    )
    return InteractionResponse(weight=get_interaction_weight(interaction_type))
