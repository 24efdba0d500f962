"""
Interaction model: one append-only user event on a content item.

Built from store rows/API dicts via Interaction.model_validate(d) or ensure_interactions().
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils.clock import utc_now


class InteractionType(str, Enum):
    VIEW = "VIEW"
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    SHARE = "SHARE"
    ECHO = "ECHO"


INTERACTION_WEIGHTS: Dict[str, int] = {
    InteractionType.VIEW.value: 1,
    InteractionType.LIKE.value: 3,
    InteractionType.COMMENT.value: 5,
    InteractionType.SHARE.value: 7,
    InteractionType.ECHO.value: 8,
}

MAX_INTERACTION_WEIGHT = max(INTERACTION_WEIGHTS.values())


def get_interaction_weight(interaction_type: Union[str, InteractionType]) -> int:
    """Weight of an interaction type (ECHO > SHARE > COMMENT > LIKE > VIEW); unknown types weigh 1."""
    key = interaction_type.value if isinstance(interaction_type, InteractionType) else str(interaction_type).upper()
    return INTERACTION_WEIGHTS.get(key, 1)


class Interaction(BaseModel):
    """
    A single user interaction (view, like, comment, share, echo) on a content item.

    weight: derived from interaction_type when not supplied; never mutated afterwards.
    subject/grade: copied from the content at tracking time; may be absent.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    content_id: str
    content_type: str = "post"
    interaction_type: InteractionType
    subject: Optional[str] = None
    grade: Optional[str] = None
    weight: int = 0
    created_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def derive_weight(cls, data):
        if isinstance(data, dict) and not data.get("weight"):
            data = dict(data)
            data["weight"] = get_interaction_weight(data.get("interaction_type", "VIEW"))
        return data


def ensure_interactions(
    items: List[Union[Dict, "Interaction"]],
) -> List["Interaction"]:
    """Convert list of dicts or Interactions to list of Interaction models."""
    return [
        Interaction.model_validate(i) if isinstance(i, dict) else i
        for i in items
    ]
