"""
Interest vector model: sparse, normalized subject/grade weights for one user.

Owned by the interest vector builder; replaced wholesale on recompute.
"""

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field

from ..utils.clock import utc_now


class VectorMetadata(BaseModel):
    last_updated: datetime = Field(default_factory=utc_now)
    drift_score: float = 0.0
    diversity_score: float = 0.0


class InterestVector(BaseModel):
    """
    Sparse topic/grade interest weights.

    subjects/grades: weight maps normalized over the interaction window.
    metadata.last_updated drives the freshness window of the stable vector cache.
    """

    owner_id: str = ""
    subjects: Dict[str, float] = Field(default_factory=dict)
    grades: Dict[str, float] = Field(default_factory=dict)
    metadata: VectorMetadata = Field(default_factory=VectorMetadata)

    def is_empty(self) -> bool:
        return not self.subjects and not self.grades

    def subject_weight(self, subject: str) -> float:
        return self.subjects.get(subject, 0.0)
