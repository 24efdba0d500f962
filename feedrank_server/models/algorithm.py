"""Algorithm maintenance and health models."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel


class GradeTransitionRequest(BaseModel):
    user_id: str
    old_grade: str
    new_grade: str


class GradeTransitionResponse(BaseModel):
    user_id: str
    grades: Dict[str, float]
    subjects_kept: int
    feed_invalidated: bool = True


class DriftCheckRequest(BaseModel):
    user_id: str


class HealthResponse(BaseModel):
    status: str
    alerts: List[str]
    metrics: Dict[str, float]
    coalescer: Dict[str, int]
    breaker_state: str
    background_pending: int
    config: Dict[str, Any]


class AlgorithmStatsResponse(BaseModel):
    total_vectors: int
    total_interactions: int
    total_posts: int
    active_users_24h: int
    avg_vector_age_hours: float
    interaction_types: Dict[str, int]
    timestamp: datetime
