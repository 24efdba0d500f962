"""Request/response models for the HTTP API."""

from .algorithm import (
    AlgorithmStatsResponse,
    DriftCheckRequest,
    GradeTransitionRequest,
    GradeTransitionResponse,
    HealthResponse,
)
from .feed import FeedResponse, InteractionRequest, InteractionResponse

__all__ = [
    "AlgorithmStatsResponse",
    "DriftCheckRequest",
    "FeedResponse",
    "GradeTransitionRequest",
    "GradeTransitionResponse",
    "HealthResponse",
    "InteractionRequest",
    "InteractionResponse",
]
