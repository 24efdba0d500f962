"""
Drift detection and grade transitions.

Compares the recent interest vector (last 30 days) with the historical one
(30-90 days ago). A subject cosine similarity below the threshold flags drift
and recommends a full vector recomputation.
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.interaction import Interaction
from ..models.vector import InterestVector, VectorMetadata
from ..signals.similarity import cosine_similarity
from ..utils.clock import utc_now
from .interest_vector import build_interest_vector

logger = logging.getLogger(__name__)

RECALCULATE_VECTOR = "RECALCULATE_VECTOR"
CONTINUE = "CONTINUE"


class DriftAnalysis(BaseModel):
    has_drift: bool
    severity: float
    recommendation: str
    similarity: float
    affected_subjects: List[str] = Field(default_factory=list)


def find_drifting_subjects(
    recent: InterestVector,
    historical: InterestVector,
    min_change: float = 0.2,
) -> List[str]:
    """Subjects whose weight moved by more than min_change between the two windows."""
    drifting = []
    for subject in sorted(set(recent.subjects) | set(historical.subjects)):
        change = abs(recent.subject_weight(subject) - historical.subject_weight(subject))
        if change > min_change:
            drifting.append(subject)
    return drifting


class DriftDetector:
    """Concept-drift analysis over two interaction windows."""

    def __init__(self, config: RankingConfig = DEFAULT_CONFIG):
        self.config = config

    def analyze(
        self,
        user_id: str,
        recent_interactions: List[Interaction],
        historical_interactions: List[Interaction],
        now: Optional[datetime] = None,
    ) -> DriftAnalysis:
        cfg = self.config
        recent = build_interest_vector(
            user_id,
            recent_interactions,
            max_age_days=cfg.vector_window_days,
            top_k=cfg.vector_top_k,
            renormalize_after_prune=cfg.renormalize_after_prune,
            now=now,
        )
        historical = build_interest_vector(
            user_id,
            historical_interactions,
            max_age_days=cfg.drift_history_days,
            top_k=cfg.vector_top_k,
            renormalize_after_prune=cfg.renormalize_after_prune,
            now=now,
        )
        return self.compare(recent, historical)

    def compare(self, recent: InterestVector, historical: InterestVector) -> DriftAnalysis:
        """Drift verdict for two prebuilt vectors."""
        similarity = cosine_similarity(recent.subjects, historical.subjects)
        has_drift = similarity < self.config.drift_similarity_threshold
        return DriftAnalysis(
            has_drift=has_drift,
            severity=1.0 - similarity,
            recommendation=RECALCULATE_VECTOR if has_drift else CONTINUE,
            similarity=similarity,
            affected_subjects=find_drifting_subjects(
                recent, historical, self.config.drift_subject_change
            ),
        )

    async def detect_concept_drift(self, user_id: str, interaction_store) -> DriftAnalysis:
        """Read both windows from the interaction store and analyze them."""
        cfg = self.config
        recent = await interaction_store.interactions_between(user_id, 0, cfg.vector_window_days)
        historical = await interaction_store.interactions_between(
            user_id, cfg.vector_window_days, cfg.drift_history_days
        )
        analysis = self.analyze(user_id, recent, historical)
        logger.info(
            "[drift] ANALYZED user=%s similarity=%.3f drift=%s affected=%s",
            user_id, analysis.similarity, analysis.has_drift, analysis.affected_subjects,
        )
        return analysis

    def grade_transition_vector(
        self,
        vector: InterestVector,
        old_grade: str,
        new_grade: str,
        now: Optional[datetime] = None,
    ) -> InterestVector:
        """
        Vector after a grade change: subjects preserved, grades reset to a
        transitional blend {new: 1.0, old: 0.3}.
        """
        grades = {new_grade: 1.0}
        if old_grade and old_grade != new_grade:
            grades[old_grade] = self.config.grade_transition_old_weight
        return InterestVector(
            owner_id=vector.owner_id,
            subjects=dict(vector.subjects),
            grades=grades,
            metadata=VectorMetadata(
                last_updated=now or utc_now(),
                drift_score=0.0,
                diversity_score=vector.metadata.diversity_score,
            ),
        )
