"""
Interest vector builder (sparse subject/grade weights from interactions).

Sums interaction weights per subject and per grade over a bounded window,
normalizes by total observed weight, prunes each map to its top-K entries and
computes an entropy-based diversity score. Pure transform: no I/O.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..models.interaction import Interaction
from ..models.vector import InterestVector, VectorMetadata
from ..utils.clock import ensure_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
DEFAULT_TOP_K = 50


def prune_weights(weights: Dict[str, float], max_keys: int) -> Dict[str, float]:
    """Keep the max_keys largest entries (ties broken by key for determinism)."""
    if len(weights) <= max_keys:
        return dict(weights)
    ranked = sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))
    return dict(ranked[:max_keys])


def renormalize(weights: Dict[str, float]) -> Dict[str, float]:
    """Rescale weights to sum to 1; empty or all-zero maps are returned unchanged."""
    total = sum(weights.values())
    if total <= 0:
        return dict(weights)
    return {k: v / total for k, v in weights.items()}


def diversity_score(subjects: Dict[str, float]) -> float:
    """
    Normalized Shannon entropy of the subject distribution.

    0 for a single-topic vector, approaching 1 as mass spreads evenly.
    Weights are treated as a distribution (rescaled if they do not sum to 1).
    """
    values = np.array([v for v in subjects.values() if v > 0], dtype=float)
    if values.size <= 1:
        return 0.0
    p = values / values.sum()
    entropy = float(-(p * np.log2(p)).sum())
    max_entropy = float(np.log2(values.size))
    return entropy / max_entropy if max_entropy > 0 else 0.0


def _within_window(
    interactions: Iterable[Interaction],
    max_age_days: float,
    now: datetime,
) -> List[Interaction]:
    cutoff = now - timedelta(days=max_age_days)
    return [i for i in interactions if ensure_utc(i.created_at) > cutoff]


def build_interest_vector(
    owner_id: str,
    interactions: Iterable[Interaction],
    max_age_days: float = DEFAULT_WINDOW_DAYS,
    top_k: int = DEFAULT_TOP_K,
    renormalize_after_prune: bool = True,
    now: Optional[datetime] = None,
) -> InterestVector:
    """
    Build a fresh InterestVector from an interaction window.

    Normalization divides by the total weight of every interaction in the window,
    including ones without subject/grade. When renormalize_after_prune is set the
    pruned maps are rescaled back to sum to 1 (an untouched map already does when
    every interaction carries a subject).
    """
    now = ensure_utc(now) if now is not None else utc_now()
    recent = _within_window(interactions, max_age_days, now)

    subjects: Dict[str, float] = {}
    grades: Dict[str, float] = {}
    total_weight = 0.0
    for interaction in recent:
        weight = float(interaction.weight)
        total_weight += weight
        if interaction.subject:
            subjects[interaction.subject] = subjects.get(interaction.subject, 0.0) + weight
        if interaction.grade:
            grades[interaction.grade] = grades.get(interaction.grade, 0.0) + weight

    if total_weight > 0:
        subjects = {k: v / total_weight for k, v in subjects.items()}
        grades = {k: v / total_weight for k, v in grades.items()}

    pruned_subjects = prune_weights(subjects, top_k)
    pruned_grades = prune_weights(grades, top_k)
    if renormalize_after_prune:
        pruned_subjects = renormalize(pruned_subjects)
        pruned_grades = renormalize(pruned_grades)

    return InterestVector(
        owner_id=owner_id,
        subjects=pruned_subjects,
        grades=pruned_grades,
        metadata=VectorMetadata(
            last_updated=now,
            drift_score=0.0,
            diversity_score=diversity_score(pruned_subjects),
        ),
    )
