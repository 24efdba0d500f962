"""
Quality & spam gate: hard pass/fail filter applied before ranking.

Rejects candidates below the minimum like count, content length, Wilson score
or author account age, above the report ceiling, or matching spam heuristics.
"""

import logging
import re
from datetime import datetime
from typing import List, Optional, Pattern

from ..models.config import QUALITY_PRESETS, QualityThresholds
from ..models.content import ContentCandidate
from ..utils.clock import days_since
from .wilson import time_aware_wilson_score

logger = logging.getLogger(__name__)

SPAM_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\b(click here|buy now|limited offer|act now)\b", re.IGNORECASE),
    re.compile(r"(.)\1{10,}"),
    re.compile("[\U0001F525\U0001F4B0\U0001F4B5\U0001F48E]{5,}"),
    re.compile(r"https?://\S{100,}", re.IGNORECASE),
]


def detect_spam_patterns(text: str) -> bool:
    """True if text contains promotional phrases, character floods, emoji runs or very long URLs."""
    if not text:
        return False
    return any(pattern.search(text) for pattern in SPAM_PATTERNS)


def gate_rejection_reason(
    candidate: ContentCandidate,
    thresholds: Optional[QualityThresholds] = None,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Name of the first failed check, or None when the candidate passes."""
    thresholds = thresholds or QUALITY_PRESETS["default"]

    if candidate.like_count < thresholds.min_likes:
        return "min_likes"
    if candidate.text_length() < thresholds.min_content_length:
        return "min_content_length"

    wilson = time_aware_wilson_score(
        candidate.like_count,
        candidate.dislike_count,
        candidate.created_at,
        candidate.voter_ids,
        now,
    )
    if wilson < thresholds.min_wilson_score:
        return "min_wilson_score"

    if candidate.author_created_at is not None:
        if days_since(candidate.author_created_at, now) < thresholds.min_author_age_days:
            return "min_author_age"

    if candidate.report_count > thresholds.max_report_count:
        return "max_report_count"

    text = " ".join(part for part in (candidate.title, candidate.body) if part)
    if detect_spam_patterns(text):
        return "spam_pattern"
    return None


def passes_quality_gate(
    candidate: ContentCandidate,
    thresholds: Optional[QualityThresholds] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Hard pass/fail quality gate."""
    reason = gate_rejection_reason(candidate, thresholds, now)
    if reason is not None:
        logger.debug("[quality_gate] REJECTED content=%s reason=%s", candidate.id, reason)
        return False
    return True
