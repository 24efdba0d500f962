"""
Per-candidate hybrid scoring: blends every signal into one final score.

final = (sum of band weight * signal) * (1 - cw) + cw * country_match
        then * grade_match * quality_gate
cw is the country weight when the user prefers local content, else 0.
Raw time decay is normalized over [0, 100]; the collaborative prediction over
[0, max interaction weight].
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from ..models.config import DEFAULT_CONFIG, RankingConfig, ScoringWeights
from ..models.content import ContentCandidate, ScoredCandidate, SignalBreakdown
from ..models.user import UserProfile
from ..models.vector import InterestVector
from ..signals.country import country_match_score
from ..signals.grade_match import grade_match_score
from ..signals.quality_gate import passes_quality_gate
from ..signals.similarity import cosine_similarity
from ..signals.time_decay import normalize_score, seasonal_time_decay_score
from ..signals.wilson import time_aware_wilson_score
from ..utils.clock import utc_now

logger = logging.getLogger(__name__)

MEMBER_COMMUNITY_SCORE = 1.0
OTHER_COMMUNITY_SCORE = 0.5
NO_COMMUNITY_SCORE = 0.3


@dataclass
class ScoringContext:
    """Everything scoring needs that is shared across one request's candidates."""
    profile: UserProfile
    vector: InterestVector
    weights: ScoringWeights
    collaborative: Dict[str, float] = field(default_factory=dict)
    config: RankingConfig = field(default_factory=lambda: DEFAULT_CONFIG)
    now: datetime = field(default_factory=utc_now)


def content_features(candidate: ContentCandidate) -> Dict[str, float]:
    """One-hot feature map of the candidate's subject and grade."""
    features: Dict[str, float] = {}
    if candidate.subject:
        features[candidate.subject] = 1.0
    if candidate.grade:
        features[candidate.grade] = 1.0
    return features


def community_influence_score(candidate: ContentCandidate, profile: UserProfile) -> float:
    """Posts from the user's own communities rank highest, community posts above loose ones."""
    if not candidate.community_id:
        return NO_COMMUNITY_SCORE
    if candidate.community_id in profile.community_ids:
        return MEMBER_COMMUNITY_SCORE
    return OTHER_COMMUNITY_SCORE


def score_candidate(candidate: ContentCandidate, ctx: ScoringContext) -> ScoredCandidate:
    cfg = ctx.config
    profile = ctx.profile

    time_decay = seasonal_time_decay_score(
        candidate.like_count,
        candidate.comment_count,
        candidate.share_count,
        candidate.created_at,
        now=ctx.now,
    )
    wilson = time_aware_wilson_score(
        candidate.like_count,
        candidate.dislike_count,
        candidate.created_at,
        candidate.voter_ids,
        ctx.now,
    )
    signals = SignalBreakdown(
        time_decay=normalize_score(time_decay, 0.0, cfg.time_decay_norm_max),
        wilson=wilson,
        user_interest=cosine_similarity(ctx.vector.subjects, content_features(candidate)),
        collaborative=normalize_score(
            ctx.collaborative.get(candidate.id, 0.0), 0.0, cfg.collaborative_norm_max
        ),
        community_influence=community_influence_score(candidate, profile),
        grade_match=grade_match_score(profile.grade or "General", candidate.grade or "General"),
        quality_gate=1.0 if passes_quality_gate(candidate, cfg.quality_thresholds, ctx.now) else 0.0,
        country_match=country_match_score(
            profile.country,
            profile.language,
            candidate.country,
            candidate.language,
            profile.prefer_local_content,
        ),
    )

    w = ctx.weights
    blended = (
        w.time_decay * signals.time_decay
        + w.wilson * signals.wilson
        + w.user_interest * signals.user_interest
        + w.collaborative * signals.collaborative
        + w.community_influence * signals.community_influence
    )
    country_weight = cfg.country_weight if profile.prefer_local_content else 0.0
    final = blended * (1.0 - country_weight) + country_weight * signals.country_match
    final *= signals.grade_match * signals.quality_gate

    return ScoredCandidate(candidate=candidate, signals=signals, final_score=final)


def score_candidates(
    candidates: Iterable[ContentCandidate],
    ctx: ScoringContext,
    monitor=None,
) -> List[ScoredCandidate]:
    """
    Score every candidate and sort by final score, highest first.

    Candidates failing the quality gate are removed. A candidate whose scoring
    raises is dropped with a warning; the rest of the batch is unaffected.
    """
    scored: List[ScoredCandidate] = []
    for candidate in candidates:
        try:
            item = score_candidate(candidate, ctx)
        except Exception as e:
            logger.warning("[scoring] CANDIDATE_DROPPED content=%s error=%s", candidate.id, e)
            continue
        passed = item.signals.quality_gate > 0
        if monitor is not None:
            monitor.record_quality_filter(passed)
        if passed:
            scored.append(item)
    scored.sort(key=lambda s: s.final_score, reverse=True)
    return scored
