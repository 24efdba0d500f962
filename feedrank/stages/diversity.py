"""
Diversity injection: exploit / explore / serendipity buckets plus variety spreading.

Exploit keeps the top of the ranking; explore pulls lower-ranked items from
topics the user rarely touches; serendipity adds shuffled, independently
quality-checked recent content at a neutral score. The merged list is then
reordered so one subject does not cluster.
"""

import logging
import math
import random
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from pydantic import BaseModel

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.content import ContentCandidate, ScoredCandidate, SignalBreakdown
from ..models.vector import InterestVector
from ..signals.quality_gate import passes_quality_gate
from ..signals.wilson import wilson_score

logger = logging.getLogger(__name__)

BUCKET_EXPLOIT = "exploit"
BUCKET_EXPLORE = "explore"
BUCKET_SERENDIPITY = "serendipity"


class DiversityConfig(BaseModel):
    exploit_ratio: float
    explore_ratio: float
    serendipity_count: int


def adaptive_diversity_config(account_age_days: float, diversity_score: float) -> DiversityConfig:
    """
    Bucket ratios for the user's state.

    Long-standing accounts stuck on few topics and brand-new accounts explore more.
    """
    if account_age_days > 365 and diversity_score < 0.3:
        return DiversityConfig(exploit_ratio=0.65, explore_ratio=0.30, serendipity_count=5)
    if account_age_days < 30:
        return DiversityConfig(exploit_ratio=0.70, explore_ratio=0.25, serendipity_count=5)
    return DiversityConfig(exploit_ratio=0.75, explore_ratio=0.20, serendipity_count=5)


def is_unexplored(
    candidate: ContentCandidate,
    vector: InterestVector,
    threshold: float = 0.1,
) -> bool:
    """True if the candidate's subject carries less than threshold weight in the user's vector."""
    if not candidate.subject:
        return False
    return vector.subject_weight(candidate.subject) < threshold


def pick_serendipity(
    pool: Iterable[ContentCandidate],
    exclude_ids: Set[str],
    count: int,
    config: RankingConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[ScoredCandidate]:
    """Shuffled pool items passing the quality gate with Wilson >= threshold, at the neutral serendipity score."""
    if count <= 0:
        return []
    qualified = []
    seen: Set[str] = set(exclude_ids)
    for candidate in pool:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        if not passes_quality_gate(candidate, config.quality_thresholds, now):
            continue
        wilson = wilson_score(candidate.like_count, candidate.dislike_count)
        if wilson >= config.serendipity_min_wilson:
            qualified.append((candidate, wilson))
    (rng or random).shuffle(qualified)
    return [
        ScoredCandidate(
            candidate=candidate,
            signals=SignalBreakdown(wilson=wilson),
            final_score=config.serendipity_score,
            bucket=BUCKET_SERENDIPITY,
        )
        for candidate, wilson in qualified[:count]
    ]


def spread_variety(
    scored: List[ScoredCandidate],
    alpha: float = 0.85,
) -> List[ScoredCandidate]:
    """
    Reorder so subjects are spread through the list.

    Greedy selection: each slot takes the best remaining item by
    effective_score = final_score * (alpha ** subject_count[subject]), skipping
    the previous item's subject while another subject is still available.
    Nothing is dropped.
    """
    remaining = list(scored)
    ordered: List[ScoredCandidate] = []
    subject_count: Dict[Optional[str], int] = {}
    last_subject: Optional[str] = None

    while remaining:
        best_idx: Optional[int] = None
        best_effective = -math.inf
        fallback_idx: Optional[int] = None
        fallback_effective = -math.inf

        for idx, item in enumerate(remaining):
            subject = item.subject
            effective = item.final_score * (alpha ** subject_count.get(subject, 0))
            if subject is not None and subject == last_subject:
                if effective > fallback_effective:
                    fallback_effective = effective
                    fallback_idx = idx
                continue
            if effective > best_effective:
                best_effective = effective
                best_idx = idx

        chosen = remaining.pop(best_idx if best_idx is not None else fallback_idx)
        ordered.append(chosen)
        subject_count[chosen.subject] = subject_count.get(chosen.subject, 0) + 1
        last_subject = chosen.subject

    return ordered


def inject_diversity(
    scored: List[ScoredCandidate],
    vector: InterestVector,
    diversity: DiversityConfig,
    serendipity_pool: Iterable[ContentCandidate] = (),
    config: RankingConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[ScoredCandidate]:
    """
    Split a score-sorted list into buckets and merge them back with variety spreading.

    Explore slots left empty (too few unexplored items) are backfilled from the
    remainder in score order, so the list only shrinks when the input does.
    """
    total = len(scored)
    exploit_count = math.floor(total * diversity.exploit_ratio)
    exploit = scored[:exploit_count]
    remainder = scored[exploit_count:]

    selected_ids = {s.id for s in scored}
    serendipity = pick_serendipity(
        serendipity_pool, selected_ids, diversity.serendipity_count, config, rng, now
    )

    explore_count = max(0, total - exploit_count - len(serendipity))
    explore = [
        s.model_copy(update={"bucket": BUCKET_EXPLORE})
        for s in remainder
        if is_unexplored(s.candidate, vector, config.explore_weight_threshold)
    ][:explore_count]

    explore_ids = {s.id for s in explore}
    backfill_count = explore_count - len(explore)
    backfill = [s for s in remainder if s.id not in explore_ids][:backfill_count]

    merged = exploit + explore + backfill + serendipity
    logger.debug(
        "[diversity] BUCKETS exploit=%d explore=%d backfill=%d serendipity=%d",
        len(exploit), len(explore), len(backfill), len(serendipity),
    )
    return spread_variety(merged, config.subject_penalty_alpha)
