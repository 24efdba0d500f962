"""
Country balancing: steer the ranked list toward a target local/non-local mix.

Local and non-local sub-lists are sliced to their target counts separately and
merged back in score order, so neither side is suppressed outright.
"""

from typing import List, Optional, Sequence

from ..models.content import ScoredCandidate


def is_local(item: ScoredCandidate, user_country: str) -> bool:
    return item.candidate.country == user_country


def balance_country_distribution(
    scored: List[ScoredCandidate],
    user_country: Optional[str],
    target_local_ratio: float = 0.7,
) -> List[ScoredCandidate]:
    """
    Keep at most floor(n * ratio) local items and n - that non-local items.

    No-op when the user's country is unknown or the list is empty. Input order
    within each slice is preserved before the final sort by score.
    """
    if not user_country or not scored:
        return list(scored)

    local = [s for s in scored if is_local(s, user_country)]
    non_local = [s for s in scored if not is_local(s, user_country)]

    target_local = int(len(scored) * target_local_ratio)
    target_non_local = len(scored) - target_local

    balanced = local[:target_local] + non_local[:target_non_local]
    balanced.sort(key=lambda s: s.final_score, reverse=True)
    return balanced


def country_diversity_score(countries: Sequence[Optional[str]]) -> float:
    """
    Spread of origins in a result list: 0.7 * unique-country ratio + 0.3 * global ratio.

    Content without a country counts as global.
    """
    if not countries:
        return 0.0
    unique = {c for c in countries if c}
    global_count = sum(1 for c in countries if not c)
    return 0.7 * len(unique) / len(countries) + 0.3 * global_count / len(countries)
