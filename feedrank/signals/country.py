"""
Country/language matching: local content boost with a global mix.

Scores content origin against the user's country and language. Users who opt
out of local preference see every item at the neutral global score.
"""

import random
from typing import Optional

LOCAL_MATCH_SCORE = 1.0
LANGUAGE_MATCH_SCORE = 0.6
GLOBAL_CONTENT_SCORE = 0.5
FOREIGN_CONTENT_SCORE = 0.3

# Probability that foreign content passes the pre-filter.
FOREIGN_INCLUSION_RATIO = 0.3


def country_match_score(
    user_country: Optional[str],
    user_language: Optional[str],
    content_country: Optional[str],
    content_language: Optional[str],
    prefer_local_content: bool = True,
) -> float:
    if not prefer_local_content:
        return GLOBAL_CONTENT_SCORE
    if not content_country:
        return GLOBAL_CONTENT_SCORE
    if not user_country:
        return GLOBAL_CONTENT_SCORE
    if user_country == content_country:
        return LOCAL_MATCH_SCORE
    if user_language and content_language and user_language == content_language:
        return LANGUAGE_MATCH_SCORE
    return FOREIGN_CONTENT_SCORE


def should_include_content(
    user_country: Optional[str],
    user_language: Optional[str],
    content_country: Optional[str],
    content_language: Optional[str],
    prefer_local_content: bool = True,
    foreign_ratio: float = FOREIGN_INCLUSION_RATIO,
    rng: Optional[random.Random] = None,
) -> bool:
    """
    Pre-filter for the candidate pool.

    Local, same-language and global content always pass; foreign content passes
    with probability foreign_ratio so a global mix survives.
    """
    if not prefer_local_content or not content_country or not user_country:
        return True
    if user_country == content_country:
        return True
    if user_language and content_language and user_language == content_language:
        return True
    return (rng or random).random() < foreign_ratio
