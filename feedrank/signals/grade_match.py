"""
Grade-level matching: keeps content close to the user's educational level.

Reviewing lower-level material is penalized less than reaching for higher-level
material. "General" content and "Teacher" users are compatible with everything.
"""

from typing import Dict, NamedTuple, Optional


class GradeLevel(NamedTuple):
    level: int
    allowed_range: int


GRADE_HIERARCHY: Dict[str, GradeLevel] = {
    "9th Grade": GradeLevel(0, 1),
    "10th Grade": GradeLevel(1, 1),
    "11th Grade": GradeLevel(2, 1),
    "12th Grade": GradeLevel(3, 2),
    "University": GradeLevel(4, 2),
    "Graduate": GradeLevel(5, 3),
    "Teacher": GradeLevel(6, 6),
    "General": GradeLevel(-1, 6),
}

GENERAL_LEVEL = -1
TEACHER_LEVEL = 6
UNKNOWN_GRADE_SCORE = 0.5


def grade_match_score(user_grade: Optional[str], content_grade: Optional[str]) -> float:
    """Score in [0.2, 1.0] for how well content_grade suits user_grade; 0.5 for unknown grades."""
    user_level = GRADE_HIERARCHY.get(user_grade or "")
    content_level = GRADE_HIERARCHY.get(content_grade or "")
    if user_level is None or content_level is None:
        return UNKNOWN_GRADE_SCORE
    if content_level.level == GENERAL_LEVEL:
        return 1.0
    if user_level.level == TEACHER_LEVEL:
        return 1.0

    gap = abs(user_level.level - content_level.level)
    if gap == 0:
        return 1.0
    if gap <= user_level.allowed_range:
        if content_level.level < user_level.level:
            return 0.9 - gap * 0.1
        return 0.8 - gap * 0.15
    return max(0.2, 1.0 - gap * 0.2)
