"""
Cold-Start Policy and Ranking Config Tests
"""

import pytest

from feedrank.models.config import RankingConfig
from feedrank.stages.cold_start import (
    GRADE_DEFAULT_SUBJECTS,
    MATURITY_DEVELOPING,
    MATURITY_MATURE,
    MATURITY_NEW,
    grade_default_vector,
    maturity_band,
    select_weights,
)


class TestMaturityBands:
    @pytest.mark.parametrize(
        "age_days, interactions, band",
        [
            (2, 3, MATURITY_NEW),
            (10, 5, MATURITY_NEW),
            (3, 200, MATURITY_NEW),
            (10, 20, MATURITY_DEVELOPING),
            (40, 20, MATURITY_DEVELOPING),
            (40, 60, MATURITY_MATURE),
        ],
    )
    def test_band(self, age_days, interactions, band):
        assert maturity_band(age_days, interactions) == band

    def test_new_users_get_no_personal_signal(self, make_profile, now):
        profile = make_profile("u1", age_days=2, total_interactions=3)
        weights = select_weights(profile, now=now)
        assert weights.user_interest == 0.0
        assert weights.collaborative == 0.0
        assert weights.time_decay == pytest.approx(0.4)

    def test_mature_users_weight_personalization(self, make_profile, now):
        weights = select_weights(make_profile("u1", age_days=400, total_interactions=500), now=now)
        assert weights.user_interest == pytest.approx(0.3)
        assert weights.collaborative == pytest.approx(0.15)


class TestGradeDefaults:
    def test_known_grade(self):
        vector = grade_default_vector("10th Grade", owner_id="u1")
        assert vector.subjects == GRADE_DEFAULT_SUBJECTS["10th Grade"]
        assert vector.grades == {"10th Grade": 1.0}
        assert vector.owner_id == "u1"

    @pytest.mark.parametrize("grade", [None, "", "Kindergarten"])
    def test_unknown_grade_falls_back_to_general(self, grade):
        vector = grade_default_vector(grade)
        assert vector.subjects == {"general": 1.0}
        assert vector.grades == {"General": 1.0}


class TestRankingConfig:
    def test_band_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            RankingConfig(
                weights_new={
                    "time_decay": 0.5,
                    "wilson": 0.5,
                    "user_interest": 0.5,
                    "collaborative": 0.0,
                    "community_influence": 0.0,
                }
            )

    def test_unknown_quality_level_rejected(self):
        with pytest.raises(ValueError):
            RankingConfig(quality_level="strict")

    def test_from_dict_flattens_sections(self):
        config = RankingConfig.from_dict(
            {
                "cache": {"freshness_window_hours": 2},
                "cold_start": {
                    "new": {
                        "time_decay": 0.5,
                        "wilson": 0.3,
                        "user_interest": 0.0,
                        "collaborative": 0.0,
                        "community_influence": 0.2,
                    }
                },
                "overfetch_factor": 3,
                "not_a_setting": True,
            }
        )
        assert config.freshness_window_hours == 2
        assert config.weights_new.time_decay == 0.5
        assert config.overfetch_factor == 3
