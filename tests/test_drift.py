"""
Drift Detector Tests

Recent (last 30 days) vs historical (30-90 days) interest comparison and the
grade-transition vector.
"""

import asyncio

import pytest

from feedrank.models.vector import InterestVector
from feedrank.stages.drift import CONTINUE, RECALCULATE_VECTOR, DriftDetector


class TestDriftAnalysis:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.detector = DriftDetector()

    def test_stable_interests_do_not_drift(self, make_interactions, now):
        analysis = self.detector.analyze(
            "u1",
            make_interactions("u1", "physics", 6),
            make_interactions("u1", "physics", 6, days_ago=45),
            now=now,
        )
        assert not analysis.has_drift
        assert analysis.similarity == pytest.approx(1.0)
        assert analysis.recommendation == CONTINUE
        assert analysis.affected_subjects == []

    def test_topic_switch_drifts(self, make_interactions, now):
        analysis = self.detector.analyze(
            "u1",
            make_interactions("u1", "physics", 6),
            make_interactions("u1", "history", 6, days_ago=45),
            now=now,
        )
        assert analysis.has_drift
        assert analysis.severity == pytest.approx(1.0)
        assert analysis.recommendation == RECALCULATE_VECTOR
        assert analysis.affected_subjects == ["history", "physics"]

    def test_reads_windows_from_store(self, interaction_store, make_interactions):
        interaction_store.add_many(make_interactions("u1", "physics", 6))
        interaction_store.add_many(make_interactions("u1", "art", 6, days_ago=45))
        analysis = asyncio.run(self.detector.detect_concept_drift("u1", interaction_store))
        assert analysis.has_drift
        assert "art" in analysis.affected_subjects


class TestGradeTransition:
    def test_subjects_kept_and_grades_blended(self, now):
        detector = DriftDetector()
        vector = InterestVector(
            owner_id="u1",
            subjects={"physics": 0.7, "math": 0.3},
            grades={"10th Grade": 1.0},
        )
        moved = detector.grade_transition_vector(vector, "10th Grade", "11th Grade", now=now)
        assert moved.subjects == vector.subjects
        assert moved.grades == {"11th Grade": 1.0, "10th Grade": 0.3}
        assert moved.metadata.last_updated == now

    def test_same_grade_keeps_single_entry(self):
        vector = InterestVector(owner_id="u1", subjects={"physics": 1.0})
        moved = DriftDetector().grade_transition_vector(vector, "10th Grade", "10th Grade")
        assert moved.grades == {"10th Grade": 1.0}
