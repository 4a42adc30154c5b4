"""Tests for careerpath.models — validation of the data model."""

import pytest
from pydantic import ValidationError

from careerpath.models import (
    GapAnalysis,
    JobPosting,
    LearningResource,
    MatchResult,
    Profile,
    RankedResource,
    SkillGapEntry,
)


class TestSkillLists:
    def test_profile_skills_cleaned(self):
        profile = Profile(skills=[" Python ", "python", "", "Docker", "  "])
        assert profile.skills == ["Python", "Docker"]

    def test_job_skills_cleaned(self):
        assert JobPosting(required_skills=["SQL", "sql ", "Go"]).required_skills == ["SQL", "Go"]

    def test_resource_skills_cleaned(self):
        resource = LearningResource(title="x", related_skills=["React", "REACT"])
        assert resource.related_skills == ["React"]


class TestLearningResource:
    def test_defaults(self):
        resource = LearningResource(title="Intro")
        assert resource.cost == "Free"
        assert resource.related_skills == []

    def test_title_required(self):
        with pytest.raises(ValidationError):
            LearningResource()

    def test_cost_literal(self):
        with pytest.raises(ValidationError):
            LearningResource(title="x", cost="Cheap")

    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            LearningResource(title="x", rating=6)

    def test_extra_columns_ignored(self):
        resource = LearningResource(title="x", created_at="2024-01-01")
        assert not hasattr(resource, "created_at")


class TestMatchResult:
    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            MatchResult(match_score=101, skill_match_score=0, experience_match_score=0, track_match_score=0)


class TestRankedResource:
    def test_requires_overlap(self):
        with pytest.raises(ValidationError):
            RankedResource(resource=LearningResource(title="x"), overlap_count=0)


class TestGapAnalysis:
    def _gap(self, skill: str, priority: str) -> SkillGapEntry:
        return SkillGapEntry(
            skill=skill,
            display_name=skill.title(),
            frequency=1,
            related_jobs=1,
            frequency_percentage=10.0,
            priority=priority,
        )

    def test_missing_skills_and_by_priority(self):
        analysis = GapAnalysis(gaps=[self._gap("docker", "high"), self._gap("sql", "low")])

        assert analysis.missing_skills == ["docker", "sql"]
        assert [g.skill for g in analysis.by_priority("low")] == ["sql"]

    def test_defaults(self):
        analysis = GapAnalysis()
        assert analysis.gaps == []
        assert analysis.summary.average_match_score == 0.0

    def test_invalid_priority(self):
        with pytest.raises(ValidationError):
            self._gap("docker", "urgent")
