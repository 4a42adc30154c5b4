"""Pydantic models for CareerPath data structures."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Priority = Literal["high", "medium", "low"]


def _clean_skill_list(skills: list[str]) -> list[str]:
    """Strip whitespace, drop blanks and case-insensitive duplicates (first spelling wins)."""
    seen: set[str] = set()
    cleaned: list[str] = []
    for skill in skills:
        stripped = skill.strip()
        key = stripped.lower()
        if not stripped or key in seen:
            continue
        seen.add(key)
        cleaned.append(stripped)
    return cleaned


class Profile(BaseModel):
    """Candidate attributes used for matching (read-only here)."""

    id: str = Field(default="", description="Identifier of the profile in the document store")
    name: str | None = Field(default=None, description="Display name")
    skills: list[str] = Field(default_factory=list, description="Skills, unique case-insensitively")
    preferred_track: str | None = Field(default=None, description="Preferred career track, e.g. 'Frontend'")
    experience_level: str | None = Field(default=None, description="Free-text level, e.g. 'Junior'")

    @field_validator("skills")
    @classmethod
    def _clean_skills(cls, value: list[str]) -> list[str]:
        return _clean_skill_list(value)


class JobPosting(BaseModel):
    """A job posting from the employer-side workflow."""

    id: str = Field(default="", description="Identifier of the posting in the document store")
    title: str = ""
    company: str = ""
    location: str = ""
    required_skills: list[str] = Field(default_factory=list, description="Skills the posting requires")
    track: str | None = Field(default=None, description="Career track label, e.g. 'Web Development'")
    experience_level: str | None = Field(default=None, description="Required level, e.g. 'Fresher'")
    job_type: str | None = Field(default=None, description="Internship, Part-time, Full-time or Freelance")
    description: str = ""
    salary: str | None = None
    application_link: str | None = None

    @field_validator("required_skills")
    @classmethod
    def _clean_skills(cls, value: list[str]) -> list[str]:
        return _clean_skill_list(value)


class LearningResource(BaseModel):
    """A learning-content catalog entry."""

    id: str = Field(default="", description="Identifier of the resource in the document store")
    title: str
    platform: str = ""
    url: str = ""
    related_skills: list[str] = Field(default_factory=list, description="Skills the resource teaches")
    cost: Literal["Free", "Paid"] = "Free"
    description: str | None = None
    duration: str | None = None
    level: Literal["Beginner", "Intermediate", "Advanced"] | None = None
    rating: float | None = Field(default=None, ge=0, le=5)

    @field_validator("related_skills")
    @classmethod
    def _clean_skills(cls, value: list[str]) -> list[str]:
        return _clean_skill_list(value)


class MatchResult(BaseModel):
    """Fit between one profile and one job posting."""

    match_score: int = Field(ge=0, le=100, description="Weighted overall score")
    skill_match_score: int = Field(ge=0, le=100)
    experience_match_score: int = Field(ge=0, le=100)
    track_match_score: int = Field(ge=0, le=100)
    matched_skills: list[str] = Field(default_factory=list, description="Required skills the profile has")
    missing_skills: list[str] = Field(default_factory=list, description="Required skills the profile lacks")
    experience_match: bool = False
    track_match: bool = False
    match_reasons: list[str] = Field(default_factory=list, description="At most three short explanations")


class JobRecommendation(BaseModel):
    """A job posting together with its match against a profile."""

    job: JobPosting
    match: MatchResult


class SkillGapEntry(BaseModel):
    """How often one (normalized) skill is missing across a job corpus."""

    skill: str = Field(description="Normalized skill key")
    display_name: str = Field(description="First spelling of the skill seen in the corpus")
    frequency: int = Field(ge=0, description="Number of jobs missing this skill")
    related_jobs: int = Field(ge=0, description="Number of distinct job ids missing this skill")
    frequency_percentage: float = Field(ge=0, le=100)
    priority: Priority


class GapSummary(BaseModel):
    """Corpus-level figures for a gap analysis."""

    total_jobs_analyzed: int = 0
    total_skills_required: int = 0
    skills_you_have: int = 0
    skills_to_learn: int = 0
    average_match_score: float = 0.0


class GapAnalysis(BaseModel):
    """Prioritized skill gaps for a profile across a job corpus."""

    gaps: list[SkillGapEntry] = Field(default_factory=list)
    track_specific_gaps: list[SkillGapEntry] = Field(
        default_factory=list, description="Gaps restricted to jobs in the profile's preferred track"
    )
    summary: GapSummary = Field(default_factory=GapSummary)

    @property
    def missing_skills(self) -> list[str]:
        return [gap.skill for gap in self.gaps]

    def by_priority(self, priority: Priority) -> list[SkillGapEntry]:
        return [gap for gap in self.gaps if gap.priority == priority]


class RankedResource(BaseModel):
    """A catalog resource annotated with how many missing skills it covers."""

    resource: LearningResource
    overlap_count: int = Field(ge=1)
    matched_skills: list[str] = Field(default_factory=list, description="Related skills that hit a gap")


class ChatTurn(BaseModel):
    """One message in a conversation transcript."""

    role: Literal["user", "assistant"]
    text: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSession(BaseModel):
    """Briefing and transcript of one user's conversation with the mentor."""

    key: str
    briefing: str
    transcript: list[ChatTurn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
