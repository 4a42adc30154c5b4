"""Caller-facing API of the matching and skill-gap engine.

The free functions are pure and safe to call from many threads.
``CareerEngine`` adds the document store and the chat assembler.
"""

import logging
from collections.abc import Iterable

from .chat import ChatAssembler, build_briefing
from .config import (
    CHAT_CONTEXT_JOB_LIMIT,
    CHAT_CONTEXT_RESOURCE_LIMIT,
    DEFAULT_SCORING,
    FULL_CATALOG_RESOURCE_LIMIT,
    ScoringConfig,
)
from .errors import InvalidInputError, UpstreamUnavailableError
from .gap_analyzer import aggregate_gaps
from .llm import CompletionService
from .matcher import calculate_match
from .matcher import recommend_jobs as _recommend_jobs
from .models import (
    ChatTurn,
    GapAnalysis,
    JobPosting,
    JobRecommendation,
    LearningResource,
    MatchResult,
    Profile,
    RankedResource,
)
from .recommender import recommend_resources as _recommend_resources
from .sessions import SessionStore
from .skills import SkillMatcher
from .store import DocumentStore

logger = logging.getLogger(__name__)


def score_job(
    profile: Profile,
    job: JobPosting,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
) -> MatchResult:
    """Score one job posting against a profile."""
    return calculate_match(profile, job, config, matcher)


def analyze_gaps(
    profile: Profile,
    jobs: list[JobPosting],
    track_filter: str | None = None,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
    max_workers: int = 1,
) -> GapAnalysis:
    """Prioritized skill gaps for *profile* across *jobs*."""
    if profile is None:
        raise InvalidInputError("A profile is required")
    if jobs is None:
        raise InvalidInputError("A job list is required (it may be empty)")
    return aggregate_gaps(profile, jobs, track_filter, config, matcher, max_workers)


def recommend_resources(
    missing_skills: Iterable[str],
    catalog: list[LearningResource],
    limit: int = FULL_CATALOG_RESOURCE_LIMIT,
    matcher: SkillMatcher | None = None,
) -> list[RankedResource]:
    """Catalog resources ranked by how many of *missing_skills* they cover."""
    return _recommend_resources(missing_skills, catalog, limit, matcher)


def recommend_jobs(
    profile: Profile,
    jobs: list[JobPosting],
    min_score: int = 0,
    limit: int | None = None,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
) -> list[JobRecommendation]:
    """Jobs ranked by match score, best first."""
    return _recommend_jobs(profile, jobs, min_score, limit, config, matcher)


class CareerEngine:
    """Wires the pure engine to a document store and a chat assembler."""

    def __init__(
        self,
        store: DocumentStore,
        completion: CompletionService,
        session_store: SessionStore | None = None,
        config: ScoringConfig = DEFAULT_SCORING,
        matcher: SkillMatcher | None = None,
        persona: str = "career",
        **assembler_options,
    ) -> None:
        self.store = store
        self.config = config
        self.matcher = matcher
        self.persona = persona
        self.assembler = ChatAssembler(
            completion,
            store=session_store,
            briefing_factory=self._build_briefing,
            **assembler_options,
        )

    def analyze_profile(
        self,
        profile_id: str,
        track_filter: str | None = None,
        resource_limit: int = FULL_CATALOG_RESOURCE_LIMIT,
    ) -> tuple[GapAnalysis, list[RankedResource]]:
        """
        Load a profile and its corpus from the store and analyze it.

        Raises:
            InvalidInputError: The profile does not exist.
            UpstreamUnavailableError: The store could not be read.
        """
        profile = self.store.find_profile(profile_id)
        if profile is None:
            raise InvalidInputError(f"Profile '{profile_id}' not found")
        jobs = self.store.find_jobs(track=track_filter)
        analysis = analyze_gaps(profile, jobs, track_filter, self.config, self.matcher)
        if not analysis.gaps:
            return analysis, []
        resources = self.store.find_resources()
        ranked = recommend_resources(analysis.missing_skills, resources, resource_limit, self.matcher)
        return analysis, ranked

    def _build_briefing(self, profile: Profile) -> str:
        try:
            jobs = self.store.find_jobs(track=profile.preferred_track, limit=CHAT_CONTEXT_JOB_LIMIT)
            analysis = analyze_gaps(profile, jobs, None, self.config, self.matcher)
            resource_count = 0
            if analysis.gaps:
                resources = self.store.find_resources(limit=CHAT_CONTEXT_RESOURCE_LIMIT)
                resource_count = len(
                    recommend_resources(analysis.missing_skills, resources, len(resources), self.matcher)
                )
        except UpstreamUnavailableError:
            logger.warning("Skill gap context unavailable, briefing without it", exc_info=True)
            return build_briefing(profile, persona=self.persona)
        return build_briefing(profile, analysis, resource_count, persona=self.persona)

    def send_chat_turn(self, session_key: str, profile: Profile, message: str) -> str:
        """Send one message to the mentor and return its reply."""
        if profile is None:
            raise InvalidInputError("A profile is required")
        return self.assembler.send_chat_turn(session_key, profile, message)

    def get_history(self, session_key: str) -> list[ChatTurn]:
        return self.assembler.get_history(session_key)

    def clear_session(self, session_key: str) -> bool:
        return self.assembler.clear_session(session_key)
