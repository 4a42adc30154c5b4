"""Single-job match scorer - deterministic, rule-based profile/job fit."""

import math
import re

from .config import DEFAULT_SCORING, ScoringConfig
from .errors import InvalidInputError
from .models import JobPosting, JobRecommendation, MatchResult, Profile
from .skills import SkillMatcher, matches_any, normalize

EXPERIENCE_LADDER = ("fresher", "junior", "mid", "senior")

# Free-text spellings seen in profiles and postings, mapped onto the ladder.
_EXPERIENCE_ALIASES = {
    "fresher": ("fresher", "entry", "intern", "internship", "graduate", "beginner"),
    "junior": ("junior", "jr"),
    "mid": ("mid", "intermediate"),
    "senior": ("senior", "sr", "lead", "principal", "staff", "expert", "cto"),
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def experience_rank(level: str | None) -> int | None:
    """Return the ladder index of a free-text experience level, or None if unknown."""
    if not level:
        return None
    text = normalize(level)
    if text in EXPERIENCE_LADDER:
        return EXPERIENCE_LADDER.index(text)
    words = set(re.findall(r"[a-z]+", text))
    for rank, name in enumerate(EXPERIENCE_LADDER):
        if words.intersection(_EXPERIENCE_ALIASES[name]):
            return rank
    return None


def _skill_partition(
    profile_skills: list[str], required_skills: list[str], matcher: SkillMatcher | None
) -> tuple[list[str], list[str]]:
    matched: list[str] = []
    missing: list[str] = []
    seen: set[str] = set()
    for skill in required_skills:
        key = normalize(skill)
        if not key or key in seen:
            continue
        seen.add(key)
        if matches_any(skill, profile_skills, matcher):
            matched.append(skill)
        else:
            missing.append(skill)
    return matched, missing


def _experience_score(profile: Profile, job: JobPosting, config: ScoringConfig) -> tuple[int, bool, bool]:
    """Return (score, meets requirement, both levels known)."""
    have = experience_rank(profile.experience_level)
    need = experience_rank(job.experience_level)
    if have is None or need is None:
        return config.neutral_score, False, False
    if have >= need:
        return 100, True, True
    return _clamp(100 - (need - have) * config.experience_tier_penalty), False, True


def _track_score(profile: Profile, job: JobPosting) -> tuple[int, bool]:
    preferred = normalize(profile.preferred_track or "")
    track = normalize(job.track or "")
    if not preferred or not track:
        return 100, False
    if preferred == track:
        return 100, True
    return 0, False


def _match_reasons(
    profile: Profile,
    matched: list[str],
    total: int,
    experience_score: int,
    experience_known: bool,
    track_match: bool,
) -> list[str]:
    reasons: list[str] = []
    if total == 0:
        reasons.append("No specific skills required")
    elif len(matched) == total:
        reasons.append(f"Matches all {total} required skills")
    else:
        shown = ", ".join(matched[:3]) + ("..." if len(matched) > 3 else "")
        reason = f"Matches {len(matched)} out of {total} required skills"
        reasons.append(f"{reason}: {shown}" if matched else reason)

    if not experience_known:
        reasons.append("Experience level not specified")
    elif experience_score == 100:
        reasons.append("Experience level aligned")
    elif experience_score > 0:
        reasons.append("Experience level partially aligned")
    else:
        reasons.append("Experience level mismatch")

    if track_match:
        reasons.append(f"Fits your preferred track: {profile.preferred_track}")
    return reasons[:3]


def calculate_match(
    profile: Profile,
    job: JobPosting,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
) -> MatchResult:
    """
    Score how well *profile* fits *job*.

    Args:
        profile: Candidate profile.
        job: Job posting to score against.
        config: Weights and experience penalties.
        matcher: Skill comparison strategy (substring rule by default).

    Returns:
        Match result with sub-scores, skill partition and reasons.
    """
    if profile is None or job is None:
        raise InvalidInputError("Both a profile and a job are required")

    matched, missing = _skill_partition(profile.skills, job.required_skills, matcher)
    total = len(matched) + len(missing)
    skill_score = 100 if total == 0 else round_half_up(len(matched) / total * 100)

    experience_score, experience_match, experience_known = _experience_score(profile, job, config)
    track_score, track_match = _track_score(profile, job)

    weighted = (
        skill_score * config.skill_weight
        + experience_score * config.experience_weight
        + track_score * config.track_weight
    ) / config.total_weight

    return MatchResult(
        # absorb float noise so x.5 always rounds up
        match_score=_clamp(round_half_up(round(weighted, 6))),
        skill_match_score=skill_score,
        experience_match_score=experience_score,
        track_match_score=track_score,
        matched_skills=matched,
        missing_skills=missing,
        experience_match=experience_match,
        track_match=track_match,
        match_reasons=_match_reasons(
            profile, matched, total, experience_score, experience_known, track_match
        ),
    )


def recommend_jobs(
    profile: Profile,
    jobs: list[JobPosting],
    min_score: int = 0,
    limit: int | None = None,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
) -> list[JobRecommendation]:
    """Score every job, keep those with ``match_score >= min_score``, best first.

    Equal scores keep corpus order.
    """
    if limit is not None and limit < 0:
        raise InvalidInputError(f"limit must be non-negative, got {limit}")
    scored = [JobRecommendation(job=job, match=calculate_match(profile, job, config, matcher)) for job in jobs]
    kept = [rec for rec in scored if rec.match.match_score >= min_score]
    kept.sort(key=lambda rec: rec.match.match_score, reverse=True)
    return kept if limit is None else kept[:limit]
