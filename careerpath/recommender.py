"""Resource recommender - ranks catalog entries by how many gaps they cover."""

from collections.abc import Iterable

from .config import INLINE_RESOURCE_LIMIT
from .errors import InvalidInputError
from .models import LearningResource, MatchResult, RankedResource
from .skills import SkillMatcher, matches_any, normalize


def _identity(resource: LearningResource) -> str:
    return resource.id or resource.url or f"{resource.title}|{resource.platform}"


def recommend_resources(
    missing_skills: Iterable[str],
    catalog: list[LearningResource],
    limit: int,
    matcher: SkillMatcher | None = None,
) -> list[RankedResource]:
    """
    Rank catalog resources by overlap with a set of missing skills.

    Args:
        missing_skills: Skills to learn (any spelling; normalized here).
        catalog: Learning resources in catalog order.
        limit: Maximum number of results (15 for full-catalog analysis,
            4 for inline per-job display).
        matcher: Skill comparison strategy (substring rule by default).

    Returns:
        Resources with at least one overlapping skill, each at most once,
        sorted by overlap count descending; ties keep catalog order.
    """
    if limit is None or limit < 0:
        raise InvalidInputError(f"limit must be a non-negative integer, got {limit!r}")

    gaps = sorted({normalize(s) for s in missing_skills if s and s.strip()})
    if not gaps or limit == 0:
        return []

    ranked: list[RankedResource] = []
    seen: set[str] = set()
    for resource in catalog:
        identity = _identity(resource)
        if identity in seen:
            continue
        seen.add(identity)
        hits = [skill for skill in resource.related_skills if matches_any(skill, gaps, matcher)]
        if hits:
            ranked.append(RankedResource(resource=resource, overlap_count=len(hits), matched_skills=hits))

    # list.sort is stable, so equal overlap counts keep catalog order
    ranked.sort(key=lambda r: r.overlap_count, reverse=True)
    return ranked[:limit]


def recommend_for_match(
    match: MatchResult,
    catalog: list[LearningResource],
    limit: int = INLINE_RESOURCE_LIMIT,
    matcher: SkillMatcher | None = None,
) -> list[RankedResource]:
    """Resources for the skills one job says the candidate is missing."""
    return recommend_resources(match.missing_skills, catalog, limit, matcher)
