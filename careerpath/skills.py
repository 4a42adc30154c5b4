"""Skill normalization and pluggable skill-matching strategies.

Every comparison between two skill strings goes through a ``SkillMatcher``
so the scorer, the gap aggregator and the resource recommender apply the
same rule.  The default is the bidirectional substring rule: two
normalized skills match when they are equal or one contains the other.
It tolerates "JS" vs "JavaScript"-style variants in free-text catalogs
and, knowingly, also matches "Java" with "JavaScript".
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import SequenceMatcher
from typing import Protocol, runtime_checkable


def normalize(skill: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return skill.strip().lower()


@runtime_checkable
class SkillMatcher(Protocol):
    """Decides whether two skill strings refer to the same skill."""

    name: str

    def matches(self, left: str, right: str) -> bool:
        """Return True if *left* and *right* match (inputs need not be normalized)."""
        ...


class SubstringSkillMatcher:
    """Equality or containment in either direction, after normalization."""

    name = "substring"

    def matches(self, left: str, right: str) -> bool:
        a, b = normalize(left), normalize(right)
        if not a or not b:
            return False
        return a == b or a in b or b in a


class ExactSkillMatcher:
    """Case- and whitespace-insensitive equality only."""

    name = "exact"

    def matches(self, left: str, right: str) -> bool:
        a, b = normalize(left), normalize(right)
        return bool(a) and a == b


class FuzzySkillMatcher:
    """Similarity ratio above a threshold (handles typos like 'Kubernets')."""

    name = "fuzzy"

    def __init__(self, threshold: float = 0.85) -> None:
        if not 0 < threshold <= 1:
            raise ValueError("threshold must be in (0, 1]")
        self.threshold = threshold

    def matches(self, left: str, right: str) -> bool:
        a, b = normalize(left), normalize(right)
        if not a or not b:
            return False
        return a == b or SequenceMatcher(None, a, b).ratio() >= self.threshold


DEFAULT_MATCHER: SkillMatcher = SubstringSkillMatcher()


def matches_any(skill: str, candidates: Iterable[str], matcher: SkillMatcher | None = None) -> bool:
    """Return True if *skill* matches at least one of *candidates*."""
    matcher = matcher or DEFAULT_MATCHER
    return any(matcher.matches(skill, other) for other in candidates)
