"""Corpus skill-gap aggregator - prioritized learning plan across many jobs."""

import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .config import DEFAULT_SCORING, TRACK_GAP_LIMIT, ScoringConfig
from .matcher import calculate_match
from .models import GapAnalysis, GapSummary, JobPosting, Priority, Profile, SkillGapEntry
from .skills import SkillMatcher, normalize


def filter_jobs_by_track(jobs: list[JobPosting], track_filter: str | None) -> list[JobPosting]:
    """Keep jobs whose track contains *track_filter* (case-insensitive).

    The filter is matched literally; regex metacharacters in user input are
    escaped.  An empty filter keeps everything.
    """
    if not track_filter or not track_filter.strip():
        return list(jobs)
    pattern = re.compile(re.escape(track_filter.strip()), re.IGNORECASE)
    return [job for job in jobs if job.track and pattern.search(job.track)]


def classify_priority(frequency: int, corpus_size: int, config: ScoringConfig = DEFAULT_SCORING) -> Priority:
    """Map a missing-frequency ratio onto high / medium / low."""
    if corpus_size <= 0:
        return "low"
    # Compare as products to avoid float error at the exact boundaries.
    scaled = frequency * 100
    if scaled >= config.high_priority_threshold * corpus_size:
        return "high"
    if scaled >= config.medium_priority_threshold * corpus_size:
        return "medium"
    return "low"


@dataclass
class _GapTally:
    """Partial aggregation over a slice of the corpus; merged in slice order."""

    frequency: Counter = field(default_factory=Counter)
    job_ids: dict[str, set[str]] = field(default_factory=dict)
    display_names: dict[str, str] = field(default_factory=dict)
    required: set[str] = field(default_factory=set)
    score_total: int = 0
    jobs_seen: int = 0

    def add(self, job_key: str, job: JobPosting, missing_skills: list[str], score: int) -> None:
        self.jobs_seen += 1
        self.score_total += score
        self.required.update(normalize(s) for s in job.required_skills)
        for skill in missing_skills:
            key = normalize(skill)
            self.frequency[key] += 1
            self.job_ids.setdefault(key, set()).add(job_key)
            self.display_names.setdefault(key, skill)

    def merge(self, other: "_GapTally") -> "_GapTally":
        self.frequency.update(other.frequency)
        for key, ids in other.job_ids.items():
            self.job_ids.setdefault(key, set()).update(ids)
        for key, name in other.display_names.items():
            self.display_names.setdefault(key, name)
        self.required |= other.required
        self.score_total += other.score_total
        self.jobs_seen += other.jobs_seen
        return self


def _tally(
    profile: Profile,
    indexed_jobs: list[tuple[int, JobPosting]],
    config: ScoringConfig,
    matcher: SkillMatcher | None,
) -> _GapTally:
    tally = _GapTally()
    for index, job in indexed_jobs:
        result = calculate_match(profile, job, config, matcher)
        job_key = job.id or f"#{index}"
        tally.add(job_key, job, result.missing_skills, result.match_score)
    return tally


def _chunks(items: list, count: int) -> list[list]:
    size = -(-len(items) // count)
    return [items[i : i + size] for i in range(0, len(items), size)]


def _gap_entries(tally: _GapTally, corpus_size: int, config: ScoringConfig) -> list[SkillGapEntry]:
    entries = [
        SkillGapEntry(
            skill=skill,
            display_name=tally.display_names[skill],
            frequency=count,
            related_jobs=len(tally.job_ids[skill]),
            frequency_percentage=round(count / corpus_size * 100, 2),
            priority=classify_priority(count, corpus_size, config),
        )
        for skill, count in tally.frequency.items()
    ]
    entries.sort(key=lambda e: (-e.frequency, e.skill))
    return entries


def aggregate_gaps(
    profile: Profile,
    jobs: list[JobPosting],
    track_filter: str | None = None,
    config: ScoringConfig = DEFAULT_SCORING,
    matcher: SkillMatcher | None = None,
    max_workers: int = 1,
) -> GapAnalysis:
    """
    Aggregate missing-skill frequency over a job corpus.

    Args:
        profile: Candidate profile.
        jobs: Job corpus (a snapshot; not mutated).
        track_filter: Optional case-insensitive partial match on ``job.track``.
        config: Weights and priority thresholds.
        matcher: Skill comparison strategy (substring rule by default).
        max_workers: Score slices of the corpus in parallel when > 1; partial
            tallies are merged afterwards, so the result is unchanged.

    Returns:
        Gaps sorted by frequency descending then skill name, track-specific
        gaps for the profile's preferred track, and summary figures.  An
        empty corpus gives zero counts and an average score of 0.
    """
    corpus = filter_jobs_by_track(jobs, track_filter)
    indexed = list(enumerate(corpus))

    if max_workers > 1 and len(indexed) > 1:
        parts = _chunks(indexed, min(max_workers, len(indexed)))
        with ThreadPoolExecutor(max_workers=len(parts)) as executor:
            partials = list(executor.map(lambda part: _tally(profile, part, config, matcher), parts))
        tally = _GapTally()
        for partial in partials:
            tally.merge(partial)
    else:
        tally = _tally(profile, indexed, config, matcher)

    corpus_size = len(corpus)
    gaps = _gap_entries(tally, corpus_size, config) if corpus_size else []

    track_gaps: list[SkillGapEntry] = []
    if profile.preferred_track and corpus_size:
        in_track = [
            (i, job) for i, job in indexed if job.track and normalize(job.track) == normalize(profile.preferred_track)
        ]
        if in_track:
            track_tally = _tally(profile, in_track, config, matcher)
            track_gaps = _gap_entries(track_tally, len(in_track), config)[:TRACK_GAP_LIMIT]

    summary = GapSummary(
        total_jobs_analyzed=corpus_size,
        total_skills_required=len(tally.required),
        skills_you_have=len(profile.skills),
        skills_to_learn=len(gaps),
        average_match_score=tally.score_total / corpus_size if corpus_size else 0.0,
    )
    return GapAnalysis(gaps=gaps, track_specific_gaps=track_gaps, summary=summary)
