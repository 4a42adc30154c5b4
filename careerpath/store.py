"""Document-store interface and implementations.

The engine reads profiles, jobs and resources through the ``DocumentStore``
protocol so it does not depend on a particular database or query language.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError
from supabase import Client

from . import db
from .errors import UpstreamUnavailableError
from .models import JobPosting, LearningResource, Profile

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@runtime_checkable
class DocumentStore(Protocol):
    """Filtered bulk reads over the platform's documents."""

    def find_jobs(self, track: str | None = None, limit: int | None = None) -> list[JobPosting]:
        """Return job postings, optionally where the track contains *track*.

        Raises:
            UpstreamUnavailableError: The store could not be reached or returned a malformed row.
        """
        ...

    def find_resources(self, limit: int | None = None) -> list[LearningResource]:
        """Return learning resources in catalog order."""
        ...

    def find_profile(self, profile_id: str) -> Profile | None:
        """Return a profile by id, or None if it does not exist."""
        ...


class InMemoryDocumentStore:
    """Store over plain lists (fixtures, CLI input files)."""

    def __init__(
        self,
        jobs: list[JobPosting] | None = None,
        resources: list[LearningResource] | None = None,
        profiles: list[Profile] | None = None,
    ) -> None:
        self.jobs = list(jobs or [])
        self.resources = list(resources or [])
        self.profiles = {p.id: p for p in profiles or []}

    def find_jobs(self, track: str | None = None, limit: int | None = None) -> list[JobPosting]:
        jobs = self.jobs
        track = (track or "").strip()
        if track:
            pattern = re.compile(re.escape(track), re.IGNORECASE)
            jobs = [job for job in jobs if job.track and pattern.search(job.track)]
        return jobs[:limit] if limit is not None else list(jobs)

    def find_resources(self, limit: int | None = None) -> list[LearningResource]:
        return self.resources[:limit] if limit is not None else list(self.resources)

    def find_profile(self, profile_id: str) -> Profile | None:
        return self.profiles.get(profile_id)


class SupabaseDocumentStore:
    """Reads the ``jobs``, ``resources`` and ``profiles`` tables."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def find_jobs(self, track: str | None = None, limit: int | None = None) -> list[JobPosting]:
        rows = db.find_jobs(self.client, track=track, limit=limit)
        logger.debug("Loaded %d jobs (track=%r)", len(rows), track)
        return _to_models(JobPosting, rows, "job")

    def find_resources(self, limit: int | None = None) -> list[LearningResource]:
        rows = db.find_resources(self.client, limit=limit)
        return _to_models(LearningResource, rows, "resource")

    def find_profile(self, profile_id: str) -> Profile | None:
        row = db.find_profile(self.client, profile_id)
        return _to_models(Profile, [row], "profile")[0] if row else None


def _row_fields(row: dict) -> dict:
    """Drop NULL columns so model defaults apply, and coerce ids to str."""
    fields = {key: value for key, value in row.items() if value is not None}
    if "id" in fields:
        fields["id"] = str(fields["id"])
    return fields


def _to_models(model: type[ModelT], rows: list[dict], kind: str) -> list[ModelT]:
    """Build models from rows; a malformed row is reported as a store failure."""
    try:
        return [model(**_row_fields(row)) for row in rows]
    except ValidationError as e:
        raise UpstreamUnavailableError(f"Store returned a malformed {kind} row: {e}") from e
