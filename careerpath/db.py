"""Supabase database layer for CareerPath."""

import os
from typing import Any

from supabase import Client, create_client

from .errors import UpstreamUnavailableError


def get_client() -> Client:
    """Create a read-only Supabase client (anon / publishable key).

    Uses SUPABASE_URL + SUPABASE_KEY.
    """
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_KEY"]
    return create_client(url, key)


def get_admin_client() -> Client:
    """Create a Supabase client with the service-role key (bypasses RLS).

    Uses SUPABASE_URL + SUPABASE_SERVICE_KEY.
    Required for writes to ``chat_sessions``.
    """
    url = os.environ["SUPABASE_URL"]
    key = os.environ["SUPABASE_SERVICE_KEY"]
    return create_client(url, key)


def _execute(query: Any, action: str) -> list[dict]:
    """Run a query builder and return its rows.

    Transport errors and error payloads both become ``UpstreamUnavailableError``
    so callers can tell "no data" from "store down".
    """
    try:
        result = query.execute()
    except Exception as e:
        raise UpstreamUnavailableError(f"Failed to {action}: {e}") from e
    error = getattr(result, "error", None)
    if error:
        raise UpstreamUnavailableError(f"Failed to {action}: {error}")
    return result.data or []


# ---------------------------------------------------------------------------
# Catalog reads
# ---------------------------------------------------------------------------

def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_jobs(client: Client, track: str | None = None, limit: int | None = None) -> list[dict]:
    """Return job rows, optionally where ``track`` contains *track* (case-insensitive)."""
    query = client.table("jobs").select("*")
    track = (track or "").strip()
    if track:
        query = query.ilike("track", f"%{_escape_like(track)}%")
    query = query.order("created_at")
    if limit is not None:
        query = query.limit(limit)
    return _execute(query, "load jobs")


def find_resources(client: Client, limit: int | None = None) -> list[dict]:
    """Return learning-resource rows in catalog (insertion) order."""
    query = client.table("resources").select("*").order("created_at")
    if limit is not None:
        query = query.limit(limit)
    return _execute(query, "load resources")


def find_profile(client: Client, profile_id: str) -> dict | None:
    """Return a profile row by id, or None if not found."""
    rows = _execute(client.table("profiles").select("*").eq("id", profile_id), "load profile")
    return rows[0] if rows else None


# ---------------------------------------------------------------------------
# Chat sessions
# ---------------------------------------------------------------------------

def load_chat_session(client: Client, session_key: str, updated_after: str) -> dict | None:
    """Return the session row for *session_key* if it was touched after *updated_after*."""
    rows = _execute(
        client.table("chat_sessions").select("*").eq("session_key", session_key).gt("updated_at", updated_after),
        "load chat session",
    )
    return rows[0] if rows else None


def save_chat_session(client: Client, row: dict) -> None:
    """Insert or replace a session row (keyed by ``session_key``)."""
    _execute(client.table("chat_sessions").upsert(row, on_conflict="session_key"), "save chat session")


def delete_chat_session(client: Client, session_key: str) -> bool:
    """Delete one session. Returns True if a row was removed."""
    rows = _execute(client.table("chat_sessions").delete().eq("session_key", session_key), "delete chat session")
    return bool(rows)


def purge_chat_sessions(client: Client, older_than: str) -> int:
    """Delete sessions not updated since *older_than*. Returns the number deleted."""
    rows = _execute(client.table("chat_sessions").delete().lt("updated_at", older_than), "purge chat sessions")
    return len(rows)
