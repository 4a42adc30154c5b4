"""Keyed, TTL-evictable stores for chat sessions."""

import hashlib
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable

from supabase import Client

from . import db
from .config import MAX_SESSIONS, SESSION_TTL_HOURS
from .errors import InvalidInputError
from .models import ConversationSession

logger = logging.getLogger(__name__)

_KEY_SEPARATOR = "_"


def session_key(user_id: str, conversation_id: str) -> str:
    """Build the store key for one user's conversation."""
    if not user_id or not user_id.strip():
        raise InvalidInputError("user_id is required")
    if not conversation_id or not conversation_id.strip():
        raise InvalidInputError("conversation_id is required")
    return f"{user_id.strip()}{_KEY_SEPARATOR}{conversation_id.strip()}"


def new_conversation_id(user_id: str, now: datetime | None = None) -> str:
    """Generate a conversation id of the form ``conv_<user>_<millis>``."""
    now = now or datetime.now(timezone.utc)
    return f"conv_{user_id}_{int(now.timestamp() * 1000)}"


def short_hash(text: str) -> str:
    """Return a short SHA-256 hex digest."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


@runtime_checkable
class SessionStore(Protocol):
    """Storage for ``ConversationSession`` objects keyed by session key.

    ``get`` returns None for unknown or expired keys and hands out a copy,
    so a caller can build the next state without touching stored state
    until it calls ``put``.
    """

    def get(self, key: str) -> ConversationSession | None: ...

    def put(self, session: ConversationSession) -> None: ...

    def delete(self, key: str) -> bool: ...


class InMemorySessionStore:
    """Process-local session store with a TTL and a size cap."""

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS),
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._sessions: dict[str, ConversationSession] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _expired(self, session: ConversationSession, now: datetime) -> bool:
        return session.updated_at + self.ttl <= now

    def _evict_oldest(self) -> None:
        excess = len(self._sessions) - self.max_sessions
        if excess <= 0:
            return
        oldest = sorted(self._sessions.values(), key=lambda s: s.updated_at)[:excess]
        for session in oldest:
            del self._sessions[session.key]
            logger.debug("Evicted session %s (capacity)", short_hash(session.key))

    # ------------------------------------------------------------------
    # SessionStore
    # ------------------------------------------------------------------

    def get(self, key: str) -> ConversationSession | None:
        now = datetime.now(timezone.utc)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            if self._expired(session, now):
                del self._sessions[key]
                logger.debug("Evicted session %s (expired)", short_hash(key))
                return None
            return session.model_copy(deep=True)

    def put(self, session: ConversationSession) -> None:
        with self._lock:
            self._sessions[session.key] = session.model_copy(deep=True)
            self._evict_oldest()

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._sessions.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop every expired session; return how many were removed."""
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [key for key, s in self._sessions.items() if self._expired(s, now)]
            for key in expired:
                del self._sessions[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


class SupabaseSessionStore:
    """Sessions persisted in the ``chat_sessions`` table; rows older than the TTL are ignored."""

    def __init__(self, client: Client, ttl: timedelta = timedelta(hours=SESSION_TTL_HOURS)) -> None:
        self.client = client
        self.ttl = ttl

    def get(self, key: str) -> ConversationSession | None:
        since = datetime.now(timezone.utc) - self.ttl
        row = db.load_chat_session(self.client, key, updated_after=since.isoformat())
        if row is None:
            return None
        return ConversationSession(
            key=row["session_key"],
            briefing=row["briefing"],
            transcript=row.get("transcript") or [],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def put(self, session: ConversationSession) -> None:
        db.save_chat_session(
            self.client,
            {
                "session_key": session.key,
                "briefing": session.briefing,
                "transcript": [turn.model_dump() for turn in session.transcript],
                "created_at": session.created_at.isoformat(),
                "updated_at": session.updated_at.isoformat(),
            },
        )

    def delete(self, key: str) -> bool:
        return db.delete_chat_session(self.client, key)

    def purge_expired(self) -> int:
        since = datetime.now(timezone.utc) - self.ttl
        return db.purge_chat_sessions(self.client, older_than=since.isoformat())
