"""Chat context assembler - briefing construction and per-session turn handling."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone

from .config import CHAT_TIMEOUT_SECONDS
from .errors import InvalidInputError, SessionConflictError, UpstreamUnavailableError
from .llm import CompletionService
from .matcher import round_half_up
from .models import ChatTurn, ConversationSession, GapAnalysis, Profile
from .sessions import InMemorySessionStore, SessionStore, short_hash

logger = logging.getLogger(__name__)

MAX_MESSAGE_CHARS = 2000
HISTORY_WINDOW = 12
HIGH_PRIORITY_IN_BRIEFING = 5
MEDIUM_PRIORITY_IN_BRIEFING = 3

# Shown by presentation layers when a turn fails; never returned by the engine.
CHAT_FALLBACK_MESSAGE = "Sorry, I couldn't answer that right now. Please try again in a moment."

MENTOR_PERSONAS = {
    "career": (
        "You are CareerBot, a friendly and practical career mentor with years of hiring experience. "
        "Your main job is to help the user find and close their skill gaps."
    ),
    "technical": (
        "You are CareerBot, a senior technical mentor. Give clear, code-focused guidance on "
        "programming, system design and technical career growth."
    ),
    "general": (
        "You are CareerBot, a thoughtful coach. Give empathetic advice on productivity, "
        "work-life balance and personal development."
    ),
}

MENTOR_GUIDELINES = """**How to help:**
- Ground every answer in the skill gap analysis above. Start with HIGH priority skills, then MEDIUM.
- For each gap, explain why it matters for the user's track and suggest concrete resources, a small project, and a realistic timeline (e.g. "2-3 weeks of React basics").
- Acknowledge the skills the user already has. Be encouraging but realistic.
- Keep answers to 2-4 short paragraphs and ask a clarifying question when the goal is unclear.
- Never promise job offers or guaranteed outcomes; your advice is guidance only."""


def sanitize_message(message: str | None) -> str:
    """Strip and length-limit a user message; reject empty ones."""
    if message is None or not isinstance(message, str):
        raise InvalidInputError("Message text is required")
    text = message.strip()
    if not text:
        raise InvalidInputError("Message text is required")
    return text[:MAX_MESSAGE_CHARS]


def build_briefing(
    profile: Profile,
    analysis: GapAnalysis | None = None,
    resource_count: int = 0,
    persona: str = "career",
) -> str:
    """
    Build the system briefing that opens a mentor conversation.

    Args:
        profile: The user's profile.
        analysis: Gap analysis over the user's job corpus, if available.
        resource_count: Number of catalog resources covering at least one gap.
        persona: One of ``MENTOR_PERSONAS``.

    Returns:
        Markdown briefing for the completion service's system instruction.
    """
    if persona not in MENTOR_PERSONAS:
        raise InvalidInputError(f"Unknown persona '{persona}'")

    skills = ", ".join(profile.skills) if profile.skills else "No skills listed yet"
    lines = [
        MENTOR_PERSONAS[persona],
        "",
        "## User Context",
        f"- **Current Skills:** {skills}",
        f"- **Preferred Track:** {profile.preferred_track or 'Not specified'}",
        f"- **Experience Level:** {profile.experience_level or 'Not specified'}",
    ]

    if analysis is not None:
        high = [g.display_name for g in analysis.by_priority("high")[:HIGH_PRIORITY_IN_BRIEFING]]
        medium = [g.display_name for g in analysis.by_priority("medium")[:MEDIUM_PRIORITY_IN_BRIEFING]]
        if high or medium:
            lines += ["", "## Skill Gap Analysis"]
            if high:
                lines.append(f"- **High Priority Skills to Learn:** {', '.join(high)}")
            if medium:
                lines.append(f"- **Medium Priority Skills:** {', '.join(medium)}")
            lines.append(f"- **Skills You Have:** {analysis.summary.skills_you_have}")
            lines.append(f"- **Skills to Learn:** {analysis.summary.skills_to_learn}")
            lines.append(f"- **Average Job Match Score:** {round_half_up(analysis.summary.average_match_score)}%")
            if resource_count:
                lines.append(f"- **Available Learning Resources:** {resource_count}")

    lines += ["", MENTOR_GUIDELINES]
    return "\n".join(lines)


class _KeyedLocks:
    """One ``threading.Lock`` per session key, dropped once no turn holds or waits on it."""

    def __init__(self) -> None:
        # key -> [lock, number of turns holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._guard = threading.Lock()

    def acquire(self, key: str, wait: float) -> bool:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock = entry[0]
        acquired = lock.acquire(timeout=wait) if wait > 0 else lock.acquire(blocking=False)
        if not acquired:
            self._unref(key)
        return acquired

    def release(self, key: str) -> None:
        self._locks[key][0].release()
        self._unref(key)

    def _unref(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class ChatAssembler:
    """Runs mentor conversations, one turn at a time per session key.

    A session is created on the first message for its key (the briefing is
    built then) and stays active until the store evicts it.  A turn only
    advances the transcript when the completion service answers in time;
    on failure nothing is stored and the caller retries the whole turn.
    """

    def __init__(
        self,
        completion: CompletionService,
        store: SessionStore | None = None,
        briefing_factory: Callable[[Profile], str] | None = None,
        timeout: float = CHAT_TIMEOUT_SECONDS,
        lock_wait: float = 0.0,
        history_window: int | None = HISTORY_WINDOW,
        max_concurrent_turns: int = 8,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.completion = completion
        self.store = store if store is not None else InMemorySessionStore()
        self.briefing_factory = briefing_factory or build_briefing
        self.timeout = timeout
        self.lock_wait = lock_wait
        self.history_window = history_window
        self._locks = _KeyedLocks()
        self._executor = ThreadPoolExecutor(max_workers=max_concurrent_turns, thread_name_prefix="careerpath-chat")

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _acquire(self, key: str) -> None:
        if not self._locks.acquire(key, self.lock_wait):
            raise SessionConflictError(key)

    def _history(self, session: ConversationSession) -> list[ChatTurn]:
        if self.history_window is None:
            return list(session.transcript)
        if self.history_window <= 0:
            return []
        return session.transcript[-self.history_window :]

    def _complete(self, session: ConversationSession, text: str) -> str:
        future = self._executor.submit(self.completion.complete, session.briefing, self._history(session), text)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            logger.warning("Chat turn for session %s timed out after %ss", short_hash(session.key), self.timeout)
            raise UpstreamUnavailableError(f"AI mentor did not answer within {self.timeout}s") from e
        except UpstreamUnavailableError:
            raise
        except Exception as e:
            logger.exception("Chat turn for session %s failed", short_hash(session.key))
            raise UpstreamUnavailableError(f"Failed to get response from the AI mentor: {e}") from e

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def send_chat_turn(self, session_key: str, profile: Profile, message: str) -> str:
        """
        Send one user message and return the assistant's reply.

        Raises:
            InvalidInputError: Empty message or missing session key.
            SessionConflictError: Another turn for this key is in flight.
            UpstreamUnavailableError: The completion service failed or timed
                out; the session is left exactly as it was.
        """
        if not session_key:
            raise InvalidInputError("session_key is required")
        text = sanitize_message(message)

        self._acquire(session_key)
        try:
            session = self.store.get(session_key)
            if session is None:
                session = ConversationSession(key=session_key, briefing=self.briefing_factory(profile))
                logger.info("Opened chat session %s", short_hash(session_key))

            reply = self._complete(session, text)

            session.transcript.append(ChatTurn(role="user", text=text))
            session.transcript.append(ChatTurn(role="assistant", text=reply))
            session.updated_at = datetime.now(timezone.utc)
            self.store.put(session)
            return reply
        finally:
            self._locks.release(session_key)

    def get_history(self, session_key: str) -> list[ChatTurn]:
        """Return the transcript for *session_key* (empty if no active session)."""
        session = self.store.get(session_key)
        return list(session.transcript) if session else []

    def clear_session(self, session_key: str) -> bool:
        """Forget a conversation. Returns True if a session existed."""
        self._acquire(session_key)
        try:
            return self.store.delete(session_key)
        finally:
            self._locks.release(session_key)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
