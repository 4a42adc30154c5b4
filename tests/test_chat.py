"""Tests for careerpath.chat — briefing construction and session turn handling."""

import threading

import pytest

from careerpath.chat import (
    MAX_MESSAGE_CHARS,
    ChatAssembler,
    build_briefing,
    sanitize_message,
)
from careerpath.errors import InvalidInputError, SessionConflictError, UpstreamUnavailableError
from careerpath.gap_analyzer import aggregate_gaps
from careerpath.models import ChatTurn, JobPosting, Profile
from careerpath.sessions import InMemorySessionStore


class FakeCompletion:
    """Records every call and answers from a script (or echoes)."""

    def __init__(self, replies: list | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[tuple[str, list[ChatTurn], str]] = []

    def complete(self, system_briefing: str, transcript: list[ChatTurn], new_message: str) -> str:
        self.calls.append((system_briefing, list(transcript), new_message))
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return f"echo: {new_message}"


class BlockingCompletion:
    """Blocks inside ``complete`` until released."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    def complete(self, system_briefing: str, transcript: list[ChatTurn], new_message: str) -> str:
        self.started.set()
        self.release.wait(timeout=5)
        return "done"


@pytest.fixture()
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


class TestSanitizeMessage:
    def test_strips(self):
        assert sanitize_message("  hello  ") == "hello"

    def test_truncates(self):
        assert len(sanitize_message("x" * (MAX_MESSAGE_CHARS + 50))) == MAX_MESSAGE_CHARS

    @pytest.mark.parametrize("message", ["", "   ", None])
    def test_empty_rejected(self, message):
        with pytest.raises(InvalidInputError, match="Message text is required"):
            sanitize_message(message)


class TestBuildBriefing:
    def test_profile_context(self, frontend_profile: Profile):
        briefing = build_briefing(frontend_profile)

        assert "## User Context" in briefing
        assert "- **Current Skills:** React, CSS" in briefing
        assert "- **Preferred Track:** Frontend" in briefing
        assert "- **Experience Level:** Junior" in briefing
        assert "## Skill Gap Analysis" not in briefing

    def test_empty_profile(self):
        briefing = build_briefing(Profile())

        assert "No skills listed yet" in briefing
        assert "- **Preferred Track:** Not specified" in briefing

    def test_gap_section(self, python_profile: Profile, docker_corpus: list[JobPosting]):
        analysis = aggregate_gaps(python_profile, docker_corpus)

        briefing = build_briefing(python_profile, analysis, resource_count=3)

        assert "- **High Priority Skills to Learn:** Docker" in briefing
        assert "- **Medium Priority Skills:** SQL" in briefing
        assert "- **Skills to Learn:** 2" in briefing
        assert "- **Average Job Match Score:** 66%" in briefing
        assert "- **Available Learning Resources:** 3" in briefing

    def test_no_gap_section_without_high_or_medium(self, docker_corpus: list[JobPosting]):
        analysis = aggregate_gaps(Profile(skills=["Python", "Docker", "SQL"]), docker_corpus)

        assert "## Skill Gap Analysis" not in build_briefing(Profile(), analysis)

    def test_personas(self, frontend_profile: Profile):
        assert "technical mentor" in build_briefing(frontend_profile, persona="technical")
        with pytest.raises(InvalidInputError, match="Unknown persona"):
            build_briefing(frontend_profile, persona="pirate")


class TestChatAssembler:
    def test_first_turn_creates_session(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = FakeCompletion(["Hi Ada!"])
        assembler = ChatAssembler(completion, store=store)

        assert assembler.send_chat_turn("u1_c1", frontend_profile, "Hello") == "Hi Ada!"

        briefing, transcript, message = completion.calls[0]
        assert "React, CSS" in briefing
        assert transcript == []
        assert message == "Hello"
        assert [t.role for t in store.get("u1_c1").transcript] == ["user", "assistant"]

    def test_second_turn_sees_prior_exchange(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = FakeCompletion(["one", "two"])
        assembler = ChatAssembler(completion, store=store)

        assembler.send_chat_turn("u1_c1", frontend_profile, "first")
        assembler.send_chat_turn("u1_c1", frontend_profile, "second")

        _, transcript, message = completion.calls[1]
        assert [(t.role, t.text) for t in transcript] == [("user", "first"), ("assistant", "one")]
        assert message == "second"
        assert len(store.get("u1_c1").transcript) == 4

    def test_briefing_built_once_per_session(self, store: InMemorySessionStore, frontend_profile: Profile):
        built: list[str] = []

        def factory(profile: Profile) -> str:
            built.append(profile.id)
            return "static briefing"

        assembler = ChatAssembler(FakeCompletion(), store=store, briefing_factory=factory)
        assembler.send_chat_turn("u1_c1", frontend_profile, "a")
        assembler.send_chat_turn("u1_c1", frontend_profile, "b")
        assembler.send_chat_turn("u1_c2", frontend_profile, "c")

        assert built == ["user-1", "user-1"]

    def test_sessions_are_isolated(self, store: InMemorySessionStore, frontend_profile: Profile):
        assembler = ChatAssembler(FakeCompletion(), store=store)

        assembler.send_chat_turn("u1_c1", frontend_profile, "a")
        assembler.send_chat_turn("u2_c1", frontend_profile, "b")

        assert [t.text for t in assembler.get_history("u1_c1")] == ["a", "echo: a"]
        assert [t.text for t in assembler.get_history("u2_c1")] == ["b", "echo: b"]

    def test_failure_leaves_state_unchanged(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = FakeCompletion(["ok", UpstreamUnavailableError("down")])
        assembler = ChatAssembler(completion, store=store)
        assembler.send_chat_turn("u1_c1", frontend_profile, "first")

        with pytest.raises(UpstreamUnavailableError):
            assembler.send_chat_turn("u1_c1", frontend_profile, "second")

        assert [t.text for t in store.get("u1_c1").transcript] == ["first", "ok"]

    def test_failed_first_turn_creates_nothing(self, store: InMemorySessionStore, frontend_profile: Profile):
        assembler = ChatAssembler(FakeCompletion([UpstreamUnavailableError("down")]), store=store)

        with pytest.raises(UpstreamUnavailableError):
            assembler.send_chat_turn("u1_c1", frontend_profile, "hi")

        assert store.get("u1_c1") is None

    def test_unexpected_error_wrapped(self, store: InMemorySessionStore, frontend_profile: Profile):
        assembler = ChatAssembler(FakeCompletion([RuntimeError("boom")]), store=store)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            assembler.send_chat_turn("u1_c1", frontend_profile, "hi")

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_timeout(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = BlockingCompletion()
        assembler = ChatAssembler(completion, store=store, timeout=0.05)
        try:
            with pytest.raises(UpstreamUnavailableError, match="did not answer"):
                assembler.send_chat_turn("u1_c1", frontend_profile, "hi")
            assert store.get("u1_c1") is None
        finally:
            completion.release.set()
            assembler.close()

    def test_concurrent_turn_conflicts(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = BlockingCompletion()
        assembler = ChatAssembler(completion, store=store)
        replies: list[str] = []
        worker = threading.Thread(
            target=lambda: replies.append(assembler.send_chat_turn("u1_c1", frontend_profile, "first"))
        )
        worker.start()
        assert completion.started.wait(timeout=5)

        try:
            with pytest.raises(SessionConflictError) as exc_info:
                assembler.send_chat_turn("u1_c1", frontend_profile, "second")
            assert exc_info.value.session_key == "u1_c1"
        finally:
            completion.release.set()
            worker.join(timeout=5)

        assert replies == ["done"]
        assert len(store.get("u1_c1").transcript) == 2

    def test_other_keys_run_while_one_is_in_flight(self, store: InMemorySessionStore, frontend_profile: Profile):
        slow = BlockingCompletion()
        fast = FakeCompletion(["quick"])

        class Router:
            def complete(self, system_briefing, transcript, new_message):
                target = slow if new_message == "first" else fast
                return target.complete(system_briefing, transcript, new_message)

        assembler = ChatAssembler(Router(), store=store)
        worker = threading.Thread(target=assembler.send_chat_turn, args=("u1_c1", frontend_profile, "first"))
        worker.start()
        assert slow.started.wait(timeout=5)

        try:
            assert assembler.send_chat_turn("u2_c1", frontend_profile, "hi") == "quick"
            assert worker.is_alive()
            assert store.get("u1_c1") is None
        finally:
            slow.release.set()
            worker.join(timeout=5)

        assert len(store.get("u1_c1").transcript) == 2

    def test_lock_table_bounded_by_turns_in_flight(self, frontend_profile: Profile):
        store = InMemorySessionStore(max_sessions=10)
        assembler = ChatAssembler(FakeCompletion(), store=store)
        for i in range(200):
            assembler.send_chat_turn(f"u{i}_c1", frontend_profile, "hi")

        assert len(store) == 10
        assert len(assembler._locks) == 0

    def test_lock_entry_dropped_after_conflict(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = BlockingCompletion()
        assembler = ChatAssembler(completion, store=store)
        worker = threading.Thread(target=assembler.send_chat_turn, args=("u1_c1", frontend_profile, "first"))
        worker.start()
        assert completion.started.wait(timeout=5)

        try:
            with pytest.raises(SessionConflictError):
                assembler.send_chat_turn("u1_c1", frontend_profile, "second")
            assert len(assembler._locks) == 1
        finally:
            completion.release.set()
            worker.join(timeout=5)

        assert len(assembler._locks) == 0
        assert assembler.send_chat_turn("u1_c1", frontend_profile, "third") == "done"

    def test_history_window(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = FakeCompletion()
        assembler = ChatAssembler(completion, store=store, history_window=2)
        for text in ("a", "b", "c"):
            assembler.send_chat_turn("u1_c1", frontend_profile, text)

        _, transcript, _ = completion.calls[-1]
        assert [t.text for t in transcript] == ["b", "echo: b"]
        assert len(assembler.get_history("u1_c1")) == 6

    def test_empty_message_rejected_before_any_call(self, store: InMemorySessionStore, frontend_profile: Profile):
        completion = FakeCompletion()
        assembler = ChatAssembler(completion, store=store)

        with pytest.raises(InvalidInputError):
            assembler.send_chat_turn("u1_c1", frontend_profile, "   ")

        assert completion.calls == []
        assert store.get("u1_c1") is None

    def test_missing_key_rejected(self, frontend_profile: Profile):
        with pytest.raises(InvalidInputError):
            ChatAssembler(FakeCompletion()).send_chat_turn("", frontend_profile, "hi")

    def test_clear_session(self, store: InMemorySessionStore, frontend_profile: Profile):
        assembler = ChatAssembler(FakeCompletion(), store=store)
        assembler.send_chat_turn("u1_c1", frontend_profile, "hi")

        assert assembler.clear_session("u1_c1") is True
        assert assembler.get_history("u1_c1") == []
        assert assembler.clear_session("u1_c1") is False

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            ChatAssembler(FakeCompletion(), timeout=0)
