"""Unit tests for call session persistence."""
import pytest
from datetime import datetime

from alumni_voice.services.call_session.models import CallSession, MentorSelectionFlow
from alumni_voice.services.call_session.stages import CallStatus, CallType
from alumni_voice.services.call_session.store import SqlCallSessionStore
from alumni_voice.services.errors import ConcurrentTurnError
from alumni_voice.services.intent.memory import MentorRef


class TestCallSessionStore:
    """Test the SQL call session store."""

    @pytest.mark.asyncio
    async def test_create_session(self, test_db):
        """Test creating a new session."""
        store = SqlCallSessionStore(test_db)

        session = await store.create(CallSession(id="CA-create"))

        assert session.id == "CA-create"
        assert session.status == CallStatus.INITIATED
        assert session.call_type == CallType.INBOUND
        assert session.version == 1

    @pytest.mark.asyncio
    async def test_create_session_idempotent(self, test_db):
        """Test that creating the same call twice returns the stored session."""
        store = SqlCallSessionStore(test_db)

        await store.create(CallSession(id="CA-twice", call_type=CallType.REMINDER))
        again = await store.create(CallSession(id="CA-twice"))

        assert again.call_type == CallType.REMINDER

    @pytest.mark.asyncio
    async def test_load_unknown(self, test_db):
        """Test loading a call that was never stored."""
        store = SqlCallSessionStore(test_db)

        assert await store.load("CA-missing") is None

    @pytest.mark.asyncio
    async def test_save_round_trips_context(self, test_db):
        """Test that memory, sub-flow and transcript survive a save and reload."""
        store = SqlCallSessionStore(test_db)
        session = await store.create(CallSession(id="CA-ctx"))

        mentor = MentorRef(name="Priya Sharma", user_id="mentor-priya")
        session.authenticate("user-asha", "Asha Rao")
        session.context.memory.last_mentors = [mentor]
        session.context.flow = MentorSelectionFlow(candidates=[mentor])
        session.add_transcript_turn("caller", "find mentors")
        session.add_transcript_turn("agent", "I found 1 mentors.")
        await store.save(session)

        loaded = await store.load("CA-ctx")

        assert loaded.status == CallStatus.AUTHENTICATED
        assert loaded.user_id == "user-asha"
        assert loaded.context.memory.user_name == "Asha Rao"
        assert isinstance(loaded.context.flow, MentorSelectionFlow)
        assert loaded.context.flow.candidates[0].user_id == "mentor-priya"
        assert loaded.transcript == ["caller: find mentors", "agent: I found 1 mentors."]
        assert loaded.version == 2

    @pytest.mark.asyncio
    async def test_stale_save_rejected(self, test_db):
        """Test that two turns loaded at the same version cannot both save."""
        store = SqlCallSessionStore(test_db)
        await store.create(CallSession(id="CA-race"))

        first = await store.load("CA-race")
        second = await store.load("CA-race")

        first.status = CallStatus.GREETING
        await store.save(first)

        second.status = CallStatus.GREETING
        with pytest.raises(ConcurrentTurnError):
            await store.save(second)

        assert (await store.load("CA-race")).version == 2

    @pytest.mark.asyncio
    async def test_complete_session(self, test_db):
        """Test completing a session records summary and duration."""
        store = SqlCallSessionStore(test_db)
        session = await store.create(CallSession(id="CA-done", started_at=datetime(2026, 1, 1, 10, 0, 0)))

        session.authenticate("user-asha", "Asha Rao")
        session.context.handled_intents.append("find_mentors")
        session.complete(ended_at=datetime(2026, 1, 1, 10, 2, 5))
        await store.save(session)

        loaded = await store.load("CA-done")
        assert loaded.is_terminal
        assert loaded.duration_seconds == 125
        assert loaded.summary == "Call with Asha Rao; intents: find_mentors."
        assert loaded.context.memory.last_mentors == []

    @pytest.mark.asyncio
    async def test_list_recent(self, test_db):
        """Test newest sessions are listed first."""
        store = SqlCallSessionStore(test_db)
        await store.create(CallSession(id="CA-old", started_at=datetime(2026, 1, 1)))
        await store.create(CallSession(id="CA-new", started_at=datetime(2026, 2, 1)))

        records = await store.list_recent(limit=10)

        assert [r.call_sid for r in records] == ["CA-new", "CA-old"]
        assert records[0].action_logs == []


class TestCallSessionModel:
    """Test invariants of the call session model."""

    def test_authenticated_status_requires_user(self):
        """Test that an authenticated status without a user is rejected."""
        with pytest.raises(ValueError):
            CallSession(id="CA-x", status=CallStatus.AUTHENTICATED)

    def test_summary_without_actions(self):
        session = CallSession(id="CA-y")
        assert session.build_summary() == "Call with unauthenticated caller; no actions taken."
