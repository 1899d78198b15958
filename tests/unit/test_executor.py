"""Unit tests for the intent executor."""
import json
import pytest
from typing import Any, Dict, List

from alumni_voice.services.audit.log import ActionAuditEntry, AuditLog, AuditSink
from alumni_voice.services.errors import ExecutionFailed, Transient
from alumni_voice.services.intent.executor import IntentExecutor
from alumni_voice.services.intent.memory import ConversationMemory
from alumni_voice.services.tools.base import ContentStore, DomainGateway


class RecordingGateway(DomainGateway):
    """Gateway returning canned results and remembering every call."""

    def __init__(self, results: Dict[str, Any] = None, error: Exception = None):
        self.results = results or {}
        self.error = error
        self.calls: List[tuple] = []

    async def invoke(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((tool_name, parameters))
        if self.error is not None:
            raise self.error
        return self.results.get(tool_name, {"success": True, "message": "Done."})


class RecordingContentStore(ContentStore):
    def __init__(self):
        self.posts = []

    async def create_post(self, user_id: str, content: str) -> Dict[str, Any]:
        self.posts.append((user_id, content))
        return {"id": len(self.posts), "user_id": user_id, "content": content}


class ListAuditSink(AuditSink):
    def __init__(self):
        self.entries: List[ActionAuditEntry] = []

    async def append(self, entry: ActionAuditEntry) -> None:
        self.entries.append(entry)


class BrokenAuditSink(AuditSink):
    async def append(self, entry: ActionAuditEntry) -> None:
        raise RuntimeError("audit store unavailable")


MENTORS_RESULT = {
    "mentors": [
        {"number": 1, "name": "Priya Sharma", "designation": "Senior Data Scientist",
         "company": "Infosys", "skills": "Data Science", "user_id": "mentor-priya"},
        {"number": 2, "name": "Arjun Mehta", "designation": "ML Engineer",
         "company": "Google", "skills": "Deep Learning", "user_id": "mentor-arjun"},
    ],
    "message": "Found 2 mentors.",
}


@pytest.fixture
def sink():
    return ListAuditSink()


@pytest.fixture
def memory():
    return ConversationMemory(user_id="user-asha", user_name="Asha Rao")


def make_executor(gateway, sink, content_store=None, user_resolver=None):
    return IntentExecutor(
        gateway,
        content_store or RecordingContentStore(),
        AuditLog(sink, "CA-exec"),
        user_resolver=user_resolver,
    )


class TestExecution:
    """Test successful executions."""

    @pytest.mark.asyncio
    async def test_find_mentors_replaces_memory(self, sink, memory):
        """Test a mentor search replaces the remembered mentor list."""
        gateway = RecordingGateway({"find_mentors": MENTORS_RESULT})
        executor = make_executor(gateway, sink)

        result = await executor.execute("find_mentors", {"skill_area": "data science"}, memory)

        assert result.success
        assert result.response.startswith("I found 2 mentors. Priya Sharma, Senior Data Scientist at Infosys.")
        assert [m.user_id for m in memory.last_mentors] == ["mentor-priya", "mentor-arjun"]
        assert memory.last_topic == "data science"

    @pytest.mark.asyncio
    async def test_user_id_injected(self, sink, memory):
        """Test user-scoped tools receive the caller's id."""
        gateway = RecordingGateway()
        executor = make_executor(gateway, sink)

        await executor.execute("update_skills", {"new_skills": ["Rust"]}, memory)

        assert gateway.calls == [("update_skills", {"new_skills": ["Rust"], "user_id": "user-asha"})]
        assert memory.skills_added == ["Rust"]

    @pytest.mark.asyncio
    async def test_sender_id_injected(self, sink, memory):
        gateway = RecordingGateway()
        executor = make_executor(gateway, sink)

        await executor.execute("send_message", {"recipient_name": "Ravi", "message": "hi"}, memory)

        _, params = gateway.calls[0]
        assert params["sender_id"] == "user-asha"

    @pytest.mark.asyncio
    async def test_create_post_uses_content_store(self, sink, memory):
        """Test posts bypass the tool gateway."""
        gateway = RecordingGateway()
        store = RecordingContentStore()
        executor = make_executor(gateway, sink, content_store=store)

        result = await executor.execute("create_post", {"content": "Excited to join the alumni board"}, memory)

        assert gateway.calls == []
        assert store.posts == [("user-asha", "Excited to join the alumni board")]
        assert result.response == 'Your post has been published: "Excited to join the alumni board"'

    @pytest.mark.asyncio
    async def test_tool_reported_failure(self, sink, memory):
        """Test a tool result with success false is not a success and leaves memory alone."""
        gateway = RecordingGateway(
            {"update_skills": {"success": False, "message": "Profile not found."}}
        )
        executor = make_executor(gateway, sink)

        result = await executor.execute("update_skills", {"new_skills": ["Rust"]}, memory)

        assert not result.success
        assert result.response == "Profile not found."
        assert memory.skills_added == []
        assert sink.entries[0].response_status == 422

    @pytest.mark.asyncio
    async def test_user_resolved_lazily(self, sink):
        """Test the acting user is resolved once when memory has none."""
        gateway = RecordingGateway(
            {"get_profile": {"profile": {"full_name": "Asha Rao"}, "message": "Profile for Asha Rao."}}
        )
        calls = []

        async def resolver():
            calls.append(1)
            return "user-asha"

        executor = make_executor(gateway, sink, user_resolver=resolver)
        memory = ConversationMemory()

        await executor.execute("check_events", {}, memory)
        await executor.execute("check_events", {}, memory)

        assert memory.user_id == "user-asha"
        assert memory.user_name == "Asha Rao"
        assert calls == [1]


class TestErrorMapping:
    """Test gateway failures become fixed spoken messages."""

    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (401, "It looks like your session has expired. Please log in again."),
            (403, "You don't have permission to perform that action."),
            (429, "The system is busy right now. Let me try again in a moment."),
            (503, "I encountered an issue processing that request. Please try again in a moment."),
        ],
    )
    @pytest.mark.asyncio
    async def test_status_messages(self, sink, memory, status_code, expected):
        gateway = RecordingGateway(error=ExecutionFailed.from_status(status_code, "upstream said no"))
        executor = make_executor(gateway, sink)

        result = await executor.execute("check_opportunities", {}, memory)

        assert not result.success
        assert result.response == expected
        assert "upstream said no" not in result.response
        assert sink.entries[0].response_status == status_code

    @pytest.mark.asyncio
    async def test_unexpected_error(self, sink, memory):
        """Test an unexpected exception is spoken as a transient failure."""
        gateway = RecordingGateway(error=KeyError("mentors"))
        executor = make_executor(gateway, sink)

        result = await executor.execute("find_mentors", {}, memory)

        assert not result.success
        assert result.response == Transient.spoken_message
        assert sink.entries[0].response_status == 500


class TestAuditing:
    """Test every execution is audited."""

    @pytest.mark.asyncio
    async def test_one_entry_per_execution(self, sink, memory):
        """Test repeating an intent appends a second entry."""
        gateway = RecordingGateway({"find_mentors": MENTORS_RESULT})
        executor = make_executor(gateway, sink)

        await executor.execute("find_mentors", {"skill_area": "data science"}, memory)
        await executor.execute("find_mentors", {"skill_area": "data science"}, memory)

        assert len(sink.entries) == 2
        entry = sink.entries[0]
        assert entry.call_id == "CA-exec"
        assert entry.action == "find_mentors"
        assert entry.endpoint == "GET /profiles?is_mentor=true"
        assert entry.response_status == 200
        assert json.loads(entry.request_summary) == {"skill_area": "data science"}

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_fail_turn(self, memory):
        """Test a failing audit sink does not change the result."""
        gateway = RecordingGateway({"find_mentors": MENTORS_RESULT})
        executor = make_executor(gateway, BrokenAuditSink())

        result = await executor.execute("find_mentors", {}, memory)

        assert result.success
        assert len(memory.last_mentors) == 2
