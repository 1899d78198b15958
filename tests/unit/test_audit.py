"""Unit tests for the action audit log."""
import pytest

from alumni_voice.services.audit.log import AuditLog, SqlAuditSink, summarize
from alumni_voice.services.call_session.models import CallSession
from alumni_voice.services.call_session.store import SqlCallSessionStore


class TestSummarize:
    """Test request and response summaries."""

    def test_dict_is_sorted_json(self):
        assert summarize({"b": 1, "a": "x"}) == '{"a": "x", "b": 1}'

    def test_string_passes_through(self):
        assert summarize("inactive access code") == "inactive access code"

    def test_truncation(self):
        text = summarize("x" * 600)

        assert len(text) == 500
        assert text.endswith("...")


class TestSqlAuditSink:
    """Test audit entries written to the database."""

    @pytest.mark.asyncio
    async def test_record_and_list(self, test_db):
        await SqlCallSessionStore(test_db).create(CallSession(id="CA-audit"))
        sink = SqlAuditSink(test_db)
        audit = AuditLog(sink, "CA-audit")

        await audit.record("check_events", endpoint="GET /events?upcoming=true", request={}, response_status=200)
        await audit.record("rsvp_event", endpoint="POST /event_rsvps", request={"event_id": "e1"}, response_status=200)

        entries = await sink.list_for_call("CA-audit")
        assert [e.action for e in entries] == ["check_events", "rsvp_event"]
        assert entries[1].request_summary == '{"event_id": "e1"}'
        assert entries[0].response_summary is None

    @pytest.mark.asyncio
    async def test_entries_are_immutable(self, test_db):
        await SqlCallSessionStore(test_db).create(CallSession(id="CA-frozen"))
        sink = SqlAuditSink(test_db)
        await AuditLog(sink, "CA-frozen").record("get_profile", response_status=200)

        entry = (await sink.list_for_call("CA-frozen"))[0]

        with pytest.raises(Exception):
            entry.action = "update_skills"

    @pytest.mark.asyncio
    async def test_other_calls_not_listed(self, test_db):
        store = SqlCallSessionStore(test_db)
        await store.create(CallSession(id="CA-one"))
        await store.create(CallSession(id="CA-two"))
        sink = SqlAuditSink(test_db)

        await AuditLog(sink, "CA-one").record("get_profile", response_status=200)

        assert await sink.list_for_call("CA-two") == []
