"""Unit tests for the SQL-backed agent tools."""
import pytest
from datetime import datetime
from sqlalchemy import func, select

from alumni_voice.db.models import EventRsvp, Notification, Post, Profile
from alumni_voice.services.errors import UnknownToolError
from alumni_voice.services.tools.agent_tools import format_event_date


class TestAuthenticateUser:
    """Test the authenticate_user tool."""

    @pytest.mark.asyncio
    async def test_valid_code(self, gateway):
        result = await gateway.invoke("authenticate_user", {"access_code": "614203"})

        assert result["success"] is True
        assert result["user_id"] == "user-asha"
        assert result["user_name"] == "Asha Rao"
        assert result["current_skills"] == ["Python", "SQL"]

    @pytest.mark.asyncio
    async def test_expired_code(self, gateway):
        result = await gateway.invoke("authenticate_user", {"access_code": "222222"})

        assert result == {"success": False, "message": "Invalid or expired access code. Please try again."}


class TestFindMentors:
    """Test the find_mentors tool."""

    @pytest.mark.asyncio
    async def test_filter_by_skill(self, gateway):
        result = await gateway.invoke("find_mentors", {"skill_area": "data science"})

        names = [m["name"] for m in result["mentors"]]
        assert names == ["Priya Sharma", "Arjun Mehta"]
        assert result["mentors"][0]["number"] == 1
        assert result["message"] == "Found 2 mentors."

    @pytest.mark.asyncio
    async def test_filter_by_bio(self, gateway):
        """Test keywords also match the mentor's bio."""
        result = await gateway.invoke("find_mentors", {"skill_area": "recommendation"})

        assert [m["user_id"] for m in result["mentors"]] == ["mentor-arjun"]

    @pytest.mark.asyncio
    async def test_no_match_falls_back_to_all(self, gateway):
        """Test an unmatched skill returns every mentor instead of nothing."""
        result = await gateway.invoke("find_mentors", {"skill_area": "underwater basket weaving"})

        assert len(result["mentors"]) == 3


class TestUpdateSkills:
    """Test the update_skills tool."""

    @pytest.mark.asyncio
    async def test_merge_without_duplicates(self, gateway, seeded_db):
        result = await gateway.invoke("update_skills", {"user_id": "user-asha", "new_skills": ["Python", "Rust"]})

        assert result["success"] is True
        assert result["all_skills"] == ["Python", "SQL", "Rust"]
        assert result["message"] == "Skills updated. Added: Python, Rust. Total skills: 3."

        profile = (await seeded_db.execute(select(Profile).where(Profile.user_id == "user-asha"))).scalar_one()
        assert profile.skills == ["Python", "SQL", "Rust"]

    @pytest.mark.asyncio
    async def test_missing_params(self, gateway):
        result = await gateway.invoke("update_skills", {"user_id": "user-asha"})

        assert result["success"] is False


class TestListings:
    """Test opportunity and event listings."""

    @pytest.mark.asyncio
    async def test_opportunities_newest_first(self, gateway):
        result = await gateway.invoke("check_opportunities", {})

        companies = [o["company"] for o in result["opportunities"]]
        assert companies == ["Zerodha", "Razorpay", "Swiggy", "Deloitte"]
        assert result["opportunities"][1]["location"] == "Remote"

    @pytest.mark.asyncio
    async def test_events_upcoming_only(self, gateway):
        result = await gateway.invoke("check_events", {})

        assert [e["id"] for e in result["events"]] == ["evt-networking", "evt-genai"]
        assert result["events"][1]["location"] == "Virtual"

    def test_event_date_format(self):
        assert format_event_date(datetime(2026, 3, 6, 15, 0)) == "Friday, March 6 at 3:00 PM"


class TestWrites:
    """Test tools that write to the platform."""

    @pytest.mark.asyncio
    async def test_schedule_mentorship_notifies_mentor(self, gateway, seeded_db):
        result = await gateway.invoke(
            "schedule_mentorship",
            {"user_id": "user-asha", "mentor_user_id": "mentor-priya", "mentor_name": "Priya Sharma"},
        )

        assert result["success"] is True
        assert result["event_id"]
        notes = (await seeded_db.execute(
            select(Notification).where(Notification.user_id == "mentor-priya")
        )).scalars().all()
        assert len(notes) == 1

    @pytest.mark.asyncio
    async def test_send_message_unknown_recipient(self, gateway):
        result = await gateway.invoke(
            "send_message", {"sender_id": "user-asha", "recipient_name": "Zed", "message": "hi"}
        )

        assert result == {"success": False, "message": 'Could not find anyone named "Zed".'}

    @pytest.mark.asyncio
    async def test_rsvp_is_idempotent(self, gateway, seeded_db):
        """Test RSVPing twice keeps one attendance row."""
        params = {"user_id": "user-asha", "event_id": "evt-networking"}
        await gateway.invoke("rsvp_event", params)
        result = await gateway.invoke("rsvp_event", params)

        assert result["message"] == "You've been RSVP'd to Alumni Networking Night."
        count = (await seeded_db.execute(select(func.count()).select_from(EventRsvp))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_rsvp_unknown_event(self, gateway):
        result = await gateway.invoke("rsvp_event", {"user_id": "user-asha", "event_id": "evt-nope"})

        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_create_post(self, content_store, seeded_db):
        post = await content_store.create_post("user-asha", "Hiring interns this summer")

        assert post["user_id"] == "user-asha"
        stored = await seeded_db.get(Post, post["id"])
        assert stored.content == "Hiring interns this summer"


class TestProfileAndDispatch:
    """Test profile lookup and tool dispatch."""

    @pytest.mark.asyncio
    async def test_get_profile(self, gateway):
        result = await gateway.invoke("get_profile", {"user_id": "user-asha"})

        assert result["profile"]["full_name"] == "Asha Rao"
        assert result["profile"]["engagement_score"] == 42

    @pytest.mark.asyncio
    async def test_get_unknown_profile(self, gateway):
        result = await gateway.invoke("get_profile", {"user_id": "user-nobody"})

        assert result == {"profile": None, "message": "Profile not found."}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, gateway):
        with pytest.raises(UnknownToolError) as exc_info:
            await gateway.invoke("delete_everything", {})

        assert "find_mentors" in exc_info.value.available_tools
