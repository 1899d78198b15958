"""SQL-backed implementation of the shared agent tool surface."""
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.db.models import Event, EventRsvp, Message, Notification, Opportunity, Post, Profile
from alumni_voice.services.auth.access_codes import AccessCodeAuthenticator, SqlAccessCodeStore
from alumni_voice.services.errors import AuthenticationFailed, UnknownToolError
from alumni_voice.services.tools.base import AVAILABLE_TOOLS, ContentStore, DomainGateway

logger = logging.getLogger(__name__)

MENTOR_LIMIT = 5
LIST_LIMIT = 5
SESSION_LEAD_TIME = timedelta(days=1)


def format_event_date(value: datetime) -> str:
    """Spoken form of an event start, e.g. 'Friday, March 6 at 3:00 PM'."""
    time_str = value.strftime("%I:%M %p").lstrip("0")
    return f"{value.strftime('%A, %B')} {value.day} at {time_str}"


class AgentToolsGateway(DomainGateway):
    """Runs agent tools directly against the platform database."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
            "authenticate_user": self.authenticate_user,
            "find_mentors": self.find_mentors,
            "update_skills": self.update_skills,
            "check_opportunities": self.check_opportunities,
            "check_events": self.check_events,
            "schedule_mentorship": self.schedule_mentorship,
            "send_message": self.send_message,
            "rsvp_event": self.rsvp_event,
            "get_profile": self.get_profile,
        }

    async def invoke(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(tool_name, AVAILABLE_TOOLS)
        logger.info(f"[AGENT TOOLS] Invoking {tool_name} with params: {sorted((parameters or {}).keys())}")
        return await handler(parameters or {})

    async def _get_profile_row(self, user_id: Optional[str]) -> Optional[Profile]:
        if not user_id:
            return None
        result = await self.db.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def authenticate_user(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(self.db))
        try:
            access = await authenticator.check_code(str(parameters.get("access_code") or ""), self.clock())
        except AuthenticationFailed:
            return {"success": False, "message": "Invalid or expired access code. Please try again."}

        profile = await self._get_profile_row(access.user_id)
        return {
            "success": True,
            "user_id": access.user_id,
            "user_name": profile.full_name if profile else "User",
            "current_skills": (profile.skills or []) if profile else [],
            "company": (profile.company or "") if profile else "",
            "designation": (profile.designation or "") if profile else "",
        }

    async def find_mentors(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        skill_area = parameters.get("skill_area")
        result = await self.db.execute(
            select(Profile).where(Profile.is_mentor.is_(True)).order_by(Profile.id).limit(MENTOR_LIMIT)
        )
        mentors: List[Profile] = list(result.scalars().all())

        if not mentors:
            return {"mentors": [], "message": "No mentors available right now."}

        filtered = mentors
        if skill_area:
            keyword = str(skill_area).lower()
            filtered = [
                m for m in mentors
                if any(keyword in s.lower() for s in (m.skills or []))
                or keyword in (m.bio or "").lower()
            ]
            if not filtered:
                filtered = mentors

        return {
            "mentors": [
                {
                    "number": i + 1,
                    "name": m.full_name,
                    "designation": m.designation or "Professional",
                    "company": m.company or "Independent",
                    "skills": ", ".join((m.skills or [])[:5]),
                    "user_id": m.user_id,
                }
                for i, m in enumerate(filtered)
            ],
            "message": f"Found {len(filtered)} mentors.",
        }

    async def update_skills(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        user_id = parameters.get("user_id")
        new_skills = parameters.get("new_skills")
        if not user_id or not new_skills or not isinstance(new_skills, list):
            return {"success": False, "message": "user_id and new_skills array required."}

        profile = await self._get_profile_row(user_id)
        if profile is None:
            return {"success": False, "message": "Profile not found."}

        merged = list(dict.fromkeys([*(profile.skills or []), *new_skills]))
        profile.skills = merged
        await self.db.commit()

        return {
            "success": True,
            "message": f"Skills updated. Added: {', '.join(new_skills)}. Total skills: {len(merged)}.",
            "all_skills": merged,
        }

    async def check_opportunities(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.db.execute(
            select(Opportunity)
            .where(Opportunity.is_active.is_(True))
            .order_by(Opportunity.created_at.desc(), Opportunity.id.desc())
            .limit(LIST_LIMIT)
        )
        opps = result.scalars().all()
        return {
            "opportunities": [
                {
                    "number": i + 1,
                    "title": o.title,
                    "company": o.company,
                    "type": o.type,
                    "location": o.location or "Remote",
                    "salary": o.salary_range or "Not specified",
                    "employment_type": o.employment_type or "Full-time",
                }
                for i, o in enumerate(opps)
            ],
            "message": f"Found {len(opps)} active opportunities." if opps else "No active opportunities right now.",
        }

    async def check_events(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.db.execute(
            select(Event)
            .where(Event.start_date >= self.clock())
            .order_by(Event.start_date)
            .limit(LIST_LIMIT)
        )
        events = result.scalars().all()
        return {
            "events": [
                {
                    "number": i + 1,
                    "title": e.title,
                    "date": format_event_date(e.start_date),
                    "location": "Virtual" if e.is_virtual else (e.location or "TBD"),
                    "type": e.event_type,
                    "id": e.id,
                }
                for i, e in enumerate(events)
            ],
            "message": f"Found {len(events)} upcoming events." if events else "No upcoming events.",
        }

    async def schedule_mentorship(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        user_id = parameters.get("user_id")
        mentor_user_id = parameters.get("mentor_user_id")
        mentor_name = parameters.get("mentor_name") or "the mentor"
        preferred_time = parameters.get("preferred_time")
        if not user_id or not mentor_user_id:
            return {"success": False, "message": "user_id and mentor_user_id required."}

        event = Event(
            title=f"Mentorship: {parameters.get('mentor_name') or 'Mentor'}",
            start_date=self.clock() + SESSION_LEAD_TIME,
            event_type="mentoring",
            created_by=user_id,
            is_virtual=True,
            description=f"Voice-scheduled mentorship session. Preferred time: {preferred_time or 'flexible'}",
        )
        self.db.add(event)
        self.db.add(
            Notification(
                user_id=mentor_user_id,
                title="New mentorship request",
                body=f"A mentorship session was requested for {preferred_time or 'a flexible time'}.",
            )
        )
        await self.db.commit()

        when = f" for {preferred_time}" if preferred_time else ""
        return {
            "success": True,
            "event_id": event.id,
            "message": (
                f"Mentorship session with {mentor_name} has been scheduled{when}. "
                f"Details will appear in the dashboard."
            ),
        }

    async def send_message(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        sender_id = parameters.get("sender_id")
        recipient_name = parameters.get("recipient_name")
        message = parameters.get("message")
        if not sender_id or not recipient_name or not message:
            return {"success": False, "message": "sender_id, recipient_name, and message required."}

        result = await self.db.execute(
            select(Profile).where(Profile.full_name.ilike(f"%{recipient_name}%")).order_by(Profile.id).limit(1)
        )
        recipient = result.scalar_one_or_none()
        if recipient is None:
            return {"success": False, "message": f'Could not find anyone named "{recipient_name}".'}

        sender = await self._get_profile_row(sender_id)
        self.db.add(Message(sender_id=sender_id, receiver_id=recipient.user_id, content=f"[Voice message] {message}"))
        self.db.add(
            Notification(
                user_id=recipient.user_id,
                title="New message",
                body=f"New voice message from {sender.full_name if sender else 'an alumni member'}.",
            )
        )
        await self.db.commit()

        return {"success": True, "message": f"Message sent to {recipient.full_name}."}

    async def rsvp_event(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        user_id = parameters.get("user_id")
        event_id = parameters.get("event_id")
        if not user_id or not event_id:
            return {"success": False, "message": "user_id and event_id required."}

        event = await self.db.get(Event, str(event_id))
        if event is None:
            return {"success": False, "message": "Event not found."}

        result = await self.db.execute(
            select(EventRsvp).where(EventRsvp.user_id == user_id, EventRsvp.event_id == event.id)
        )
        rsvp = result.scalar_one_or_none()
        if rsvp is None:
            self.db.add(EventRsvp(user_id=user_id, event_id=event.id, status="attending"))
        else:
            rsvp.status = "attending"
        await self.db.commit()

        return {"success": True, "message": f"You've been RSVP'd to {event.title}."}

    async def get_profile(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        profile = await self._get_profile_row(parameters.get("user_id"))
        if profile is None:
            return {"profile": None, "message": "Profile not found."}
        return {
            "profile": {
                "full_name": profile.full_name,
                "skills": profile.skills or [],
                "company": profile.company,
                "designation": profile.designation,
                "bio": profile.bio,
                "location": profile.location,
                "interests": profile.interests or [],
                "experience_years": profile.experience_years,
                "engagement_score": profile.engagement_score,
            },
            "message": f"Profile for {profile.full_name}.",
        }


class SqlContentStore(ContentStore):
    """Writes feed posts straight to the posts table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_post(self, user_id: str, content: str) -> Dict[str, Any]:
        post = Post(user_id=user_id, content=content)
        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)
        return {"id": post.id, "user_id": post.user_id, "content": post.content}
