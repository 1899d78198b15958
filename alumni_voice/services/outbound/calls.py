"""Outbound reminder calls."""
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http import HttpClient
from twilio.rest import Client

from alumni_voice.core.config import settings
from alumni_voice.db.models import Event, Notification
from alumni_voice.services.audit.log import AuditLog, SqlAuditSink
from alumni_voice.services.call_session.models import CallSession
from alumni_voice.services.call_session.stages import CallStatus, CallType
from alumni_voice.services.call_session.store import SqlCallSessionStore
from alumni_voice.services.errors import ExecutionFailed

logger = logging.getLogger(__name__)

REMINDER_CONFIRMED = "Great! We'll connect you when the session starts. Thank you!"
REMINDER_RESCHEDULE = "I understand. We'll notify the other participant about the reschedule. Thank you!"
REMINDER_NO_RESPONSE = "I didn't receive a response. We'll assume you're available. See you soon!"


def format_start_time(value: Optional[datetime]) -> str:
    if value is None:
        return "shortly"
    return value.strftime("%I:%M %p").lstrip("0")


class TwilioCallClient:
    """Places outbound calls through the Twilio REST client."""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self.from_number = from_number or settings.twilio_phone_number
        self.client = Client(
            account_sid or settings.twilio_account_sid,
            auth_token or settings.twilio_auth_token,
            http_client=http_client,
        )

    async def place_call(
        self,
        to: str,
        twiml_url: str,
        status_callback: Optional[str] = None,
        recording_callback: Optional[str] = None,
    ) -> Dict[str, Any]:
        options: Dict[str, Any] = {"to": to, "from_": self.from_number, "url": twiml_url}
        if status_callback:
            options["status_callback"] = status_callback
        if recording_callback:
            options["record"] = True
            options["recording_status_callback"] = recording_callback

        # The REST client is blocking
        loop = asyncio.get_event_loop()
        try:
            call = await loop.run_in_executor(None, lambda: self.client.calls.create(**options))
        except TwilioRestException as e:
            logger.error(f"[OUTBOUND] Twilio rejected call to {to}: HTTP {e.status}")
            raise ExecutionFailed.from_status(e.status, str(e.msg)[:200]) from e
        except (TwilioException, OSError) as e:
            raise ExecutionFailed.from_status(None, f"{type(e).__name__}: {str(e)}") from e
        return {"sid": call.sid}


class ReminderCallService:
    """Places session reminder calls and records the callee's answer."""

    def __init__(
        self,
        db: AsyncSession,
        client: TwilioCallClient,
        base_url: str,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.clock = clock
        self.store = SqlCallSessionStore(db)
        self.audit_sink = SqlAuditSink(db)

    async def get_event(self, event_id: str) -> Optional[Event]:
        return await self.db.get(Event, event_id)

    async def place_reminder(self, user_id: Optional[str], event_id: str, phone_number: str) -> Optional[CallSession]:
        """Call ``phone_number`` about an event. Returns None when the event does not exist."""
        event = await self.get_event(event_id)
        if event is None:
            return None

        result = await self.client.place_call(
            to=phone_number,
            twiml_url=f"{self.base_url}/webhooks/voice/reminder?event_id={event.id}",
            status_callback=f"{self.base_url}/webhooks/voice/status",
            recording_callback=f"{self.base_url}/webhooks/voice/recording",
        )
        call_sid = result["sid"]

        session = CallSession(
            id=call_sid,
            user_id=user_id,
            status=CallStatus.INITIATED,
            call_type=CallType.REMINDER,
            intent="session_reminder",
            started_at=self.clock(),
        )
        session = await self.store.create(session)
        await AuditLog(self.audit_sink, call_sid).record(
            action="session_reminder",
            endpoint="POST /Calls.json",
            request={"event_id": event.id, "to": phone_number},
            response_status=201,
            response={"sid": call_sid},
        )
        logger.info(f"[OUTBOUND] Reminder call placed for event {event.id} - CallSid: {call_sid}")
        return session

    async def handle_response(self, call_sid: str, digit: Optional[str], event_id: Optional[str] = None) -> str:
        """Record the keypad answer to a reminder and return the closing line."""
        digit = (digit or "").strip()
        if digit == "1":
            prompt, outcome = REMINDER_CONFIRMED, "confirmed"
        elif digit == "2":
            prompt, outcome = REMINDER_RESCHEDULE, "reschedule requested"
            await self._notify_reschedule(event_id)
        else:
            prompt, outcome = REMINDER_NO_RESPONSE, "no response"

        session = await self.store.load(call_sid)
        if session is not None and not session.is_terminal:
            session.add_transcript_turn("caller", digit or "(no input)")
            session.add_transcript_turn("agent", prompt)
            session.complete(ended_at=self.clock())
            session.summary = f"Session reminder: {outcome}."
            await self.store.save(session)

        logger.info(f"[OUTBOUND] Reminder answered '{digit}' ({outcome}) - CallSid: {call_sid}")
        return prompt

    async def _notify_reschedule(self, event_id: Optional[str]) -> None:
        event = await self.get_event(event_id) if event_id else None
        if event is None or not event.created_by:
            return
        self.db.add(
            Notification(
                user_id=event.created_by,
                title="Reschedule requested",
                body=f"A participant asked to reschedule {event.title}.",
            )
        )
        await self.db.commit()
