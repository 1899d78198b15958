"""In-browser voice sessions.

The caller is already signed in, so a browser session starts authenticated and
every recognized utterance is classified and executed directly. There are no
sub-flows here.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.services.audit.log import AuditLog, SqlAuditSink
from alumni_voice.services.call_session.constants import FAREWELL_PATTERN
from alumni_voice.services.call_session.models import CallSession
from alumni_voice.services.call_session.stages import CallStatus, CallType
from alumni_voice.services.call_session.store import SqlCallSessionStore
from alumni_voice.services.errors import SessionExpired
from alumni_voice.services.intent.classifier import IntentClassifier
from alumni_voice.services.intent.executor import IntentExecutor
from alumni_voice.services.tools.base import ContentStore, DomainGateway

logger = logging.getLogger(__name__)

BROWSER_GREETING = (
    "Hello! I'm your AI Mentor Assistant. How can I help you today? You can ask me to "
    "find mentors, update your skills, check opportunities, browse events, or schedule "
    "mentorship sessions."
)
BROWSER_FALLBACK = (
    "I can help you update your skills, find mentors, check opportunities, browse events, "
    "schedule mentorship sessions, send messages, or create posts. Just tell me what you'd like to do."
)
BROWSER_FAREWELL = "Thanks for calling. Goodbye!"


class BrowserTurnResult(BaseModel):
    prompt: str
    intent: Optional[str] = None
    params: Dict[str, Any] = {}
    success: bool = True
    end_call: bool = False


class BrowserSessionService:
    """Drives browser voice sessions over the shared classifier and executor."""

    def __init__(
        self,
        db: AsyncSession,
        gateway: DomainGateway,
        content_store: ContentStore,
        classifier: Optional[IntentClassifier] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.gateway = gateway
        self.content_store = content_store
        self.classifier = classifier or IntentClassifier()
        self.clock = clock
        self.store = SqlCallSessionStore(db)
        self.audit_sink = SqlAuditSink(db)

    async def start(self, user_id: str, user_name: Optional[str] = None) -> CallSession:
        """Open a session for a signed-in user and record the greeting.

        Without a display name the profile is looked up on the first turn.
        """
        session = CallSession(
            id=f"web-{uuid.uuid4().hex}",
            call_type=CallType.BROWSER,
            started_at=self.clock(),
        )
        if user_name:
            session.authenticate(user_id, user_name)
        else:
            session.user_id = user_id
            session.status = CallStatus.AUTHENTICATED
        session.add_transcript_turn("agent", BROWSER_GREETING)
        session = await self.store.create(session)
        logger.info(f"[BROWSER SESSION] Started for user {user_id} - CallSid: {session.id}")
        return session

    async def handle_text(self, session_id: str, text: str) -> BrowserTurnResult:
        """Process one recognized utterance."""
        session = await self.store.load(session_id)
        if session is None or session.is_terminal:
            raise SessionExpired(f"browser session {session_id} not found")

        text = (text or "").strip()
        session.add_transcript_turn("caller", text)
        memory = session.context.memory

        record = self.classifier.classify(text, memory)
        if record is not None:
            executor = IntentExecutor(
                self.gateway,
                self.content_store,
                AuditLog(self.audit_sink, session.id),
                user_resolver=self._session_user(session),
            )
            outcome = await executor.execute(record.intent, record.params, memory)
            session.intent = record.intent
            session.status = CallStatus.IN_INTENT
            if outcome.success:
                session.context.handled_intents.append(record.intent)
            result = BrowserTurnResult(
                prompt=outcome.response,
                intent=record.intent,
                params=record.params,
                success=outcome.success,
            )
        elif FAREWELL_PATTERN.search(text):
            session.complete(ended_at=self.clock())
            result = BrowserTurnResult(prompt=BROWSER_FAREWELL, end_call=True)
        else:
            result = BrowserTurnResult(prompt=BROWSER_FALLBACK, success=False)

        session.add_transcript_turn("agent", result.prompt)
        await self.store.save(session)
        return result

    async def end(self, session_id: str) -> CallSession:
        session = await self.store.load(session_id)
        if session is None:
            raise SessionExpired(f"browser session {session_id} not found")
        if not session.is_terminal:
            session.complete(ended_at=self.clock())
            session = await self.store.save(session)
        logger.info(f"[BROWSER SESSION] Ended - CallSid: {session_id}, duration: {session.duration_seconds}s")
        return session

    @staticmethod
    def _session_user(session: CallSession):
        async def resolve() -> Optional[str]:
            return session.user_id
        return resolve
