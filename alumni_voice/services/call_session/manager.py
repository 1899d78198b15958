"""Call state machine."""
import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.core.config import settings
from alumni_voice.services.audit.log import AuditLog, SqlAuditSink
from alumni_voice.services.auth.access_codes import AccessCodeAuthenticator, SqlAccessCodeStore
from alumni_voice.services.call_session.constants import (
    ANYTHING_ELSE_PROMPT,
    AUTH_FAILED_GOODBYE,
    AUTH_RETRY_PROMPT,
    AUTHENTICATED_PROMPT,
    BARE_SKILLS_PATTERN,
    CONFIRMATION_INDICATORS,
    DECLINE_PROMPT,
    FAREWELL_PATTERN,
    FAREWELL_PROMPT,
    GREETING_PROMPT,
    MESSAGE_CAPTURE_PROMPT,
    NO_CODE_GOODBYE,
    NO_INPUT_GOODBYE,
    SELECTED_MENTOR_PROMPT,
    SELECTION_ORDINALS,
    SKILLS_CAPTURE_PROMPT,
    TIME_CAPTURE_PROMPT,
    WHICH_MENTOR_PROMPT,
)
from alumni_voice.services.call_session.models import (
    CallSession,
    MentorSelectionFlow,
    MessageCaptureFlow,
    ScheduleConfirmationFlow,
    SkillsCaptureFlow,
    TimeCaptureFlow,
    TurnRequest,
    TurnResponse,
)
from alumni_voice.services.call_session.stages import AUTH_STATUSES, CallStatus, InputHint
from alumni_voice.services.call_session.store import SqlCallSessionStore
from alumni_voice.services.errors import (
    AmbiguousReference,
    AuthenticationFailed,
    SessionExpired,
    UnresolvedIntent,
    VoiceAgentError,
)
from alumni_voice.services.intent.classifier import IntentClassifier, extract_skills
from alumni_voice.services.intent.executor import IntentExecutor
from alumni_voice.services.intent.memory import MentorRef
from alumni_voice.services.tools.base import TOOL_ENDPOINTS, ContentStore, DomainGateway

logger = logging.getLogger(__name__)

CONFIRMATION_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in CONFIRMATION_INDICATORS) + r")\b",
    re.IGNORECASE,
)
SELECTION_WORD_PATTERN = re.compile(
    r"\b(" + "|".join(SELECTION_ORDINALS) + r")\b",
    re.IGNORECASE,
)
SELECTION_NUMBER_PATTERN = re.compile(r"\d+")


class CallSessionManager:
    """Runs one turn of a phone call.

    Each turn reloads the session by call id, advances the state machine and
    saves the session back. Nothing about a call is kept in process memory
    between turns.
    """

    def __init__(
        self,
        db: AsyncSession,
        gateway: DomainGateway,
        content_store: ContentStore,
        classifier: Optional[IntentClassifier] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        max_auth_attempts: Optional[int] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.content_store = content_store
        self.classifier = classifier or IntentClassifier()
        self.clock = clock
        self.max_auth_attempts = max_auth_attempts or settings.auth_max_attempts
        self.store = SqlCallSessionStore(db)
        self.audit_sink = SqlAuditSink(db)
        self.authenticator = AccessCodeAuthenticator(SqlAccessCodeStore(db), gateway)

    async def handle_turn(self, request: TurnRequest) -> TurnResponse:
        """Advance the call by one turn and return what to say next."""
        if request.is_first_turn:
            return await self._start(request.call_id)

        session = await self.store.load(request.call_id)
        if session is None or session.is_terminal:
            logger.warning(f"[STATE MACHINE] Turn for unknown or ended call - CallSid: {request.call_id}")
            return self._end(SessionExpired.spoken_message)

        if not request.has_input:
            response = self._timeout(session)
        else:
            caller_text = request.digits or request.utterance_text or ""
            session.add_transcript_turn("caller", caller_text.strip())
            if session.status in AUTH_STATUSES:
                response = await self._authenticate(session, request)
            else:
                response = await self._process_intent(session, request)

        session.add_transcript_turn("agent", response.prompt_text)
        await self.store.save(session)
        logger.info(
            f"[STATE MACHINE] Turn done - CallSid: {session.id}, status: {session.status}, "
            f"flow: {session.context.flow.kind if session.context.flow else None}, end_call: {response.end_call}"
        )
        return response

    async def end_session(self, call_id: str, duration_seconds: Optional[int] = None) -> Optional[CallSession]:
        """Finalize a call on an out-of-band hangup signal from the carrier."""
        session = await self.store.load(call_id)
        if session is None:
            return None
        if session.is_terminal:
            if duration_seconds:
                session.duration_seconds = duration_seconds
        else:
            session.complete(ended_at=self.clock(), duration_seconds=duration_seconds)
        return await self.store.save(session)

    async def attach_recording(self, call_id: str, recording_url: str) -> Optional[CallSession]:
        session = await self.store.load(call_id)
        if session is None:
            return None
        session.recording_url = recording_url
        return await self.store.save(session)

    async def _start(self, call_id: str) -> TurnResponse:
        session = await self.store.load(call_id)
        if session is not None and session.is_terminal:
            return self._end(SessionExpired.spoken_message)
        if session is None:
            session = await self.store.create(CallSession(id=call_id, started_at=self.clock()))

        session.status = CallStatus.GREETING
        prompt = GREETING_PROMPT.format(platform=settings.platform_name, digits=settings.access_code_digits)
        session.add_transcript_turn("agent", prompt)
        await self.store.save(session)
        logger.info(f"[STATE MACHINE] Greeting played - CallSid: {call_id}")
        return TurnResponse(prompt_text=prompt, input_hint=InputHint.ACCESS_CODE)

    def _timeout(self, session: CallSession) -> TurnResponse:
        if session.status in (CallStatus.INITIATED, CallStatus.GREETING):
            goodbye = NO_CODE_GOODBYE
        elif session.status in (CallStatus.AUTHENTICATING, CallStatus.AUTH_FAILED):
            goodbye = AUTH_FAILED_GOODBYE
        else:
            goodbye = NO_INPUT_GOODBYE
        logger.info(f"[STATE MACHINE] No input, ending call - CallSid: {session.id}, status: {session.status}")
        session.complete(ended_at=self.clock())
        return self._end(goodbye)

    async def _authenticate(self, session: CallSession, request: TurnRequest) -> TurnResponse:
        text = (request.utterance_text or "").strip()
        if not request.digits and FAREWELL_PATTERN.search(text):
            return self._farewell(session)

        code = (request.digits or "").strip() or re.sub(r"\s", "", text)
        session.status = CallStatus.AUTHENTICATING
        audit = AuditLog(self.audit_sink, session.id)

        try:
            caller = await self.authenticator.authenticate(code, self.clock())
        except AuthenticationFailed as e:
            session.context.auth_attempts += 1
            logger.info(
                f"[STATE MACHINE] Authentication failed ({e.detail}), attempt "
                f"{session.context.auth_attempts}/{self.max_auth_attempts} - CallSid: {session.id}"
            )
            await audit.record(
                action="authenticate_user",
                endpoint=TOOL_ENDPOINTS["authenticate_user"],
                request={"access_code": "***"},
                response_status=401,
                response=e.detail,
            )
            if session.context.auth_attempts >= self.max_auth_attempts:
                session.complete(ended_at=self.clock())
                return self._end(f"{e.spoken_message} {AUTH_FAILED_GOODBYE}")
            session.status = CallStatus.AUTH_FAILED
            return TurnResponse(
                prompt_text=f"{e.spoken_message} {AUTH_RETRY_PROMPT}",
                input_hint=InputHint.ACCESS_CODE,
            )

        session.authenticate(caller.user_id, caller.display_name)
        await audit.record(
            action="authenticate_user",
            endpoint=TOOL_ENDPOINTS["authenticate_user"],
            request={"access_code": "***"},
            response_status=200,
            response={"user_id": caller.user_id},
        )
        return TurnResponse(prompt_text=AUTHENTICATED_PROMPT.format(name=caller.display_name))

    async def _process_intent(self, session: CallSession, request: TurnRequest) -> TurnResponse:
        text = (request.utterance_text or "").strip()
        flow = session.context.flow

        try:
            # Capture flows take the utterance as data, never as a command
            if isinstance(flow, (TimeCaptureFlow, MessageCaptureFlow, SkillsCaptureFlow)):
                return await self._capture(session, flow, text or request.digits or "")

            record = self.classifier.classify(text, session.context.memory) if text else None
            if record is not None:
                session.context.flow = None
                if record.intent == "update_skills" and BARE_SKILLS_PATTERN.match(text):
                    session.intent = record.intent
                    session.status = CallStatus.IN_INTENT
                    session.context.flow = SkillsCaptureFlow()
                    return TurnResponse(prompt_text=SKILLS_CAPTURE_PROMPT)
                return await self._run_intent(session, record.intent, record.params)

            if isinstance(flow, ScheduleConfirmationFlow):
                return self._confirm_schedule(session, flow, text)
            if FAREWELL_PATTERN.search(text):
                return self._farewell(session)
            if isinstance(flow, MentorSelectionFlow):
                return self._select_mentor(session, flow, request.digits or text)
            raise UnresolvedIntent(text)

        except VoiceAgentError as e:
            logger.info(f"[STATE MACHINE] {type(e).__name__} - CallSid: {session.id}, detail: {e.detail}")
            if isinstance(session.context.flow, MentorSelectionFlow):
                return TurnResponse(
                    prompt_text=f"{e.spoken_message} {WHICH_MENTOR_PROMPT}",
                    input_hint=InputHint.SELECTION,
                )
            return TurnResponse(prompt_text=e.spoken_message)

    async def _capture(self, session: CallSession, flow: Any, value: str) -> TurnResponse:
        """Use the caller's answer as the value the open flow is waiting for."""
        if isinstance(flow, SkillsCaptureFlow):
            skills = extract_skills(value, session.context.memory)["new_skills"]
            if not skills:
                return TurnResponse(prompt_text=SKILLS_CAPTURE_PROMPT)
            session.context.flow = None
            response, _ = await self._execute(session, "update_skills", {"new_skills": skills})
            return response

        session.context.flow = None
        if isinstance(flow, TimeCaptureFlow):
            params = {
                "mentor_user_id": flow.mentor.user_id,
                "mentor_name": flow.mentor.name,
                "preferred_time": value,
            }
            response, _ = await self._execute(session, "schedule_mentorship", params)
        else:
            params = {"recipient_name": flow.recipient_name, "message": value}
            response, _ = await self._execute(session, "send_message", params)
        return response

    async def _run_intent(self, session: CallSession, intent: str, params: Dict[str, Any]) -> TurnResponse:
        memory = session.context.memory

        if intent == "schedule_mentorship":
            if not params.get("mentor_user_id"):
                if memory.last_mentors:
                    session.context.flow = MentorSelectionFlow(candidates=list(memory.last_mentors))
                raise AmbiguousReference(f"no mentor matched '{params.get('mentor_name')}'")
            session.intent = intent
            session.status = CallStatus.IN_INTENT
            session.context.flow = TimeCaptureFlow(
                mentor=MentorRef(name=params.get("mentor_name") or "the mentor", user_id=params["mentor_user_id"])
            )
            return TurnResponse(prompt_text=TIME_CAPTURE_PROMPT)

        if intent == "send_message" and not params.get("message"):
            session.intent = intent
            session.status = CallStatus.IN_INTENT
            recipient = (params.get("recipient_name") or "").strip()
            session.context.flow = MessageCaptureFlow(recipient_name=recipient)
            return TurnResponse(prompt_text=MESSAGE_CAPTURE_PROMPT.format(name=recipient))

        response, success = await self._execute(session, intent, params)
        if intent == "find_mentors" and success and memory.last_mentors:
            session.context.flow = MentorSelectionFlow(candidates=list(memory.last_mentors))
            response.input_hint = InputHint.SELECTION
        return response

    async def _execute(
        self, session: CallSession, intent: str, params: Dict[str, Any]
    ) -> Tuple[TurnResponse, bool]:
        executor = IntentExecutor(self.gateway, self.content_store, AuditLog(self.audit_sink, session.id))
        result = await executor.execute(intent, params, session.context.memory)

        session.intent = intent
        session.status = CallStatus.IN_INTENT
        if result.success:
            session.context.handled_intents.append(intent)

        prompt = result.response
        if not prompt.rstrip().endswith("?"):
            prompt = f"{prompt} {ANYTHING_ELSE_PROMPT}"
        return TurnResponse(prompt_text=prompt), result.success

    def _select_mentor(self, session: CallSession, flow: MentorSelectionFlow, answer: str) -> TurnResponse:
        mentor = self._resolve_selection(flow, answer)
        if mentor is None:
            raise AmbiguousReference(f"selection '{answer}' matched no candidate")
        session.context.flow = ScheduleConfirmationFlow(mentor=mentor)
        return TurnResponse(prompt_text=SELECTED_MENTOR_PROMPT.format(name=mentor.name))

    @staticmethod
    def _resolve_selection(flow: MentorSelectionFlow, answer: str) -> Optional[MentorRef]:
        """Resolve a spoken or keyed selection by number, ordinal or name."""
        answer = (answer or "").strip()
        if not answer:
            return None

        number = None
        digits = SELECTION_NUMBER_PATTERN.search(answer)
        if digits:
            number = int(digits.group(0))
        else:
            word = SELECTION_WORD_PATTERN.search(answer)
            if word:
                number = SELECTION_ORDINALS[word.group(1).lower()]
        if number is not None:
            if 1 <= number <= len(flow.candidates):
                return flow.candidates[number - 1]
            return None

        lowered = answer.lower()
        words = set(re.findall(r"\w+", lowered))
        for mentor in flow.candidates:
            name = mentor.name.lower()
            if name in lowered or words & set(re.findall(r"\w+", name)):
                return mentor
        return None

    def _confirm_schedule(self, session: CallSession, flow: ScheduleConfirmationFlow, answer: str) -> TurnResponse:
        if CONFIRMATION_PATTERN.search(answer):
            session.context.flow = TimeCaptureFlow(mentor=flow.mentor)
            return TurnResponse(prompt_text=TIME_CAPTURE_PROMPT)
        session.context.flow = None
        if FAREWELL_PATTERN.search(answer):
            return self._farewell(session)
        return TurnResponse(prompt_text=DECLINE_PROMPT)

    def _farewell(self, session: CallSession) -> TurnResponse:
        logger.info(f"[STATE MACHINE] Caller said goodbye - CallSid: {session.id}")
        session.complete(ended_at=self.clock())
        return self._end(FAREWELL_PROMPT.format(platform=settings.platform_name))

    @staticmethod
    def _end(prompt: str) -> TurnResponse:
        return TurnResponse(prompt_text=prompt, expect_continued_input=False, end_call=True)
