"""Call session models."""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from alumni_voice.services.call_session.stages import (
    AUTHENTICATED_STATUSES,
    CallStatus,
    CallType,
    InputHint,
)
from alumni_voice.services.intent.memory import ConversationMemory, MentorRef


class MentorSelectionFlow(BaseModel):
    """Mentor list read out, waiting for the caller to pick one."""

    kind: Literal["mentor-selection"] = "mentor-selection"
    candidates: List[MentorRef]


class ScheduleConfirmationFlow(BaseModel):
    """Mentor picked, waiting for yes/no on scheduling."""

    kind: Literal["schedule-confirmation"] = "schedule-confirmation"
    mentor: MentorRef


class TimeCaptureFlow(BaseModel):
    """Scheduling confirmed, waiting for the preferred day and time."""

    kind: Literal["time-capture"] = "time-capture"
    mentor: MentorRef


class MessageCaptureFlow(BaseModel):
    """Recipient known, waiting for the message body."""

    kind: Literal["message-capture"] = "message-capture"
    recipient_name: str


class SkillsCaptureFlow(BaseModel):
    """Caller asked to add skills without naming any, waiting for the list."""

    kind: Literal["skills-capture"] = "skills-capture"


SubFlow = Annotated[
    Union[
        MentorSelectionFlow,
        ScheduleConfirmationFlow,
        TimeCaptureFlow,
        MessageCaptureFlow,
        SkillsCaptureFlow,
    ],
    Field(discriminator="kind"),
]


class CallContext(BaseModel):
    """Cross-turn state of one call. Discarded when the call ends."""

    memory: ConversationMemory = Field(default_factory=ConversationMemory)
    flow: Optional[SubFlow] = None
    auth_attempts: int = 0
    handled_intents: List[str] = []


class CallSession(BaseModel):
    """Aggregate root of one phone call or browser voice session."""

    id: str
    user_id: Optional[str] = None
    status: CallStatus = CallStatus.INITIATED
    call_type: CallType = CallType.INBOUND
    intent: Optional[str] = None
    context: CallContext = Field(default_factory=CallContext)
    transcript: List[str] = []
    started_at: datetime = Field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    recording_url: Optional[str] = None
    summary: Optional[str] = None
    version: int = 1

    model_config = {"validate_assignment": True}

    @model_validator(mode="after")
    def _identity_required_after_authentication(self) -> "CallSession":
        if self.status in AUTHENTICATED_STATUSES and not self.user_id:
            raise ValueError(f"user_id is required in status {self.status.value}")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status == CallStatus.COMPLETED

    def add_transcript_turn(self, role: str, text: str) -> None:
        """Add a turn to the transcript."""
        self.transcript.append(f"{role}: {text}")

    def get_transcript_text(self) -> str:
        """Get full transcript as text."""
        return "\n".join(self.transcript)

    def authenticate(self, user_id: str, user_name: str) -> None:
        """Record the caller identity and move to the authenticated state."""
        self.user_id = user_id
        self.context.memory.user_id = user_id
        self.context.memory.user_name = user_name
        self.context.auth_attempts = 0
        self.status = CallStatus.AUTHENTICATED

    def complete(self, ended_at: Optional[datetime] = None, duration_seconds: Optional[int] = None) -> None:
        """Mark the session completed and drop per-call selection state."""
        self.ended_at = ended_at or datetime.utcnow()
        if duration_seconds:
            self.duration_seconds = duration_seconds
        elif self.duration_seconds is None:
            self.duration_seconds = max(0, int((self.ended_at - self.started_at).total_seconds()))
        self.summary = self.build_summary()
        self.context.flow = None
        self.context.memory.last_mentors = []
        self.context.memory.last_events = []
        self.context.memory.last_opportunities = []
        self.status = CallStatus.COMPLETED

    def build_summary(self) -> str:
        """One-line summary of what happened on the call."""
        caller = self.context.memory.user_name or self.user_id or "unauthenticated caller"
        if not self.context.handled_intents:
            return f"Call with {caller}; no actions taken."
        return f"Call with {caller}; intents: {', '.join(self.context.handled_intents)}."


class TurnRequest(BaseModel):
    """One inbound turn from whichever transport drives the call."""

    call_id: str
    utterance_text: Optional[str] = None
    digits: Optional[str] = None
    is_first_turn: bool = False

    @property
    def has_input(self) -> bool:
        return bool((self.digits or "").strip() or (self.utterance_text or "").strip())


class TurnResponse(BaseModel):
    """Instruction to the transport about what to say next."""

    prompt_text: str
    expect_continued_input: bool = True
    end_call: bool = False
    input_hint: InputHint = InputHint.SPEECH
