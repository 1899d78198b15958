"""Browser voice session endpoints."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from alumni_voice.core.dependencies import get_browser_sessions, get_stt_service
from alumni_voice.services.call_session.browser import BROWSER_GREETING, BrowserSessionService
from alumni_voice.services.errors import SessionExpired
from alumni_voice.services.speech.stt import SpeechToTextService

router = APIRouter()
logger = logging.getLogger(__name__)


class StartSessionRequest(BaseModel):
    user_id: str
    user_name: Optional[str] = None


class StartSessionResponse(BaseModel):
    session_id: str
    prompt: str


class TurnBody(BaseModel):
    text: str = Field(..., min_length=1)


class TurnResult(BaseModel):
    prompt: str
    intent: Optional[str] = None
    params: Dict[str, Any] = {}
    success: bool
    end_call: bool


class EndSessionResponse(BaseModel):
    session_id: str
    status: str
    duration_seconds: Optional[int] = None
    summary: Optional[str] = None


@router.post("/api/voice/sessions", response_model=StartSessionResponse)
async def start_session(
    body: StartSessionRequest,
    sessions: BrowserSessionService = Depends(get_browser_sessions),
):
    """Start a browser voice session for a signed-in user."""
    session = await sessions.start(body.user_id, body.user_name)
    return StartSessionResponse(session_id=session.id, prompt=BROWSER_GREETING)


@router.post("/api/voice/sessions/{session_id}/turns", response_model=TurnResult)
async def take_turn(
    session_id: str,
    body: TurnBody,
    sessions: BrowserSessionService = Depends(get_browser_sessions),
):
    """Process one recognized utterance."""
    try:
        result = await sessions.handle_text(session_id, body.text)
    except SessionExpired:
        raise HTTPException(status_code=404, detail="Session not found or already ended")

    logger.info(f"[BROWSER SESSION] Turn processed - CallSid: {session_id}, intent: {result.intent}")
    return TurnResult(**result.model_dump())


@router.delete("/api/voice/sessions/{session_id}", response_model=EndSessionResponse)
async def end_session(
    session_id: str,
    sessions: BrowserSessionService = Depends(get_browser_sessions),
):
    """End a browser voice session."""
    try:
        session = await sessions.end(session_id)
    except SessionExpired:
        raise HTTPException(status_code=404, detail="Session not found")

    return EndSessionResponse(
        session_id=session.id,
        status=session.status.value,
        duration_seconds=session.duration_seconds,
        summary=session.summary,
    )


@router.post("/api/voice/transcribe")
async def transcribe(
    audio: UploadFile = File(...),
    stt_service: SpeechToTextService = Depends(get_stt_service),
):
    """Transcribe a recorded browser audio clip."""
    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty audio upload")

    try:
        text = await stt_service.transcribe_audio(
            data,
            filename=audio.filename or "audio.webm",
            content_type=audio.content_type or "audio/webm",
        )
    except Exception as e:
        logger.error(f"[TRANSCRIBE] Transcription failed: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=502, detail="Transcription failed")

    return {"text": text}
