"""Call history and outbound call endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.core.dependencies import get_reminder_service
from alumni_voice.db.database import get_db
from alumni_voice.services.call_session.store import SqlCallSessionStore
from alumni_voice.services.errors import ExecutionFailed
from alumni_voice.services.outbound.calls import ReminderCallService

router = APIRouter()
logger = logging.getLogger(__name__)


class ActionLogResponse(BaseModel):
    """Audit entry response model."""
    id: int
    action: str
    endpoint: Optional[str] = None
    request_summary: Optional[str] = None
    response_status: Optional[int] = None
    response_summary: Optional[str] = None
    created_at: str


class CallResponse(BaseModel):
    """Call response model."""
    call_sid: str
    user_id: Optional[str] = None
    status: str
    call_type: str
    intent: Optional[str] = None
    started_at: str
    ended_at: Optional[str] = None
    duration_seconds: Optional[int] = None
    recording_url: Optional[str] = None
    summary: Optional[str] = None
    transcript: Optional[str] = None
    actions: List[ActionLogResponse] = []


class ReminderRequest(BaseModel):
    user_id: Optional[str] = None
    event_id: str
    phone_number: str


@router.get("/api/calls", response_model=List[CallResponse])
async def get_call_history(
    request: Request,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
):
    """Get recent calls with their audit entries."""
    logger.info(f"[CALL HISTORY] Request received - limit: {limit}")

    records = await SqlCallSessionStore(db).list_recent(limit)
    return [
        CallResponse(
            call_sid=record.call_sid,
            user_id=record.user_id,
            status=record.status,
            call_type=record.call_type,
            intent=record.intent,
            started_at=record.started_at.isoformat() if record.started_at else "",
            ended_at=record.ended_at.isoformat() if record.ended_at else None,
            duration_seconds=record.duration_seconds,
            recording_url=record.recording_url,
            summary=record.summary,
            transcript=record.transcript,
            actions=[
                ActionLogResponse(
                    id=log.id,
                    action=log.action,
                    endpoint=log.endpoint,
                    request_summary=log.request_summary,
                    response_status=log.response_status,
                    response_summary=log.response_summary,
                    created_at=log.created_at.isoformat() if log.created_at else "",
                )
                for log in record.action_logs
            ],
        )
        for record in records
    ]


@router.post("/api/calls/reminder")
async def place_reminder_call(
    body: ReminderRequest,
    reminders: ReminderCallService = Depends(get_reminder_service),
):
    """Place a reminder call about an upcoming event."""
    try:
        session = await reminders.place_reminder(body.user_id, body.event_id, body.phone_number)
    except ExecutionFailed as e:
        logger.error(f"[OUTBOUND] Reminder call failed: {type(e).__name__}: {e.detail}")
        raise HTTPException(status_code=502, detail="Could not place the call")

    if session is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return {"success": True, "call_sid": session.id}
