"""Twilio voice webhook endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import Response

from alumni_voice.core.config import settings
from alumni_voice.core.dependencies import (
    get_base_url,
    get_reminder_service,
    get_session_manager,
    get_tts_service,
)
from alumni_voice.services.call_session.manager import CallSessionManager
from alumni_voice.services.call_session.models import TurnRequest
from alumni_voice.services.errors import ConcurrentTurnError
from alumni_voice.services.outbound.calls import ReminderCallService, format_start_time
from alumni_voice.services.speech.tts import TextToSpeechService

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_MESSAGE = "I'm sorry, I encountered an error. Please try again."
BUSY_MESSAGE = "Sorry, I was still working on your last request. Please say that again."
CALL_END_STATUSES = ["completed", "failed", "busy", "no-answer"]


def twiml(content: str) -> Response:
    return Response(content=content, media_type="application/xml")


def gather_url(request: Request, call_sid: str) -> str:
    return f"{get_base_url(request)}/webhooks/voice/gather?CallSid={call_sid}"


@router.post("/voice/incoming")
async def handle_incoming_call(
    request: Request,
    CallSid: str = Form(...),
    session_manager: CallSessionManager = Depends(get_session_manager),
    tts_service: TextToSpeechService = Depends(get_tts_service),
):
    """
    Handle incoming call from Twilio.

    Creates the call session and plays the greeting.
    """
    logger.info(
        f"[INCOMING CALL] Received incoming call webhook - CallSid: {CallSid}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        response = await session_manager.handle_turn(TurnRequest(call_id=CallSid, is_first_turn=True))
        content = tts_service.render_turn(response, gather_url(request, CallSid))
        logger.info(f"[INCOMING CALL] Greeting sent - CallSid: {CallSid}, TwiML length: {len(content)} bytes")
        return twiml(content)

    except Exception as e:
        logger.error(
            f"[INCOMING CALL] Error processing incoming call - CallSid: {CallSid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return twiml(tts_service.generate_twiml_response("Something went wrong. Goodbye."))


@router.post("/voice/gather")
async def handle_gather(
    request: Request,
    CallSid: str = Query(...),
    SpeechResult: Optional[str] = Form(None),
    Digits: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_session_manager),
    tts_service: TextToSpeechService = Depends(get_tts_service),
):
    """
    Handle gathered speech or keypad input from Twilio.

    Twilio also calls this when the gather timed out with no input.
    """
    logger.info(
        f"[GATHER] Received input - CallSid: {CallSid}, "
        f"SpeechResult length: {len(SpeechResult) if SpeechResult else 0}, "
        f"Digits: {'yes' if Digits else 'no'}"
    )
    if SpeechResult:
        logger.debug(
            f"[GATHER] Speech text: '{SpeechResult[:200]}{'...' if len(SpeechResult) > 200 else ''}' - CallSid: {CallSid}"
        )

    try:
        response = await session_manager.handle_turn(
            TurnRequest(call_id=CallSid, utterance_text=SpeechResult, digits=Digits)
        )
        content = tts_service.render_turn(response, gather_url(request, CallSid))
        logger.info(
            f"[GATHER] Successfully processed input - CallSid: {CallSid}, "
            f"end_call: {response.end_call}, TwiML length: {len(content)} bytes"
        )
        return twiml(content)

    except ConcurrentTurnError:
        logger.warning(f"[GATHER] Overlapping turn rejected - CallSid: {CallSid}")
        return twiml(tts_service.generate_twiml_with_gather(BUSY_MESSAGE, gather_url(request, CallSid)))

    except Exception as e:
        logger.error(
            f"[GATHER] Error processing input - CallSid: {CallSid}, "
            f"SpeechResult: '{SpeechResult[:100] if SpeechResult else 'None'}', "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        # Keep the caller on the line
        return twiml(tts_service.generate_twiml_with_gather(ERROR_MESSAGE, gather_url(request, CallSid)))


@router.post("/voice/status")
async def handle_call_status(
    request: Request,
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    CallDuration: Optional[str] = Form(None),
    session_manager: CallSessionManager = Depends(get_session_manager),
):
    """
    Handle call status updates from Twilio.

    This endpoint is called when call status changes (completed, failed, etc.).
    """
    logger.info(f"[CALL STATUS] Received status update - CallSid: {CallSid}, CallStatus: {CallStatus}")

    try:
        if CallStatus in CALL_END_STATUSES:
            duration = int(CallDuration) if CallDuration and CallDuration.isdigit() else None
            await session_manager.end_session(CallSid, duration_seconds=duration)
            logger.info(f"[CALL STATUS] Session ended - CallSid: {CallSid}, Reason: {CallStatus}")
        else:
            logger.debug(f"[CALL STATUS] No action needed - CallSid: {CallSid}, CallStatus: {CallStatus}")
        return Response(content="OK", media_type="text/plain")

    except Exception as e:
        logger.error(
            f"[CALL STATUS] Error handling call status update - CallSid: {CallSid}, "
            f"CallStatus: {CallStatus}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        # Still return OK to Twilio to avoid retries
        return Response(content="OK", media_type="text/plain")


@router.post("/voice/recording")
async def handle_recording(
    CallSid: str = Form(...),
    RecordingUrl: str = Form(...),
    session_manager: CallSessionManager = Depends(get_session_manager),
):
    """Store the recording URL Twilio reports for a call."""
    logger.info(f"[RECORDING] Recording available - CallSid: {CallSid}")
    try:
        await session_manager.attach_recording(CallSid, RecordingUrl)
    except Exception as e:
        logger.error(
            f"[RECORDING] Error storing recording - CallSid: {CallSid}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
    return Response(content="OK", media_type="text/plain")


@router.post("/voice/reminder")
async def handle_reminder_call(
    request: Request,
    event_id: str = Query(...),
    CallSid: Optional[str] = Form(None),
    reminders: ReminderCallService = Depends(get_reminder_service),
    tts_service: TextToSpeechService = Depends(get_tts_service),
):
    """TwiML read to the callee when a reminder call is answered."""
    logger.info(f"[REMINDER] Reminder call answered - CallSid: {CallSid}, event: {event_id}")

    event = await reminders.get_event(event_id)
    title = event.title if event else "your session"
    start = format_start_time(event.start_date if event else None)
    action_url = f"{get_base_url(request)}/webhooks/voice/reminder-response?event_id={event_id}"

    return twiml(
        tts_service.generate_twiml_with_keypad(
            [
                f"Hello! This is a reminder from the {settings.platform_name}.",
                f"Your session, {title}, is starting at {start}.",
                "Are you available? Press 1 for yes, or press 2 to request a reschedule.",
            ],
            action_url,
        )
    )


@router.post("/voice/reminder-response")
async def handle_reminder_response(
    CallSid: str = Form(...),
    Digits: Optional[str] = Form(None),
    event_id: Optional[str] = Query(None),
    reminders: ReminderCallService = Depends(get_reminder_service),
    tts_service: TextToSpeechService = Depends(get_tts_service),
):
    """Record the callee's keypad answer to a reminder."""
    try:
        prompt = await reminders.handle_response(CallSid, Digits, event_id)
    except Exception as e:
        logger.error(
            f"[REMINDER] Error handling reminder response - CallSid: {CallSid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        prompt = "Thank you. Goodbye."
    return twiml(tts_service.generate_twiml_response(prompt))
