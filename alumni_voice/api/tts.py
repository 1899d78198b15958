"""Speech synthesis endpoint fetched by <Play> verbs."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from alumni_voice.core.dependencies import get_tts_service
from alumni_voice.services.speech.tts import TextToSpeechService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/tts")
async def synthesize(
    text: str = Query(..., min_length=1, max_length=4096),
    voice: Optional[str] = Query(None),
    tts_service: TextToSpeechService = Depends(get_tts_service),
):
    """Return MP3 audio for ``text``."""
    try:
        audio = await tts_service.synthesize_speech(text, voice=voice)
    except Exception as e:
        logger.error(f"[TTS] Synthesis failed: {str(e)}", exc_info=True)
        raise HTTPException(status_code=502, detail="Speech synthesis failed")

    return Response(content=audio, media_type="audio/mpeg")
