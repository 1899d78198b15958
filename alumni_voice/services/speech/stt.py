"""Speech-to-text service."""
from typing import Optional

from openai import AsyncOpenAI

from alumni_voice.core.config import settings


class SpeechToTextService:
    """Service for converting speech to text."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    async def transcribe_audio(
        self, audio_data: bytes, filename: str = "audio.webm", content_type: str = "audio/webm"
    ) -> str:
        """
        Transcribe audio to text using OpenAI Whisper.

        Args:
            audio_data: Raw audio bytes
            filename: Name sent with the upload, its extension tells Whisper the format
            content_type: MIME type of the audio

        Returns:
            Transcribed text
        """
        try:
            transcript = await self.client.audio.transcriptions.create(
                model="whisper-1",
                file=(filename, audio_data, content_type),
            )
            return transcript.text
        except Exception as e:
            raise Exception(f"Transcription failed: {str(e)}")
