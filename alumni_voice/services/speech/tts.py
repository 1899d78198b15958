"""Text-to-speech service and TwiML rendering."""
import logging
from typing import List, Optional
from urllib.parse import urlencode

from openai import AsyncOpenAI

from alumni_voice.core.config import settings
from alumni_voice.services.call_session.models import TurnResponse
from alumni_voice.services.call_session.stages import InputHint

logger = logging.getLogger(__name__)


def escape_xml(text: str) -> str:
    """Escape XML special characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


class TextToSpeechService:
    """Service for converting text to speech."""

    def __init__(self, base_url: str = "", client: Optional[AsyncOpenAI] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        return self._client

    async def synthesize_speech(
        self,
        text: str,
        voice: Optional[str] = None,
        model: str = "tts-1",
    ) -> bytes:
        """
        Synthesize speech from text using OpenAI TTS.

        Args:
            text: Text to convert to speech
            voice: Voice to use (alloy, echo, fable, onyx, nova, shimmer)
            model: Model to use (tts-1 or tts-1-hd)

        Returns:
            Audio bytes (MP3 format)
        """
        try:
            response = await self.client.audio.speech.create(
                model=model,
                voice=voice or settings.tts_voice,
                input=text,
            )
            return response.content
        except Exception as e:
            raise Exception(f"TTS synthesis failed: {str(e)}")

    def speak(self, text: str) -> str:
        """A <Say> or <Play> verb for ``text`` depending on the configured mode."""
        if settings.tts_mode == "play":
            query = urlencode({"text": text, "voice": settings.tts_voice})
            return f"<Play>{escape_xml(f'{self.base_url}/tts?{query}')}</Play>"
        return f'<Say voice="{settings.say_voice}">{escape_xml(text)}</Say>'

    def generate_twiml_response(self, text: str, hangup: bool = True) -> str:
        """
        Generate TwiML XML for Twilio to speak text.

        Args:
            text: Text to speak
            hangup: End the call afterwards

        Returns:
            TwiML XML string
        """
        hangup_verb = "\n    <Hangup/>" if hangup else ""
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
    {self.speak(text)}{hangup_verb}
</Response>"""

    def generate_twiml_with_gather(
        self,
        text: str,
        action_url: str,
        input_hint: InputHint = InputHint.SPEECH,
    ) -> str:
        """
        Generate TwiML with Gather for collecting caller input.

        The gather posts back even when nothing was heard, so a silent timeout
        reaches the state machine as an empty turn.

        Args:
            text: Text to speak before gathering
            action_url: URL to send gathered input to
            input_hint: Kind of input expected next

        Returns:
            TwiML XML string
        """
        if input_hint == InputHint.ACCESS_CODE:
            gather_input = f'input="dtmf speech" numDigits="{settings.access_code_digits}" speechTimeout="5"'
        elif input_hint == InputHint.SELECTION:
            gather_input = 'input="speech dtmf" numDigits="1" speechTimeout="3"'
        else:
            gather_input = 'input="speech" speechTimeout="auto"'

        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
    <Gather action="{escape_xml(action_url)}" method="POST" {gather_input} timeout="{settings.gather_timeout_seconds}" actionOnEmptyResult="true" language="en-US">
        {self.speak(text)}
    </Gather>
</Response>"""

    def render_turn(self, response: TurnResponse, action_url: str) -> str:
        """TwiML for a state machine turn response."""
        if response.end_call or not response.expect_continued_input:
            return self.generate_twiml_response(response.prompt_text, hangup=True)
        return self.generate_twiml_with_gather(response.prompt_text, action_url, response.input_hint)

    def generate_twiml_with_keypad(self, lines: List[str], action_url: str) -> str:
        """TwiML that speaks ``lines`` then waits for a single keypad digit."""
        spoken = "\n    ".join(self.speak(line) for line in lines[:-1])
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
    {spoken}
    <Gather action="{escape_xml(action_url)}" method="POST" input="dtmf" numDigits="1" timeout="{settings.gather_timeout_seconds}" actionOnEmptyResult="true">
        {self.speak(lines[-1])}
    </Gather>
</Response>"""
