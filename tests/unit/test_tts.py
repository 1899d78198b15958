"""Unit tests for speech synthesis and TwiML rendering."""
import pytest

from alumni_voice.core.config import settings
from alumni_voice.core.dependencies import get_tts_service
from alumni_voice.main import app
from alumni_voice.services.call_session.models import TurnResponse
from alumni_voice.services.call_session.stages import InputHint
from alumni_voice.services.speech.tts import TextToSpeechService, escape_xml


class TestTwiML:
    """Test TwiML generation."""

    def test_escape_xml(self):
        assert escape_xml('Tom & "Jerry" <3 it\'s') == "Tom &amp; &quot;Jerry&quot; &lt;3 it&apos;s"

    def test_caller_text_cannot_inject_verbs(self):
        """Test echoed text is escaped inside the spoken verb."""
        tts = TextToSpeechService(base_url="https://voice.test")

        twiml = tts.generate_twiml_response("Scheduled for tomorrow <Hangup/>", hangup=False)

        assert "<Hangup/>" not in twiml
        assert "&lt;Hangup/&gt;" in twiml

    def test_say_mode(self, monkeypatch):
        monkeypatch.setattr(settings, "tts_mode", "say")
        tts = TextToSpeechService(base_url="https://voice.test")

        assert tts.speak("Hello") == f'<Say voice="{settings.say_voice}">Hello</Say>'

    def test_play_mode(self, monkeypatch):
        """Test play mode points the carrier at the synthesis endpoint."""
        monkeypatch.setattr(settings, "tts_mode", "play")
        tts = TextToSpeechService(base_url="https://voice.test/")

        verb = tts.speak("Hi there")

        assert verb.startswith("<Play>https://voice.test/tts?text=Hi+there&amp;voice=")

    def test_end_call_hangs_up(self):
        tts = TextToSpeechService(base_url="https://voice.test")
        response = TurnResponse(prompt_text="Goodbye.", expect_continued_input=False, end_call=True)

        twiml = tts.render_turn(response, "https://voice.test/webhooks/voice/gather?CallSid=CA1")

        assert "<Hangup/>" in twiml
        assert "<Gather" not in twiml

    @pytest.mark.parametrize(
        "hint, expected",
        [
            (InputHint.ACCESS_CODE, 'input="dtmf speech" numDigits="6"'),
            (InputHint.SELECTION, 'input="speech dtmf" numDigits="1"'),
            (InputHint.SPEECH, 'input="speech" speechTimeout="auto"'),
        ],
    )
    def test_gather_input_hints(self, hint, expected):
        tts = TextToSpeechService(base_url="https://voice.test")

        twiml = tts.render_turn(TurnResponse(prompt_text="Go on.", input_hint=hint), "https://voice.test/g?a=1&b=2")

        assert expected in twiml
        assert f'timeout="{settings.gather_timeout_seconds}"' in twiml
        assert 'action="https://voice.test/g?a=1&amp;b=2"' in twiml

    def test_keypad(self):
        tts = TextToSpeechService(base_url="https://voice.test")

        twiml = tts.generate_twiml_with_keypad(["Hello.", "Press 1 for yes."], "https://voice.test/r")

        assert twiml.index("Hello.") < twiml.index("<Gather")
        assert twiml.index("Press 1 for yes.") > twiml.index("<Gather")


class TestSynthesis:
    """Test OpenAI speech synthesis."""

    @pytest.mark.asyncio
    async def test_synthesize(self, mock_openai):
        tts = TextToSpeechService(client=mock_openai)

        audio = await tts.synthesize_speech("Hello", voice="nova")

        assert audio == b"ID3fake-mp3"
        mock_openai.audio.speech.create.assert_awaited_once_with(model="tts-1", voice="nova", input="Hello")

    @pytest.mark.asyncio
    async def test_synthesis_failure(self, mock_openai):
        mock_openai.audio.speech.create.side_effect = RuntimeError("quota")
        tts = TextToSpeechService(client=mock_openai)

        with pytest.raises(Exception, match="TTS synthesis failed"):
            await tts.synthesize_speech("Hello")

    @pytest.mark.asyncio
    async def test_tts_endpoint(self, client, mock_openai):
        app.dependency_overrides[get_tts_service] = lambda: TextToSpeechService(client=mock_openai)

        response = await client.get("/tts", params={"text": "Welcome back"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3fake-mp3"
