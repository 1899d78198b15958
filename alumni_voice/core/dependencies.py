"""FastAPI dependencies."""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_voice.core.config import settings
from alumni_voice.core.rate_limit import RateLimiter
from alumni_voice.db.database import get_db
from alumni_voice.services.call_session.browser import BrowserSessionService
from alumni_voice.services.call_session.manager import CallSessionManager
from alumni_voice.services.outbound.calls import ReminderCallService, TwilioCallClient
from alumni_voice.services.speech.stt import SpeechToTextService
from alumni_voice.services.speech.tts import TextToSpeechService
from alumni_voice.services.tools.agent_tools import AgentToolsGateway, SqlContentStore
from alumni_voice.services.tools.base import ContentStore, DomainGateway
from alumni_voice.services.tools.http_gateway import HttpToolGateway


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL if set (for deployments behind a proxy), otherwise
    constructs it from the request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def get_gateway(db: AsyncSession = Depends(get_db)) -> DomainGateway:
    """Remote agent-tools endpoint when configured, else the in-process SQL gateway."""
    if settings.tools_gateway_url:
        return HttpToolGateway(settings.tools_gateway_url, timeout=settings.tools_gateway_timeout_seconds)
    return AgentToolsGateway(db)


def get_content_store(db: AsyncSession = Depends(get_db)) -> ContentStore:
    return SqlContentStore(db)


def get_session_manager(
    db: AsyncSession = Depends(get_db),
    gateway: DomainGateway = Depends(get_gateway),
    content_store: ContentStore = Depends(get_content_store),
) -> CallSessionManager:
    """Get call session manager."""
    return CallSessionManager(db, gateway, content_store)


def get_browser_sessions(
    db: AsyncSession = Depends(get_db),
    gateway: DomainGateway = Depends(get_gateway),
    content_store: ContentStore = Depends(get_content_store),
) -> BrowserSessionService:
    return BrowserSessionService(db, gateway, content_store)


def get_tts_service(request: Request) -> TextToSpeechService:
    return TextToSpeechService(base_url=get_base_url(request))


def get_stt_service() -> SpeechToTextService:
    return SpeechToTextService()


def get_twilio_client() -> TwilioCallClient:
    return TwilioCallClient()


def get_reminder_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    client: TwilioCallClient = Depends(get_twilio_client),
) -> ReminderCallService:
    return ReminderCallService(db, client, get_base_url(request))


def get_rate_limiter(request: Request) -> RateLimiter:
    """The application's rate limiter, created at startup."""
    return request.app.state.rate_limiter
