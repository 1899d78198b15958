"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from alumni_voice.api import calls, health, tools, tts, voice_sessions, webhooks
from alumni_voice.core.config import settings
from alumni_voice.core.logging import setup_logging
from alumni_voice.core.rate_limit import RateLimiter
from alumni_voice.db.database import AsyncSessionLocal, init_db
from alumni_voice.db.seed import seed_from_yaml

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    if settings.seed_file:
        async with AsyncSessionLocal() as db:
            await seed_from_yaml(db, settings.seed_file)
    yield
    # Shutdown
    pass


app = FastAPI(
    title="Alumni Voice Agent",
    description="Voice and IVR intent engine for the alumni platform",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.rate_limiter = RateLimiter(settings.tools_rate_limit, settings.tools_rate_window_seconds)

app.include_router(health.router, tags=["health"])
app.include_router(webhooks.voice.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(voice_sessions.router, tags=["voice sessions"])
app.include_router(tools.router, tags=["agent tools"])
app.include_router(calls.router, tags=["calls"])
app.include_router(tts.router, tags=["tts"])


@app.get("/")
async def root():
    return {
        "message": "Alumni Voice Agent API",
        "version": "0.1.0",
        "platform": settings.platform_name,
    }
