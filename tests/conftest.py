"""Shared test fixtures and configuration."""
import pytest
import os
from pathlib import Path
from unittest.mock import AsyncMock, Mock
import httpx
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15550001111")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BASE_URL", "https://voice.test")

from alumni_voice.main import app
from alumni_voice.db.database import get_db
from alumni_voice.db.models import Base
from alumni_voice.db.seed import seed_from_yaml
from alumni_voice.core.rate_limit import RateLimiter
from alumni_voice.services.call_session.manager import CallSessionManager
from alumni_voice.services.tools.agent_tools import AgentToolsGateway, SqlContentStore


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def seed_path():
    """Return path to the test seed YAML file."""
    return Path(__file__).parent / "fixtures" / "seed.yaml"


@pytest.fixture
async def seeded_db(test_db, seed_path):
    """Test database loaded with the seed fixture."""
    await seed_from_yaml(test_db, seed_path)
    return test_db


@pytest.fixture
def gateway(seeded_db):
    return AgentToolsGateway(seeded_db)


@pytest.fixture
def content_store(seeded_db):
    return SqlContentStore(seeded_db)


@pytest.fixture
def session_manager(seeded_db, gateway, content_store):
    return CallSessionManager(seeded_db, gateway, content_store)


@pytest.fixture
def override_get_db(seeded_db):
    """Override get_db dependency with test database."""
    async def _override_get_db():
        yield seeded_db
    return _override_get_db


@pytest.fixture
async def client(override_get_db):
    """Async HTTP client bound to the app with test overrides."""
    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter = RateLimiter(max_requests=60, window_seconds=60)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_client.audio.speech.create = AsyncMock(return_value=Mock(content=b"ID3fake-mp3"))
    mock_client.audio.transcriptions.create = AsyncMock(
        return_value=Mock(text="find mentors for data science")
    )
    return mock_client
