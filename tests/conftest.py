"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-history-tests")
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DEBUG", "false")

from collections.abc import AsyncGenerator, Callable, Generator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import fakeredis.aioredis  # noqa: E402
import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from langchain_core.language_models import BaseChatModel  # noqa: E402
from langchain_core.messages import AIMessage  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.models.chat_message import ChatMessage  # noqa: E402, F401
from app.models.chat_session import ChatSession  # noqa: E402, F401
from app.models.user_settings import UserSettings  # noqa: E402, F401
from app.repositories.chat_repo import ChatRepository  # noqa: E402
from app.repositories.settings_repo import SettingsRepository  # noqa: E402
from app.services.retention_sweeper import RetentionSweeper  # noqa: E402
from app.services.settings_service import SettingsService  # noqa: E402
from app.services.stats_service import StatsCache  # noqa: E402
from app.services.write_guard import WriteGuard  # noqa: E402

# --- Test DB (SQLite in-memory) ---

test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with test_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@pytest.fixture(autouse=True)
def patch_session_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Point background tasks that open their own sessions at the test DB."""
    monkeypatch.setattr(
        "app.services.chat_title_task.async_session_factory", test_session_factory
    )
    monkeypatch.setattr(
        "app.services.retention_task.async_session_factory", test_session_factory
    )


@pytest.fixture(autouse=True)
def reset_rate_limits() -> None:
    """Start every test with empty rate limit counters."""
    limiter.reset()


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture(autouse=True)
def patch_redis(
    fake_redis: fakeredis.aioredis.FakeRedis, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Patch the global redis_client used by get_redis()."""
    monkeypatch.setattr("app.core.redis.redis_client", fake_redis)


# --- Token helpers ---


def make_token(user_id: int = 1, token_type: str = "access", **claims: object) -> str:
    """Sign an access token the way the identity provider does."""
    payload = {"sub": str(user_id), "type": token_type, **claims}
    return jwt.encode(
        payload,
        settings.auth.secret_key.get_secret_value(),
        algorithm=settings.auth.algorithm,
    )


def make_auth_headers(user_id: int = 1) -> dict[str, str]:
    """Generate Authorization headers with a valid access token."""
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# --- App override & client fixtures ---


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database, for seeding rows."""
    return test_session_factory


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Expose make_token to tests that need custom claims."""
    return make_token


@pytest.fixture
def asgi_app() -> Generator[FastAPI, None, None]:
    """The application with the test database wired in."""
    from app.core.database import get_async_session
    from app.main import app as application

    application.dependency_overrides[get_async_session] = override_get_async_session
    yield application
    application.dependency_overrides.clear()


def _client(application: FastAPI, headers: dict[str, str] | None = None) -> AsyncClient:
    transport = ASGITransport(app=application)
    return AsyncClient(transport=transport, base_url="http://test", headers=headers)


@pytest.fixture
async def async_client(asgi_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client without credentials."""
    async with _client(asgi_app) as ac:
        yield ac


@pytest.fixture
async def authed_client(asgi_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client authenticated as user 1."""
    async with _client(asgi_app, make_auth_headers(1)) as ac:
        yield ac


@pytest.fixture
async def other_client(asgi_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client authenticated as user 2."""
    async with _client(asgi_app, make_auth_headers(2)) as ac:
        yield ac


# --- DB session and retention engine for unit tests ---


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository tests."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def chat_repo(db_session: AsyncSession) -> ChatRepository:
    return ChatRepository(db_session)


@pytest.fixture
def settings_service(db_session: AsyncSession) -> SettingsService:
    return SettingsService(SettingsRepository(db_session))


@pytest.fixture
def stats_cache(fake_redis: fakeredis.aioredis.FakeRedis) -> StatsCache:
    return StatsCache(fake_redis, settings.redis, ttl_seconds=60)


@pytest.fixture
def sweeper(
    settings_service: SettingsService,
    chat_repo: ChatRepository,
    stats_cache: StatsCache,
) -> RetentionSweeper:
    return RetentionSweeper(settings_service, chat_repo, stats_cache)


@pytest.fixture
def write_guard(
    settings_service: SettingsService,
    chat_repo: ChatRepository,
    sweeper: RetentionSweeper,
    stats_cache: StatsCache,
) -> WriteGuard:
    return WriteGuard(settings_service, chat_repo, sweeper, stats_cache)


# --- Mock LLM ---


@pytest.fixture
def mock_llm() -> MagicMock:
    """Create a mock LLM for testing."""
    mock = MagicMock(spec=BaseChatModel)
    mock.ainvoke = AsyncMock(return_value=AIMessage(content="Test response"))
    return mock
