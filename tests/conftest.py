"""
Pytest configuration and fixtures for Vortex tests.

Provides:
- Async test database with SQLite
- In-memory and SQL digest stores
- Fake content provider and notification dispatcher
- Test client for API testing
- Factory fixtures for creating test data
"""

from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vortex.config import Settings, get_settings
from vortex.core.database import get_db
from vortex.core.datetime_utils import utc_now
from vortex.main import app
from vortex.models import Base
from vortex.schemas.digest import (
    DigestHistoryRecord,
    DigestResult,
    DigestSettingsRecord,
    GroundingSource,
)
from vortex.schemas.push import PushMessage, PushTicket
from vortex.services.digest_scheduler import DigestOrchestrator, get_orchestrator
from vortex.services.digest_settings import with_utc_schedule
from vortex.services.grounding import BaseContentProvider, get_content_provider
from vortex.services.push_notification import (
    BaseNotificationDispatcher,
    get_notification_dispatcher,
)
from vortex.storage import InMemoryDigestStore, SqlDigestStore, get_digest_store

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

VALID_TOKEN = "ExponentPushToken[test-token]"


# Override settings for testing
class TestSettings(Settings):
    database_url: str = TEST_DATABASE_URL
    storage_backend: str = "memory"
    debug: bool = True
    gemini_api_key: str = "test-key"
    cron_secret: str = ""
    cron_secret_strict: bool = False
    scheduler_enabled: bool = False


# ============================================================================
# Fakes
# ============================================================================


class FakeContentProvider(BaseContentProvider):
    """Returns canned digests and records every call.

    Setting fail_with makes every call raise that exception.
    """

    provider_name = "fake"

    def __init__(self, content: str = "# Digest\nFirst story summary\nMore text") -> None:
        self.content = content
        self.calls: list[tuple[list[str], str, str | None]] = []
        self.fail_with: Exception | None = None

    async def generate_digest(
        self,
        topics: list[str],
        language: str = "id",
        custom_prompt: str | None = None,
    ) -> DigestResult:
        self.calls.append((list(topics), language, custom_prompt))
        if self.fail_with is not None:
            raise self.fail_with
        return DigestResult(
            title=f"Daily Digest: {', '.join(topics[:3])}",
            content=self.content,
            sources=[GroundingSource(title="Example", url="https://example.com/a")],
        )


class FakeDispatcher(BaseNotificationDispatcher):
    """Records sent messages and answers with a fixed ticket status."""

    provider_name = "fake"

    def __init__(self, status: str = "ok") -> None:
        self.status = status
        self.sent: list[PushMessage] = []

    async def send(self, message: PushMessage) -> PushTicket:
        self.sent.append(message)
        if self.status == "ok":
            return PushTicket(status="ok", id=f"ticket-{len(self.sent)}")
        return PushTicket(status="error", message="DeviceNotRegistered")

    async def send_batch(self, messages: list[PushMessage]) -> list[PushTicket]:
        return [await self.send(m) for m in messages]


# ============================================================================
# Database
# ============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sql_store(db_engine) -> SqlDigestStore:
    """SQL digest store on the test database."""
    return SqlDigestStore(
        async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    )


# ============================================================================
# Collaborators
# ============================================================================


@pytest.fixture
def memory_store() -> InMemoryDigestStore:
    return InMemoryDigestStore()


@pytest.fixture
def content_provider() -> FakeContentProvider:
    return FakeContentProvider()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def orchestrator(memory_store, content_provider, dispatcher) -> DigestOrchestrator:
    return DigestOrchestrator(
        store=memory_store,
        content_provider=content_provider,
        dispatcher=dispatcher,
        pacing_seconds=0,
    )


@pytest.fixture
def test_settings() -> TestSettings:
    return TestSettings()


@pytest_asyncio.fixture
async def client(
    db_session, memory_store, content_provider, dispatcher, orchestrator, test_settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client wired to the in-memory store and fakes."""
    from vortex.core.rate_limit import limiter

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_digest_store] = lambda: memory_store
    app.dependency_overrides[get_content_provider] = lambda: content_provider
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    # Reset rate limiter storage before each test
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Factory Fixtures
# ============================================================================


@pytest.fixture
def settings_factory(memory_store):
    """Factory for storing digest settings (UTC fields derived)."""

    async def _create_settings(
        user_id: str = "user-1",
        enabled: bool = True,
        schedule_time: str = "08:00",
        timezone: str = "Asia/Jakarta",
        topics: list[str] | None = None,
        language: str = "id",
        push_token: str | None = VALID_TOKEN,
        custom_prompt: str | None = None,
        store=None,
    ) -> DigestSettingsRecord:
        record = with_utc_schedule(
            DigestSettingsRecord(
                user_id=user_id,
                enabled=enabled,
                schedule_time=schedule_time,
                timezone=timezone,
                topics=topics or ["technology"],
                language=language,
                push_token=push_token,
                custom_prompt=custom_prompt,
            )
        )
        return await (store or memory_store).upsert_settings(record)

    return _create_settings


@pytest.fixture
def history_factory(memory_store):
    """Factory for storing digest history entries."""

    async def _create_history(
        user_id: str = "user-1",
        title: str = "Daily Digest: technology",
        content: str = "# Digest\nSummary",
        sent_at: datetime | None = None,
        store=None,
    ) -> DigestHistoryRecord:
        return await (store or memory_store).save_history(
            DigestHistoryRecord(
                user_id=user_id,
                title=title,
                content=content,
                topics=["technology"],
                language="id",
                sources=[GroundingSource(title="Example", url="https://example.com/a")],
                sent_at=sent_at or utc_now(),
            )
        )

    return _create_history
