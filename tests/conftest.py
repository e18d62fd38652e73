"""
Pytest configuration and fixtures for testing.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CACHE_ENABLED", "false")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, List
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from devevent.main import app
from devevent.db.session import Base, DatabaseConnector, get_session, get_optional_session
from devevent.db.models import Event
from devevent.cache.redis_client import cache
from devevent.services.image_uploader import get_image_uploader
from tests.factories import FakeUploader, insert_event


@pytest.fixture
def database_url(tmp_path) -> str:
    """Test database URL - TEST_DATABASE_URL wins if set (e.g. Postgres in Docker)."""
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'devevent_test.db'}")


@pytest_asyncio.fixture(scope="function")
async def connector(database_url) -> AsyncGenerator[DatabaseConnector, None]:
    """A fresh connector per test; tables are created on connect and dropped after."""
    conn = DatabaseConnector(database_url)
    engine = await conn.connect()
    try:
        yield conn
    finally:
        async with engine.begin() as c:
            await c.run_sync(Base.metadata.drop_all)
        await conn.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(connector: DatabaseConnector) -> AsyncGenerator[AsyncSession, None]:
    async with connector.session() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, uploader: FakeUploader) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client over the app with storage and upload dependencies overridden.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_optional_session] = override_get_session
    app.dependency_overrides[get_image_uploader] = lambda: uploader

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    return await insert_event(db_session)


@pytest_asyncio.fixture
async def test_events(db_session: AsyncSession) -> List[Event]:
    """Twelve events created one minute apart: "Event 1" is the oldest."""
    base = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    events = []
    for i in range(12):
        ev = await insert_event(
            db_session,
            created_at=base + timedelta(minutes=i),
            title=f"Event {i + 1}",
            tags=[f"tag-{i + 1}"],
        )
        events.append(ev)
    return events


@pytest.fixture(autouse=True)
def disable_cache(monkeypatch):
    """Keep tests independent of Redis."""
    monkeypatch.setattr(cache, "enabled", False)
