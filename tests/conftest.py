# tests/conftest.py
# Shared fixtures: in-memory sqlite store, seeded access codes and an ASGI client.
# No containers needed; every test gets a fresh database.

from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from dit.config import Settings
from dit.db.base import Database
from dit.middleware.rate_limiter import FixedWindowCounter
from dit.repositories.access_code_repository import AccessCodeRepository


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DB_URL="sqlite://",
        RATE_LIMIT_BACKEND="memory",
        CHAT_WEBHOOK_URL=None,
        GUARDIAN_WEBHOOK_URL=None,
        OTEL_ENABLED=False,
        METRICS_ENABLED=True,
    )


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def seeded(database):
    """Store with the album, special and inactive codes provisioned."""
    codes = AccessCodeRepository(database.session_factory)
    await codes.add("ALBUM1", "album")
    await codes.add("CARE42", "special")
    await codes.add("OLD1", "album", active=False)
    return database


@pytest.fixture
def counter() -> FixedWindowCounter:
    return FixedWindowCounter(window_size=60)


@pytest.fixture
def make_app(settings, seeded, counter):
    from dit.main_fastapi import create_app

    def _make(transport: httpx.AsyncBaseTransport = None, **overrides):
        cfg = settings.model_copy(update=overrides) if overrides else settings
        return create_app(cfg, database=seeded, counter=counter, chat_transport=transport)

    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest_asyncio.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
