import os

# must be set before trading_tracker builds its engine
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import trading_tracker.models  # noqa: F401
from trading_tracker.api.deps import get_http_client
from trading_tracker.config import Settings, get_settings
from trading_tracker.db.database import Base, get_db

BOT_TOKEN = "bot-token"
TV_TOKEN = "tv-token"
BOT_URL = "http://bot.test/dashboard"


@pytest_asyncio.fixture
async def async_engine():
    url = os.environ["DATABASE_URL"]
    if url.startswith("sqlite"):
        engine = create_async_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_async_engine(url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    sessionmaker = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async with sessionmaker() as session:
        yield session
        await session.rollback()


class FakeBot:
    """Stands in for the bot dashboard endpoint behind httpx.MockTransport."""

    def __init__(self):
        self.status_code = 200
        self.document = {"ok": True, "ts": "2024-01-01T10:00:00Z", "data": {"positions": {}}}
        self.text = None
        self.calls = 0

    def set_positions(self, ts, positions, **data):
        self.document = {"ok": True, "ts": ts, "data": {**data, "positions": positions}}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.document)


@pytest.fixture
def fake_bot():
    return FakeBot()


@pytest_asyncio.fixture
async def bot_http(fake_bot):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_bot.handler)) as c:
        yield c


@pytest.fixture
def settings():
    return Settings(
        database_url=os.environ["DATABASE_URL"],
        bot_api_token=BOT_TOKEN,
        bot_dashboard_url=BOT_URL,
        tradingview_webhook_token=TV_TOKEN,
        create_tables_on_startup=False,
    )


@pytest_asyncio.fixture
async def client(async_session, settings, bot_http):
    from trading_tracker.main import app

    async def override_get_db():
        yield async_session

    async def override_get_http_client():
        yield bot_http

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_http_client] = override_get_http_client

    transport = ASGITransport(app=app)

    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
