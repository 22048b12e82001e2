"""Pytest configuration and fixtures."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Callable

# Point the app at a throwaway SQLite file before anything from arcade is imported
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="arcade-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'test.db'}"
os.environ["VENDOR_SHARED_SECRET"] = "test-vendor-shared-secret"
os.environ["RATE_LIMIT_SUBMISSIONS"] = "1000"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from arcade.db.database import async_session_maker, drop_db, init_db
from arcade.main import app
from arcade.models.game_session import GameSession
from arcade.services.broadcast_hub import BroadcastHub, Channel
from arcade.services.leaderboard_service import LeaderboardQuery
from arcade.services.session_registry import SessionRegistry

VENDOR_SECRET = os.environ["VENDOR_SHARED_SECRET"]
PLAYER = "0xAbC0000000000000000000000000000000000001"
GAME_ID = "penguin-hop"


class FakeTransport:
    """In-memory stand-in for a viewer's socket."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[str] = []
        self.closed = False

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[None, None]:
    """Create the tables for one test and drop them afterwards."""
    await init_db()
    yield
    await drop_db()


@pytest_asyncio.fixture(scope="function")
async def test_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def leaderboard_query() -> LeaderboardQuery:
    return LeaderboardQuery(async_session_maker, default_limit=10)


@pytest_asyncio.fixture
async def hub(database, leaderboard_query) -> AsyncGenerator[BroadcastHub, None]:
    hub = BroadcastHub(leaderboard_query, size=10)
    yield hub
    await hub.shutdown()


@pytest_asyncio.fixture(scope="function")
async def client(database, hub, leaderboard_query) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client wired to the test hub."""
    app.state.hub = hub
    app.state.leaderboard_query = leaderboard_query

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def vendor_headers() -> dict:
    """Return vendor authentication headers."""
    return {"Authorization": f"Bearer {VENDOR_SECRET}"}


@pytest_asyncio.fixture
async def game_session(test_session) -> GameSession:
    """A live session issued to PLAYER."""
    return await SessionRegistry().create(test_session, PLAYER, GAME_ID)


@pytest.fixture
def make_channel() -> Callable[..., Channel]:
    """Factory for channels backed by FakeTransport."""

    def _make(fail: bool = False) -> Channel:
        return Channel(FakeTransport(fail=fail))

    return _make


@pytest.fixture
def wait_until() -> Callable:
    """Poll a condition on the running loop until it holds."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async def _poll():
            while not predicate():
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_poll(), timeout)

    return _wait


@pytest.fixture
def score_payload() -> Callable[..., dict]:
    """Build a score report for a session."""

    def _payload(session: GameSession, **overrides) -> dict:
        payload = {
            "tournament_id": session.tournament_id,
            "game_id": session.game_id,
            "user_id": session.user_id,
            "score": 500,
            "time": 30,
            "is_valid": True,
        }
        payload.update(overrides)
        return payload

    return _payload
