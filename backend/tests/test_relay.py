"""Tests for the client-side leaderboard relay."""

import asyncio
import json
from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio

from arcade.client.relay import LeaderboardRelay, RelayState, websocket_url

API_URL = "http://arcade.test"


def snapshot(*scores: int) -> list[dict]:
    return [
        {"rank": i + 1, "user_id": f"0x{i}", "best_score": score}
        for i, score in enumerate(scores)
    ]


class FakeSocket:
    """Push channel whose frames are fed by the test."""

    def __init__(self):
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, *scores: int) -> None:
        self.inbox.put_nowait(
            json.dumps({"type": "leaderboard_update", "leaderboard": snapshot(*scores)})
        )

    def drop(self) -> None:
        self.inbox.put_nowait(ConnectionResetError("connection reset by peer"))

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.inbox.get()
        if isinstance(item, Exception):
            raise item
        return item


class FakeServer:
    """Both ends the relay talks to: the push channel and the pull endpoint."""

    def __init__(self):
        self.sockets: list[FakeSocket] = []
        self.refuse = False
        self.attempts = 0
        self.pulls = 0
        self.pull_fails = False
        self.board = snapshot(100)

    @asynccontextmanager
    async def connect(self, url: str):
        self.attempts += 1
        if self.refuse:
            raise ConnectionRefusedError("connection refused")
        socket = FakeSocket()
        self.sockets.append(socket)
        try:
            yield socket
        finally:
            socket.closed = True

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.pulls += 1
        if self.pull_fails:
            return httpx.Response(503)
        return httpx.Response(200, json={"status": 200, "leaderboard": self.board})


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def relay(server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server.handle))
    relay = LeaderboardRelay(
        API_URL,
        reconnect_delay=0.05,
        poll_interval=0.02,
        http_client=http_client,
        connect=server.connect,
    )
    yield relay
    await relay.stop()
    await http_client.aclose()


@pytest.mark.asyncio
async def test_goes_live_and_applies_push(relay, server, wait_until):
    """Pushed snapshots replace the local leaderboard."""
    updates = []
    relay.on_update = updates.append

    await relay.start()
    await wait_until(lambda: relay.is_live)
    assert server.pulls == 1
    assert not relay.polling

    socket = server.sockets[0]
    socket.push(500, 400)
    await wait_until(lambda: relay.leaderboard == snapshot(500, 400))

    socket.push(300)
    await wait_until(lambda: relay.leaderboard == snapshot(300))
    assert updates[-1] == snapshot(300)


@pytest.mark.asyncio
async def test_initial_pull_when_channel_unavailable(relay, server):
    """With the push channel refused the pulled snapshot is shown."""
    server.refuse = True

    await relay.start()

    assert relay.leaderboard == snapshot(100)
    assert relay.state is not RelayState.LIVE


@pytest.mark.asyncio
async def test_channel_loss_falls_back_to_polling(relay, server, wait_until):
    """After losing the channel the relay polls, then reconnects and goes live again."""
    await relay.start()
    await wait_until(lambda: relay.is_live)
    server.sockets[0].push(500)
    await wait_until(lambda: relay.leaderboard == snapshot(500))

    server.board = snapshot(900, 500)
    server.sockets[0].drop()

    await wait_until(lambda: relay.leaderboard == snapshot(900, 500))
    assert server.sockets[0].closed

    await wait_until(lambda: len(server.sockets) == 2 and relay.is_live)
    assert not relay.polling

    server.sockets[1].push(950, 900)
    await wait_until(lambda: relay.leaderboard == snapshot(950, 900))


@pytest.mark.asyncio
async def test_keeps_retrying_while_refused(relay, server, wait_until):
    """Handshakes are retried indefinitely and polling covers the gap."""
    server.refuse = True
    await relay.start()

    await wait_until(lambda: server.attempts >= 3 and server.pulls >= 3)
    assert relay.polling

    server.refuse = False
    await wait_until(lambda: relay.is_live)
    assert not relay.polling


@pytest.mark.asyncio
async def test_stop_cancels_timers_and_closes_channel(relay, server, wait_until):
    """Stopping leaves no channel, retry or poll behind."""
    await relay.start()
    await wait_until(lambda: relay.is_live)
    socket = server.sockets[0]

    await relay.stop()

    assert socket.closed
    assert relay.state is RelayState.DISCONNECTED
    assert not relay.polling

    attempts, pulls = server.attempts, server.pulls
    await asyncio.sleep(0.15)
    assert (server.attempts, server.pulls) == (attempts, pulls)


@pytest.mark.asyncio
async def test_stop_while_polling(relay, server, wait_until):
    """Stopping during the fallback cancels the pending poll and retry."""
    server.refuse = True
    await relay.start()
    await wait_until(lambda: relay.polling)

    await relay.stop()

    attempts, pulls = server.attempts, server.pulls
    await asyncio.sleep(0.15)
    assert (server.attempts, server.pulls) == (attempts, pulls)


@pytest.mark.asyncio
async def test_pull_does_not_override_live_channel(relay, server, wait_until):
    """While live, pushed data wins over a manual pull."""
    await relay.start()
    await wait_until(lambda: relay.is_live)
    server.sockets[0].push(500)
    await wait_until(lambda: relay.leaderboard == snapshot(500))

    server.board = snapshot(1)
    pulled = await relay.refresh()

    assert pulled == snapshot(1)
    assert relay.leaderboard == snapshot(500)


@pytest.mark.asyncio
async def test_pull_failure_keeps_stale_data(relay, server):
    """A failed pull is not an error; the last leaderboard stays."""
    server.refuse = True
    await relay.start()
    server.pull_fails = True

    assert await relay.refresh() is None
    assert relay.leaderboard == snapshot(100)


@pytest.mark.asyncio
async def test_ignores_unknown_messages(relay, server, wait_until):
    """Malformed and foreign frames do not disturb the channel."""
    await relay.start()
    await wait_until(lambda: relay.is_live)
    socket = server.sockets[0]

    socket.inbox.put_nowait("not json")
    socket.inbox.put_nowait(json.dumps({"type": "chat", "text": "hi"}))
    socket.push(10)

    await wait_until(lambda: relay.leaderboard == snapshot(10))
    assert relay.is_live


@pytest.mark.asyncio
async def test_callback_failure_does_not_break_channel(relay, server, wait_until):
    """An exception in on_update is logged and the relay keeps going."""
    def explode(entries):
        raise RuntimeError("render failed")

    relay.on_update = explode
    await relay.start()
    await wait_until(lambda: relay.is_live)

    server.sockets[0].push(1)
    server.sockets[0].push(2)

    await wait_until(lambda: relay.leaderboard == snapshot(2))
    assert relay.is_live


@pytest.mark.asyncio
async def test_position_of(relay, server, wait_until):
    """Players are located by wallet in the local leaderboard."""
    await relay.start()
    await wait_until(lambda: relay.is_live)
    server.sockets[0].push(30, 20, 10)
    await wait_until(lambda: len(relay.leaderboard) == 3)

    assert relay.position_of("0x1") == 2
    assert relay.position_of("0xnobody") is None


def test_websocket_url():
    """The push channel URL mirrors the API URL's scheme."""
    assert websocket_url("http://127.0.0.1:8000") == "ws://127.0.0.1:8000/leaderboard/ws"
    assert websocket_url("https://arcade.example/") == "wss://arcade.example/leaderboard/ws"


@pytest.mark.asyncio
async def test_refresh_without_start_uses_own_client(server, monkeypatch):
    """A relay that was never started, or was stopped, can still pull."""
    real_client = httpx.AsyncClient
    created = []

    def make_client(**kwargs):
        client = real_client(transport=httpx.MockTransport(server.handle))
        created.append(client)
        return client

    monkeypatch.setattr(httpx, "AsyncClient", make_client)
    relay = LeaderboardRelay(API_URL, connect=server.connect)

    assert await relay.refresh() == snapshot(100)
    assert relay.leaderboard == snapshot(100)

    await relay.stop()
    assert created[0].is_closed

    server.board = snapshot(200)
    assert await relay.refresh() == snapshot(200)
    await relay.stop()
    assert len(created) == 2
    assert created[1].is_closed
