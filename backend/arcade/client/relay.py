"""
Leaderboard Relay Consumer

Keeps a local copy of the ranked leaderboard in sync with the backend.

Usage:
    async with LeaderboardRelay("http://127.0.0.1:8000", on_update=print) as relay:
        ...  # relay.leaderboard always holds the latest snapshot

The relay pulls one snapshot over HTTP and opens the WebSocket push channel
at the same time. While the channel is down it polls ``GET /leaderboard``
and retries the handshake after a fixed delay, forever.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, AsyncContextManager, Callable, Optional

import httpx
from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[list[dict]], Any]
Connector = Callable[[str], AsyncContextManager[Any]]


class RelayState(str, Enum):
    """Push-channel state of the relay."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    LIVE = "live"


def websocket_url(api_url: str, path: str = "/leaderboard/ws") -> str:
    """Map an http(s) API base URL to the push channel's ws(s) URL."""
    base = api_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return base + path


class LeaderboardRelay:
    """Push channel with polling fallback for the ranked leaderboard."""

    def __init__(
        self,
        api_url: str,
        *,
        reconnect_delay: float = 5.0,
        poll_interval: float = 15.0,
        on_update: Optional[UpdateCallback] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        connect: Optional[Connector] = None,
    ):
        """
        Initialize the relay.

        Args:
            api_url: Base URL of the arcade API
            reconnect_delay: Seconds between push-channel handshake attempts
            poll_interval: Seconds between pulls while the channel is down
            on_update: Called with the new leaderboard after every change
            http_client: Client for pulls; one is created (and closed) if omitted
            connect: Opens the push channel; defaults to ``websockets`` connect
        """
        self.api_url = api_url.rstrip("/")
        self.ws_url = websocket_url(self.api_url)
        self.reconnect_delay = reconnect_delay
        self.poll_interval = poll_interval
        self.on_update = on_update
        self._http = http_client
        self._owns_http = http_client is None
        self._connect = connect or websocket_connect

        self.state = RelayState.DISCONNECTED
        self.leaderboard: list[dict] = []
        self._channel_task: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_live(self) -> bool:
        return self.state is RelayState.LIVE

    @property
    def polling(self) -> bool:
        """Whether the fallback poll is scheduled."""
        return self._poll_task is not None and not self._poll_task.done()

    async def __aenter__(self) -> "LeaderboardRelay":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def start(self) -> None:
        """Pull a snapshot and start the push channel."""
        if self._channel_task is not None:
            return

        self._channel_task = asyncio.create_task(self._run_channel())
        await self.refresh()

    async def stop(self) -> None:
        """Close the channel and cancel every pending retry and poll."""
        tasks = [task for task in (self._channel_task, self._poll_task) if task is not None]
        self._channel_task = None
        self._poll_task = None

        for task in tasks:
            task.cancel()
        for result in await asyncio.gather(*tasks, return_exceptions=True):
            if isinstance(result, Exception):
                logger.warning(f"Relay task ended with {type(result).__name__}: {result}")

        self.state = RelayState.DISCONNECTED
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def refresh(self) -> Optional[list[dict]]:
        """
        Pull the ranked view over HTTP.

        The result replaces local state only while the push channel is not
        live; a live channel is the authoritative source.

        Returns:
            The pulled leaderboard, or None if the pull failed
        """
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=10.0)

        try:
            response = await self._http.get(f"{self.api_url}/leaderboard")
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Leaderboard pull failed: {e}")
            return None

        if not isinstance(body, dict) or body.get("status") != 200:
            logger.warning(f"Leaderboard pull rejected: {body!r}")
            return None

        entries = body.get("leaderboard", [])
        if not self.is_live:
            self._apply(entries)
        return entries

    def position_of(self, user_id: str) -> Optional[int]:
        """1-based position of a player in the local leaderboard, if ranked."""
        for index, entry in enumerate(self.leaderboard):
            if entry.get("user_id") == user_id:
                return index + 1
        return None

    async def _run_channel(self) -> None:
        while True:
            self.state = RelayState.CONNECTING
            try:
                async with self._connect(self.ws_url) as socket:
                    self.state = RelayState.LIVE
                    self._stop_polling()
                    logger.info(f"Leaderboard channel live at {self.ws_url}")

                    async for raw in socket:
                        self._handle_message(raw)

                logger.info("Leaderboard channel closed by server")
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                logger.warning(f"Leaderboard channel lost: {e}")
            finally:
                self.state = RelayState.DISCONNECTED

            self._start_polling()
            await asyncio.sleep(self.reconnect_delay)

    async def _poll_loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.poll_interval)

    def _start_polling(self) -> None:
        if not self.polling:
            self._poll_task = asyncio.create_task(self._poll_loop())

    def _stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def _handle_message(self, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed leaderboard message")
            return

        if not isinstance(message, dict) or message.get("type") != "leaderboard_update":
            return
        self._apply(message.get("leaderboard", []))

    def _apply(self, entries: list[dict]) -> None:
        # Each message is a complete snapshot
        self.leaderboard = list(entries)
        if self.on_update is not None:
            try:
                self.on_update(self.leaderboard)
            except Exception:
                logger.exception("Leaderboard update callback failed")
