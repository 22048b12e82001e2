"""Broadcast hub pushing leaderboard snapshots to connected viewers.

The hub is built once per process (see ``arcade.main``) and handed to the
routes that need it. Fan-out never writes to a socket directly: each channel
keeps one pending snapshot drained by its own writer task
(``BroadcastHub.serve``), so a slow or broken viewer cannot hold up the score
submission that triggered the update, nor any other viewer.
"""

import asyncio
import itertools
import logging
import uuid
from enum import Enum
from typing import Optional, Protocol

from arcade.core.errors import ChannelError, StorageError
from arcade.schemas.leaderboard import LeaderboardUpdateMessage
from arcade.services.leaderboard_service import LeaderboardQuery

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Lifecycle of a viewer channel."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ChannelTransport(Protocol):
    """The part of a viewer connection the hub talks to."""

    async def send_text(self, data: str) -> None: ...

    async def close(self) -> None: ...


class Channel:
    """A single viewer connection registered with the hub."""

    def __init__(self, transport: ChannelTransport, channel_id: Optional[str] = None):
        self.id = channel_id or uuid.uuid4().hex[:8]
        self.transport = transport
        self.state = ChannelState.CONNECTING
        self._version = 0
        # Only the newest snapshot is kept while the writer is busy
        self._pending: Optional[str] = None
        self._ready = asyncio.Event()

    @property
    def is_open(self) -> bool:
        return self.state is ChannelState.OPEN

    @property
    def pending(self) -> int:
        """Number of snapshots waiting for the writer (0 or 1)."""
        return 0 if self._pending is None else 1

    def offer(self, version: int, message: str) -> bool:
        """Queue a snapshot unless this channel was already offered a newer one."""
        if not self.is_open or version <= self._version:
            return False
        self._version = version
        self._pending = message
        self._ready.set()
        return True

    async def next_message(self) -> Optional[str]:
        """Wait for the newest pending snapshot. Returns None once closed."""
        await self._ready.wait()
        self._ready.clear()
        if self.state is ChannelState.CLOSED:
            return None
        message, self._pending = self._pending, None
        return message

    async def send(self, message: str) -> None:
        try:
            await self.transport.send_text(message)
        except Exception as e:
            raise ChannelError(f"Send failed on channel {self.id}: {e}") from e

    async def close(self) -> None:
        if self.state is ChannelState.CLOSED:
            return
        self.state = ChannelState.CLOSED
        self._pending = None
        self._ready.set()
        try:
            await self.transport.close()
        except Exception as e:
            logger.debug(f"Channel {self.id} transport already gone: {e}")

    def __repr__(self) -> str:
        return f"<Channel {self.id} state={self.state.value}>"


class BroadcastHub:
    """Tracks open viewer channels and fans out the ranked view on change."""

    def __init__(self, query: LeaderboardQuery, size: int = 10):
        self._query = query
        self.size = size
        self._channels: set[Channel] = set()
        self._versions = itertools.count(1)

    @property
    def channel_count(self) -> int:
        """Number of channels currently registered."""
        return len(self._channels)

    async def _render(self) -> tuple[int, Optional[str]]:
        """Compute one ranked-view message.

        The version is taken before reading, so a higher version never
        reflects less data than a lower one.
        """
        version = next(self._versions)
        try:
            entries = await self._query.get(self.size)
        except StorageError as e:
            logger.error(f"Leaderboard recompute failed: {e}")
            return version, None
        return version, LeaderboardUpdateMessage(leaderboard=entries).model_dump_json()

    async def open(self, channel: Channel) -> None:
        """Register a channel whose handshake completed and queue a snapshot for it."""
        channel.state = ChannelState.OPEN
        self._channels.add(channel)
        logger.info(f"Channel {channel.id} opened ({len(self._channels)} connected)")

        version, message = await self._render()
        if message is not None:
            channel.offer(version, message)

    async def notify_change(self) -> int:
        """
        Recompute the ranked view once and offer it to every open channel.

        Never raises for delivery or recompute failures.

        Returns:
            Number of open channels that accepted the message
        """
        version, message = await self._render()
        if message is None:
            return 0

        attempts = 0
        for channel in list(self._channels):
            if not channel.is_open:
                self._channels.discard(channel)
                continue
            attempts += channel.offer(version, message)

        logger.debug(f"Leaderboard v{version} fanned out to {attempts} channels")
        return attempts

    async def serve(self, channel: Channel) -> None:
        """Write queued snapshots to a channel until it is closed or a send fails."""
        try:
            while True:
                message = await channel.next_message()
                if message is None:
                    break
                await channel.send(message)
        except ChannelError as e:
            logger.warning(f"{e}; dropping channel")
        finally:
            await self.close(channel)

    async def close(self, channel: Channel) -> None:
        """Close a channel and remove it from the broadcast set."""
        self._channels.discard(channel)
        if channel.state is not ChannelState.CLOSED:
            await channel.close()
            logger.info(f"Channel {channel.id} closed ({len(self._channels)} connected)")

    async def shutdown(self) -> None:
        """Close every channel."""
        for channel in list(self._channels):
            await self.close(channel)
