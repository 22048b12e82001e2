"""Leaderboard routes for viewing and WebSocket updates."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket
from starlette.websockets import WebSocketState

from arcade.api.deps import Hub, Leaderboard
from arcade.schemas.leaderboard import LeaderboardResponse
from arcade.services.broadcast_hub import Channel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


class WebSocketTransport:
    """Adapts a Starlette WebSocket to the hub's channel transport."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def close(self) -> None:
        if (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        ):
            await self.websocket.close()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Client frames carry no meaning, read them only to notice the disconnect
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.get(
    "",
    response_model=LeaderboardResponse,
)
async def get_leaderboard(
    query: Leaderboard,
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum entries to return"),
) -> LeaderboardResponse:
    """Get the ranked view.

    One entry per player with their best valid score, highest first.
    Clients without a push channel poll this endpoint.
    """
    entries = await query.get(limit)
    logger.info(f"Leaderboard request: returning {len(entries)} entries")
    return LeaderboardResponse(leaderboard=entries)


@router.websocket("/ws")
async def leaderboard_websocket(websocket: WebSocket, hub: Hub):
    """WebSocket endpoint for real-time leaderboard updates.

    The current ranking is pushed right after the handshake, then again
    after every accepted score. Messages are JSON with format:
    {
        "type": "leaderboard_update",
        "leaderboard": [
            {
                "rank": 1,
                "user_id": "0x...",
                "user_name": "0x12ab34",
                "best_score": 500,
                "time": 30,
                "created_at": "2026-01-01T00:00:00"
            }
        ]
    }
    """
    await websocket.accept()

    channel = Channel(WebSocketTransport(websocket))
    await hub.open(channel)

    writer = asyncio.create_task(hub.serve(channel))
    reader = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        await asyncio.wait({writer, reader}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (writer, reader):
            task.cancel()
        results = await asyncio.gather(writer, reader, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Channel {channel.id} ended with {type(result).__name__}: {result}")
        await hub.close(channel)
