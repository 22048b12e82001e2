"""API dependencies for dependency injection."""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from arcade.config import get_settings
from arcade.db.database import get_db
from arcade.services.broadcast_hub import BroadcastHub
from arcade.services.ingestion_service import check_bearer_token
from arcade.services.leaderboard_service import LeaderboardQuery
from arcade.services.nft_service import NftVerifier, get_nft_verifier

# Shared by the app (exception handler) and the routes (decorators)
limiter = Limiter(key_func=get_remote_address)


def get_hub(connection: HTTPConnection) -> BroadcastHub:
    """Get the process-wide broadcast hub built in the app lifespan."""
    return connection.app.state.hub


def get_leaderboard_query(connection: HTTPConnection) -> LeaderboardQuery:
    """Get the leaderboard query built in the app lifespan."""
    return connection.app.state.leaderboard_query


async def require_vendor(
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    """Authenticate the game vendor by its shared bearer secret."""
    check_bearer_token(authorization, get_settings().vendor_shared_secret)


async def tag_reported_player(request: Request) -> None:
    """Remember which player a score report is for, for per-player rate limiting."""
    try:
        body = await request.json()
    except ValueError:
        return
    if isinstance(body, dict) and isinstance(body.get("user_id"), str):
        request.state.reported_player = body["user_id"]


def reported_player_key(request: Request) -> str:
    """Rate-limit key for score reports: the reported player, else the caller."""
    player = getattr(request.state, "reported_player", None)
    return f"player:{player}" if player else get_remote_address(request)


def submission_rate_limit() -> str:
    return f"{get_settings().rate_limit_submissions}/minute"


# Type aliases for cleaner route signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
Hub = Annotated[BroadcastHub, Depends(get_hub)]
Leaderboard = Annotated[LeaderboardQuery, Depends(get_leaderboard_query)]
Verifier = Annotated[NftVerifier, Depends(get_nft_verifier)]
