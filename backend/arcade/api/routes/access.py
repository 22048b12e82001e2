"""Access routes for NFT-gated game sessions."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter

from arcade.api.deps import DbSession, Verifier
from arcade.config import get_settings
from arcade.core.errors import AccessDeniedError
from arcade.models.game_session import GameSession
from arcade.schemas.access import GameSessionResponse, VerifyAccessRequest
from arcade.services.session_registry import get_session_registry

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(tags=["Access"])


def build_game_url(base_url: str, session: GameSession) -> str:
    """Launch URL for the vendor's game iframe."""
    query = urlencode(
        {
            "tournament_id": session.tournament_id,
            "user_id": session.user_id,
            "game_id": session.game_id,
        }
    )
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


@router.post(
    "/verify-access",
    response_model=GameSessionResponse,
)
async def verify_access(
    request: VerifyAccessRequest,
    db: DbSession,
    verifier: Verifier,
) -> GameSessionResponse:
    """Check NFT ownership and issue a game session.

    Wallets holding at least one token of the gate collection receive a
    fresh session and the game launch URL. Other wallets get status 403.
    """
    logger.info(f"Received access request for {request.wallet_address}")

    if not await verifier.owns_nft(request.wallet_address):
        raise AccessDeniedError(
            "NFT ownership required to play. You need to own an NFT from this collection."
        )

    session = await get_session_registry().create(db, request.wallet_address, settings.game_id)

    return GameSessionResponse(
        tournament_id=session.tournament_id,
        game_id=session.game_id,
        user_id=session.user_id,
        user_name=session.user_name,
        expires_at=session.expires_at,
        game_url=build_game_url(settings.game_embed_base_url, session),
    )
