"""Access schemas for wallet verification and game sessions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class VerifyAccessRequest(BaseModel):
    """Schema for an NFT access check."""

    model_config = ConfigDict(populate_by_name=True)

    wallet_address: str = Field(
        ...,
        alias="walletAddress",
        pattern=r"^0x[0-9a-fA-F]{40}$",
    )


class GameSessionResponse(BaseModel):
    """Schema for a freshly issued game session."""

    status: int = 200
    tournament_id: str
    game_id: str
    user_id: str
    user_name: str
    expires_at: Optional[datetime] = None
    game_url: str
