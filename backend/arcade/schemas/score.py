"""Score schemas for request/response validation."""

from typing import Optional

from pydantic import BaseModel, Field, StrictBool, StrictInt


class ScoreSubmission(BaseModel):
    """Score report sent by the game vendor after a play.

    ``score``, ``time`` and ``is_valid`` are strict: ``"500"`` or ``1.0`` is
    rejected rather than coerced.
    """

    tournament_id: str = Field(..., min_length=1, max_length=64)
    game_id: Optional[str] = Field(None, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=64)
    score: StrictInt
    time: StrictInt = Field(..., ge=0)
    is_valid: StrictBool


class ScoreSubmitResponse(BaseModel):
    """Schema for an accepted score report."""

    status: int = 200
    score_id: int
