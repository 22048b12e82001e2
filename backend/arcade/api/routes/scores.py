"""Score routes for vendor score reports."""

from fastapi import APIRouter, Depends, Request

from arcade.api.deps import (
    DbSession,
    Hub,
    limiter,
    reported_player_key,
    require_vendor,
    submission_rate_limit,
    tag_reported_player,
)
from arcade.schemas.score import ScoreSubmission, ScoreSubmitResponse
from arcade.services.ingestion_service import get_score_ingestion

router = APIRouter(tags=["Scores"])


@router.post(
    "/submit-score",
    response_model=ScoreSubmitResponse,
    dependencies=[Depends(require_vendor), Depends(tag_reported_player)],
)
@limiter.limit(submission_rate_limit, key_func=reported_player_key)
async def submit_score(
    request: Request,
    submission: ScoreSubmission,
    db: DbSession,
    hub: Hub,
) -> ScoreSubmitResponse:
    """Record a finished play reported by the game vendor.

    Requires ``Authorization: Bearer <vendor secret>``. The report must match
    a live game session issued to the same player. Scores flagged
    ``is_valid=false`` are stored for review but never ranked.
    Connected leaderboard viewers receive the new ranking once the score is
    committed.
    """
    score_id = await get_score_ingestion().ingest(db, submission, hub)
    return ScoreSubmitResponse(score_id=score_id)
