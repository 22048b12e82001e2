"""Score store: append-only score log and the ranking derived from it."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arcade.core.errors import StorageError, ValidationError
from arcade.models.score import Score
from arcade.schemas.leaderboard import RankedEntry
from arcade.schemas.score import ScoreSubmission

logger = logging.getLogger(__name__)


class ScoreStore:
    """Durable record of submitted scores.

    Records are only ever inserted. Rankings are computed from the log on
    every read, so there is no aggregate to keep in sync.
    """

    async def append(self, db: AsyncSession, submission: ScoreSubmission) -> int:
        """
        Insert a score record and commit it.

        Args:
            db: Database session
            submission: Validated score report

        Returns:
            Id of the new record

        Raises:
            ValidationError: If score/time are not integers or is_valid is not a bool
            StorageError: If the insert fails
        """
        for field in ("score", "time"):
            value = getattr(submission, field)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{field} must be an integer")
        if not isinstance(submission.is_valid, bool):
            raise ValidationError("is_valid must be a boolean")

        record = Score(
            user_id=submission.user_id,
            tournament_id=submission.tournament_id,
            game_id=submission.game_id,
            score=submission.score,
            time=submission.time,
            is_valid=submission.is_valid,
        )

        try:
            db.add(record)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to store score for {submission.user_id}: {e}")
            raise StorageError("Failed to store score") from e

        return record.id

    async def top_ranked(self, db: AsyncSession, limit: int) -> list[RankedEntry]:
        """
        Best valid score per player, highest first.

        Each player's qualifying record is their highest score; among equal
        scores the earliest record (lowest id) qualifies. Players with the same
        best score are ordered by whose qualifying record came first.

        Args:
            db: Database session
            limit: Maximum entries to return

        Returns:
            Ranked entries, at most one per user_id
        """
        position = func.row_number().over(
            partition_by=Score.user_id,
            order_by=(Score.score.desc(), Score.id.asc()),
        )
        best = (
            select(
                Score.id,
                Score.user_id,
                Score.score,
                Score.time,
                Score.created_at,
                position.label("position"),
            )
            .where(Score.is_valid.is_(True))
            .subquery()
        )
        query = (
            select(best.c.user_id, best.c.score, best.c.time, best.c.created_at)
            .where(best.c.position == 1)
            .order_by(best.c.score.desc(), best.c.id.asc())
            .limit(limit)
        )

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read leaderboard: {e}")
            raise StorageError("Failed to read leaderboard") from e

        return [
            RankedEntry(
                rank=i + 1,
                user_id=row.user_id,
                user_name=row.user_id[:8],
                best_score=row.score,
                time=row.time,
                created_at=row.created_at,
            )
            for i, row in enumerate(result.all())
        ]

    async def count(self, db: AsyncSession) -> int:
        """Total number of stored records, valid or not."""
        result = await db.execute(select(func.count()).select_from(Score))
        return result.scalar_one()


# Singleton instance
_score_store: Optional[ScoreStore] = None


def get_score_store() -> ScoreStore:
    """Get singleton score store."""
    global _score_store
    if _score_store is None:
        _score_store = ScoreStore()
    return _score_store
