"""Score ingestion: the authenticated write path for vendor score reports."""

import logging
import secrets
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from arcade.core.errors import AuthenticationError, NotFoundError
from arcade.schemas.score import ScoreSubmission
from arcade.services.broadcast_hub import BroadcastHub
from arcade.services.score_store import ScoreStore, get_score_store
from arcade.services.session_registry import SessionRegistry, get_session_registry

logger = logging.getLogger(__name__)


def check_bearer_token(authorization: Optional[str], secret: str) -> None:
    """Validate an ``Authorization: Bearer <secret>`` header.

    Raises:
        AuthenticationError: If the header is missing, malformed or wrong
    """
    if not authorization:
        raise AuthenticationError("Missing authentication")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError()

    if not secrets.compare_digest(token.strip().encode(), secret.encode()):
        raise AuthenticationError()


class ScoreIngestion:
    """Correlates a score report to its game session, stores it, then broadcasts."""

    def __init__(
        self,
        store: Optional[ScoreStore] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        self.store = store or get_score_store()
        self.registry = registry or get_session_registry()

    async def ingest(
        self,
        db: AsyncSession,
        submission: ScoreSubmission,
        hub: BroadcastHub,
    ) -> int:
        """
        Accept one score report.

        The report must belong to a live session issued to the same player.
        The record is committed before the hub recomputes the ranking, so any
        viewer that sees the update can also fetch it from the pull endpoint.

        Args:
            db: Database session
            submission: Validated score report
            hub: Broadcast hub to notify

        Returns:
            Id of the stored record

        Raises:
            NotFoundError: If no live session matches the report
            StorageError: If the session lookup or the insert fails
        """
        session = await self.registry.find(db, submission.tournament_id, submission.user_id)

        if submission.game_id is None:
            submission = submission.model_copy(update={"game_id": session.game_id})
        elif submission.game_id != session.game_id:
            logger.warning(
                f"Game mismatch for session {submission.tournament_id}: "
                f"got {submission.game_id}, issued for {session.game_id}"
            )
            raise NotFoundError("Invalid game session")

        score_id = await self.store.append(db, submission)
        logger.info(
            f"Score stored: id={score_id} user={submission.user_id} "
            f"score={submission.score} valid={submission.is_valid}"
        )
        if not submission.is_valid:
            logger.warning(f"FRAUD FLAG: invalid score {score_id} from user {submission.user_id}")

        await hub.notify_change()
        return score_id


# Singleton instance
_score_ingestion: Optional[ScoreIngestion] = None


def get_score_ingestion() -> ScoreIngestion:
    """Get singleton score ingestion service."""
    global _score_ingestion
    if _score_ingestion is None:
        _score_ingestion = ScoreIngestion()
    return _score_ingestion
