"""Session registry for game sessions issued to verified wallets."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arcade.config import get_settings
from arcade.core.errors import NotFoundError, StorageError
from arcade.models.game_session import GameSession

logger = logging.getLogger(__name__)


def generate_tournament_id() -> str:
    """Generate a 128-bit random session identifier."""
    return secrets.token_hex(16)


def _utcnow() -> datetime:
    # Naive UTC, which is what SQLite hands back for stored timestamps
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SessionRegistry:
    """Issues game sessions and looks them up for score correlation."""

    def __init__(self, ttl_minutes: Optional[int] = None):
        if ttl_minutes is None:
            ttl_minutes = get_settings().session_ttl_minutes
        self.ttl = timedelta(minutes=ttl_minutes)

    async def create(self, db: AsyncSession, user_id: str, game_id: str) -> GameSession:
        """
        Create and persist a new game session.

        Args:
            db: Database session
            user_id: Wallet address the session is issued to
            game_id: Game the session authorizes

        Returns:
            Created game session
        """
        session = GameSession(
            tournament_id=generate_tournament_id(),
            user_id=user_id,
            game_id=game_id,
            expires_at=_utcnow() + self.ttl,
        )

        try:
            db.add(session)
            await db.commit()
            await db.refresh(session)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error storing game session for {user_id}: {e}")
            raise StorageError("Failed to create game session") from e

        logger.info(
            f"Game session created: tournament_id={session.tournament_id}, user_id={user_id}"
        )
        return session

    async def find(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> GameSession:
        """
        Get the live session issued to a player.

        Raises:
            NotFoundError: If no matching session exists or it has expired
            StorageError: If the lookup fails
        """
        now = now or _utcnow()
        query = select(GameSession).where(
            GameSession.tournament_id == tournament_id,
            GameSession.user_id == user_id,
            or_(GameSession.expires_at.is_(None), GameSession.expires_at > now),
        )

        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Session lookup failed for {tournament_id}: {e}")
            raise StorageError("Failed to look up game session") from e

        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError("Invalid game session")
        return session


# Singleton instance
_session_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """Get singleton session registry."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionRegistry()
    return _session_registry
