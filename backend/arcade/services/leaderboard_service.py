"""Leaderboard query over the score store."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from arcade.schemas.leaderboard import RankedEntry
from arcade.services.score_store import ScoreStore, get_score_store


class LeaderboardQuery:
    """Top-N ranked view, computed on demand.

    Serves both the pull endpoint and the broadcast hub's recompute step.
    Every call opens its own database session so it only ever sees committed
    scores.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: Optional[ScoreStore] = None,
        default_limit: int = 10,
    ):
        self._session_factory = session_factory
        self._store = store or get_score_store()
        self.default_limit = default_limit

    async def get(self, limit: Optional[int] = None) -> list[RankedEntry]:
        """Get the ranked view, best score first."""
        async with self._session_factory() as db:
            return await self._store.top_ranked(db, limit or self.default_limit)
