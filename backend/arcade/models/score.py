"""Score model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from arcade.db.database import Base


class Score(Base):
    """Append-only record of one finished play reported by the game vendor."""

    __tablename__ = "scores"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )  # wallet address
    tournament_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )
    game_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )  # play duration in seconds
    is_valid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Score {self.id} user={self.user_id} score={self.score} valid={self.is_valid}>"
