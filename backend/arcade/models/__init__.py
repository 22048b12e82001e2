"""Database models package."""

from arcade.models.score import Score
from arcade.models.game_session import GameSession

__all__ = ["Score", "GameSession"]
