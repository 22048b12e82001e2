# Core module
from .errors import (
    AccessDeniedError,
    ArcadeError,
    AuthenticationError,
    ChannelError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "ArcadeError",
    "AuthenticationError",
    "ValidationError",
    "AccessDeniedError",
    "NotFoundError",
    "StorageError",
    "ChannelError",
]
