"""Error taxonomy for the arcade backend.

Every error that can end a request carries the logical ``status`` code that
is reported in the response body (the transport status stays 200, see
``arcade.main``). ``ChannelError`` never reaches an HTTP client: it is local
to a single push channel.
"""

from typing import Optional


class ArcadeError(Exception):
    """Base exception for arcade errors."""

    status: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict:
        """Status-in-body representation of the error."""
        return {"status": self.status, "message": self.message}


class AuthenticationError(ArcadeError):
    """Missing or wrong shared secret."""

    status = 401
    default_message = "Invalid authentication"


class ValidationError(ArcadeError):
    """Malformed request payload."""

    status = 400
    default_message = "Invalid request data"


class AccessDeniedError(ArcadeError):
    """Wallet does not hold the required NFT."""

    status = 403
    default_message = "NFT ownership required to play"


class NotFoundError(ArcadeError):
    """Lookup miss, e.g. an unknown or expired game session."""

    status = 404
    default_message = "Not found"


class StorageError(ArcadeError):
    """Durable store failed to read or write."""

    status = 500
    default_message = "Storage failure"


class ChannelError(ArcadeError):
    """Push-channel transport failure."""

    status = 500
    default_message = "Channel failure"
