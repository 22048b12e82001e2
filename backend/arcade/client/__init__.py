"""Client-side consumers of the arcade API."""

from arcade.client.relay import LeaderboardRelay, RelayState

__all__ = ["LeaderboardRelay", "RelayState"]
