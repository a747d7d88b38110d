"""Chat relay errors."""

from __future__ import annotations


class DeliveryError(RuntimeError):
    """Raised when a line cannot be delivered to a chat channel."""

    def __init__(self, channel: str, reason: str) -> None:
        """Initialise with the channel and the failure reason."""
        self.channel = channel
        super().__init__(f"delivery to {channel} failed: {reason}")


class ChatConnectionError(RuntimeError):
    """Raised when the chat network is unreachable or drops the relay."""

    @classmethod
    def unreachable(
        cls, server: str, port: int, exc: BaseException
    ) -> ChatConnectionError:
        """Return an error for a failed connection attempt."""
        return cls(f"could not connect to {server}:{port}: {exc}")

    @classmethod
    def lost(cls, server: str, reason: str) -> ChatConnectionError:
        """Return an error for a connection dropped after startup."""
        return cls(f"lost connection to {server}: {reason}")
