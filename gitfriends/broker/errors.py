"""Broker connection and publishing errors."""

from __future__ import annotations


class BrokerError(RuntimeError):
    """Base class for broker failures."""


class ConnectionTimeoutError(BrokerError):
    """Raised when the broker does not accept a trial command in time."""

    def __init__(self, timeout_s: float) -> None:
        """Initialise with the timeout that elapsed."""
        self.timeout_s = timeout_s
        super().__init__(f"broker connection timed out after {timeout_s:.1f}s")


class BrokerTransportError(BrokerError):
    """Raised when the broker session fails at the transport level."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> BrokerTransportError:
        """Wrap a client or socket exception."""
        return cls(f"broker transport error: {exc}")


class PublishError(BrokerError):
    """Raised when the broker rejects a publish."""

    def __init__(self, topic: str, reason: str) -> None:
        """Initialise with the topic and the rejection reason."""
        self.topic = topic
        super().__init__(f"failed to publish to {topic}: {reason}")


class QueueClosedError(RuntimeError):
    """Raised when using an :class:`EventQueue` that has been closed."""
