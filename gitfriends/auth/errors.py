"""Authentication errors raised while resolving webhook credentials."""

from __future__ import annotations


class AuthenticationError(Exception):
    """Raised when a request cannot be bound to an identity.

    Attributes
    ----------
    reason
        Short machine-friendly reason used in logs only. Callers see the
        same response regardless of the reason.

    """

    def __init__(self, reason: str) -> None:
        """Initialise with the reason the request was rejected."""
        self.reason = reason
        super().__init__(f"authentication failed: {reason}")

    @classmethod
    def unknown_token(cls) -> AuthenticationError:
        """Return an error for a well-formed but unrecognised token."""
        return cls("unknown token")

    @classmethod
    def missing_credentials(cls) -> AuthenticationError:
        """Return an error for a request without an Authorization header."""
        return cls("authorization header required")


class MalformedHeaderError(AuthenticationError):
    """Raised when an Authorization header lacks the ``Bearer`` scheme."""

    def __init__(self) -> None:
        """Initialise with a fixed reason."""
        super().__init__("authorization header is not a bearer token")
