"""Commit event codec errors."""

from __future__ import annotations


class CommitDecodeError(ValueError):
    """Raised when a payload cannot be decoded into a ``CommitEvent``."""

    @classmethod
    def invalid_payload(cls, reason: object) -> CommitDecodeError:
        """Return an error describing why the payload was rejected."""
        return cls(f"malformed commit event payload: {reason}")
