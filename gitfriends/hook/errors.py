"""Errors raised while collecting or sending commit events."""

from __future__ import annotations


class HookError(RuntimeError):
    """Raised when the hook cannot build or deliver a commit event."""

    @classmethod
    def git_unavailable(cls) -> HookError:
        """Create an error for a missing git executable."""
        return cls("git executable not found on PATH")

    @classmethod
    def git_failed(cls, command: str, stderr: str) -> HookError:
        """Create an error for a failed git invocation."""
        detail = stderr.strip() or "no output"
        return cls(f"git {command} failed: {detail}")

    @classmethod
    def missing_env(cls, name: str) -> HookError:
        """Create an error for a required environment variable."""
        return cls(f"{name} is not set")

    @classmethod
    def rejected(cls, status_code: int) -> HookError:
        """Create an error for a non-success webhook response."""
        return cls(f"server returned HTTP {status_code}")

    @classmethod
    def unreachable(cls, server_url: str, reason: str) -> HookError:
        """Create an error for a transport failure."""
        return cls(f"could not reach {server_url}: {reason}")

    @classmethod
    def unexpected_reply(cls, status_code: int) -> HookError:
        """Create an error for a success status without a JSON object body."""
        return cls(f"server returned HTTP {status_code} without a JSON reply")
