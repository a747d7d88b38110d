"""git-friends: relay commit notifications from webhooks to IRC channels."""

from __future__ import annotations

__all__: list[str] = []
