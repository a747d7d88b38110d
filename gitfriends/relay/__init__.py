"""Relay broker commit events to IRC channels."""

from __future__ import annotations

from .dispatcher import ChatSender, DispatcherStats, RelayDispatcher
from .errors import ChatConnectionError, DeliveryError
from .format import file_summary, format_line, repository_basename

__all__ = [
    "ChatConnectionError",
    "ChatSender",
    "DeliveryError",
    "DispatcherStats",
    "RelayDispatcher",
    "file_summary",
    "format_line",
    "repository_basename",
]
