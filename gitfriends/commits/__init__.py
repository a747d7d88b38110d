"""Commit event model and its JSON wire codec."""

from __future__ import annotations

from .errors import CommitDecodeError
from .models import (
    SHORT_HASH_LENGTH,
    CommitEvent,
    Signature,
    decode_commit_event,
    encode_commit_event,
)

__all__ = [
    "SHORT_HASH_LENGTH",
    "CommitDecodeError",
    "CommitEvent",
    "Signature",
    "decode_commit_event",
    "encode_commit_event",
]
