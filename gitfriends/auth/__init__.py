"""Bearer token authentication for the webhook endpoint."""

from __future__ import annotations

from .errors import AuthenticationError, MalformedHeaderError
from .tokens import ANONYMOUS, TokenAuthority, TokenGrant, generate_token

__all__ = [
    "ANONYMOUS",
    "AuthenticationError",
    "MalformedHeaderError",
    "TokenAuthority",
    "TokenGrant",
    "generate_token",
]
