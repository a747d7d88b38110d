"""Token table mapping bearer tokens to identities.

The table is read on every webhook request and changed only when tokens are
provisioned, so it is stored copy-on-write: writers serialise on a lock and
swap in a fresh read-only mapping, while readers dereference the current
mapping without locking.

Usage
-----
>>> authority = TokenAuthority([TokenGrant(token="t0k", username="alice")])
>>> authority.validate_bearer("Bearer t0k")
'alice'
>>> TokenAuthority(require_auth=False).validate("anything")
'anonymous'

"""

from __future__ import annotations

import base64
import threading
import types
import typing as typ
import uuid

import msgspec

from gitfriends.logging import get_logger, log_info

from .errors import MalformedHeaderError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

ANONYMOUS = "anonymous"
BEARER_PREFIX = "Bearer "


class TokenGrant(msgspec.Struct, frozen=True, kw_only=True):
    """A token bound to the identity that publishes with it."""

    token: str
    username: str


def generate_token() -> str:
    """Return a random URL-safe token (base64 of a UUID4, unpadded)."""
    raw = uuid.uuid4().bytes
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class TokenAuthority:
    """Validate bearer tokens and provision new ones.

    Parameters
    ----------
    grants
        Tokens loaded at startup. Several tokens may share one identity.
    require_auth
        When ``False`` every credential resolves to ``"anonymous"`` and the
        table is never consulted.

    """

    def __init__(
        self,
        grants: cabc.Iterable[TokenGrant] = (),
        *,
        require_auth: bool = True,
    ) -> None:
        """Build the table from ``grants``."""
        self._require_auth = require_auth
        self._write_lock = threading.Lock()
        self._tokens: cabc.Mapping[str, str] = types.MappingProxyType(
            {grant.token: grant.username for grant in grants}
        )

    @property
    def require_auth(self) -> bool:
        """Return whether requests must present a known token."""
        return self._require_auth

    def validate(self, token: str) -> str | None:
        """Return the identity bound to ``token``, or ``None``."""
        if not self._require_auth:
            return ANONYMOUS
        return self._tokens.get(token)

    def validate_bearer(self, header: str) -> str | None:
        """Resolve an ``Authorization`` header value to an identity.

        Raises
        ------
        MalformedHeaderError
            If auth is enabled and ``header`` does not start with
            ``"Bearer "``.

        """
        if not self._require_auth:
            return ANONYMOUS
        if not header.startswith(BEARER_PREFIX):
            raise MalformedHeaderError
        return self._tokens.get(header.removeprefix(BEARER_PREFIX))

    def add(self, token: str, identity: str) -> None:
        """Bind ``token`` to ``identity``, replacing any previous binding."""
        with self._write_lock:
            updated = dict(self._tokens)
            updated[token] = identity
            self._tokens = types.MappingProxyType(updated)
        log_info(logger, "Provisioned token for identity %s", identity)

    def remove(self, token: str) -> str | None:
        """Revoke ``token`` and return the identity it was bound to."""
        with self._write_lock:
            updated = dict(self._tokens)
            previous = updated.pop(token, None)
            if previous is not None:
                self._tokens = types.MappingProxyType(updated)
        if previous is not None:
            log_info(logger, "Revoked token for identity %s", previous)
        return previous

    def list_tokens(self) -> list[TokenGrant]:
        """Return a snapshot of every provisioned token."""
        return [
            TokenGrant(token=token, username=username)
            for token, username in self._tokens.items()
        ]

    def generate_grant(self, identity: str) -> TokenGrant:
        """Create, register and return a fresh token for ``identity``."""
        grant = TokenGrant(token=generate_token(), username=identity)
        self.add(grant.token, grant.username)
        return grant
