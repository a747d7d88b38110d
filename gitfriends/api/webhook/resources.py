"""Webhook resource accepting commit events from hooks and CI.

``POST /webhook`` authenticates the caller, validates the JSON body as a
:class:`~gitfriends.commits.CommitEvent` and publishes it under the caller's
identity. Authentication runs before the body is read, and nothing is
published unless it succeeds.

Usage
-----
Register the resource on the Falcon app::

    app.add_route(
        "/webhook",
        WebhookResource(WebhookDependencies(authority=authority, publisher=publisher)),
    )

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon

from gitfriends.api.errors import InvalidInputError
from gitfriends.auth import ANONYMOUS, AuthenticationError
from gitfriends.commits import CommitDecodeError, decode_commit_event
from gitfriends.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gitfriends.auth import TokenAuthority
    from gitfriends.broker import EventPublisher

__all__ = ["WebhookDependencies", "WebhookResource"]

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class WebhookDependencies:
    """Collaborators for ``WebhookResource``.

    Attributes
    ----------
    authority
        Token table used to resolve the caller's identity.
    publisher
        Publisher that forwards accepted commits to the broker.

    """

    authority: TokenAuthority
    publisher: EventPublisher


class WebhookResource:
    """Resource for ``POST /webhook``."""

    def __init__(self, dependencies: WebhookDependencies) -> None:
        """Configure the resource with its collaborators."""
        self._authority = dependencies.authority
        self._publisher = dependencies.publisher

    async def on_post(self, req: Request, resp: Response) -> None:
        """Authenticate, validate and publish one commit event.

        Raises
        ------
        AuthenticationError
            Mapped to 401 when the credential is missing, malformed or
            unknown.
        InvalidInputError
            Mapped to 400 when the body is not a valid commit event.
        PublishError
            Mapped to 500 when the broker rejects the publish.

        """
        identity = self._authenticate(req.get_header("Authorization"))

        body = await req.stream.read()
        try:
            event = decode_commit_event(body)
        except CommitDecodeError as exc:
            log_warning(logger, "Rejected webhook body from %s: %s", identity, exc)
            raise InvalidInputError(str(exc)) from exc

        log_info(
            logger,
            "Processing commit %s by %s - %s",
            event.short_hash,
            event.author_name,
            event.summary,
        )
        topic = await self._publisher.publish(event, identity)

        resp.status = falcon.HTTP_200
        resp.media = {"status": "published", "topic": topic}

    def _authenticate(self, header: str | None) -> str:
        """Return the caller's identity or raise ``AuthenticationError``."""
        if header is None:
            if self._authority.require_auth:
                log_warning(logger, "Authentication required but not provided")
                raise AuthenticationError.missing_credentials()
            return ANONYMOUS

        try:
            identity = self._authority.validate_bearer(header)
        except AuthenticationError as exc:
            log_warning(logger, "Authentication failed: %s", exc.reason)
            raise

        if identity is None:
            log_warning(logger, "Authentication failed: unknown token")
            raise AuthenticationError.unknown_token()

        log_info(logger, "Authenticated webhook caller %s", identity)
        return identity
