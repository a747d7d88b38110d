"""Application factory for the git-friends Falcon ASGI application.

``create_app()`` always registers ``/health`` and ``/ready``. The
``POST /webhook`` endpoint is added when a token authority and a publisher
are supplied.

Usage
-----
Create a health-only app::

    app = create_app()

Create the full webhook app::

    from gitfriends.api.app import AppDependencies, create_app

    deps = AppDependencies(authority=authority, publisher=publisher)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from gitfriends.api.errors import (
    InvalidInputError,
    handle_authentication_error,
    handle_invalid_input,
    handle_publish_error,
)
from gitfriends.api.health.resources import HealthResource, ReadyResource
from gitfriends.auth import AuthenticationError
from gitfriends.broker import PublishError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfriends.api.middleware import BrokerLifecycle
    from gitfriends.auth import TokenAuthority
    from gitfriends.broker import EventPublisher

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    authority
        Token table for webhook authentication.
    publisher
        Publisher forwarding accepted commits to the broker.
    readiness_probe
        Optional broker check used by ``/ready``.
    lifecycle
        Optional middleware connecting to the broker on startup.

    """

    authority: TokenAuthority | None = None
    publisher: EventPublisher | None = None
    readiness_probe: cabc.Callable[[], cabc.Awaitable[object]] | None = None
    lifecycle: BrokerLifecycle | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or missing the
        authority or publisher, only health endpoints are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    middleware: list[object] = []
    if deps.lifecycle is not None:
        middleware.append(deps.lifecycle)

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(probe=deps.readiness_probe))

    if deps.authority is not None and deps.publisher is not None:
        from gitfriends.api.webhook.resources import (
            WebhookDependencies,
            WebhookResource,
        )

        app.add_route(
            "/webhook",
            WebhookResource(
                WebhookDependencies(authority=deps.authority, publisher=deps.publisher)
            ),
        )

    app.add_error_handler(AuthenticationError, handle_authentication_error)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(PublishError, handle_publish_error)

    return app
