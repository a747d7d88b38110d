"""git-friends webhook server entrypoint.

``create_app`` builds the Falcon ASGI application from configuration: token
authority, topic router, Redis client and publisher, plus the lifecycle
middleware that waits for the broker before accepting traffic. ``main``
serves it with Granian, keeping ``gitfriends.runtime:create_app`` as a stable
factory path.

Configuration is loaded with :func:`gitfriends.config.load_config`; the log
level comes from ``GITFRIENDS_LOG_LEVEL``.

Run the server directly with ``python -m gitfriends.runtime``.
"""

from __future__ import annotations

import typing as typ

from gitfriends.api.app import AppDependencies
from gitfriends.api.app import create_app as _create_api_app
from gitfriends.api.middleware import BrokerLifecycle
from gitfriends.auth import TokenAuthority
from gitfriends.broker import (
    EventPublisher,
    TopicRouter,
    broker_address,
    create_broker_client,
)
from gitfriends.config import GitFriendsConfig, load_config
from gitfriends.logging import configure_logging, get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["build_dependencies", "create_app", "main"]

logger = get_logger(__name__)

SERVER_ROLE = "server"


def build_dependencies(config: GitFriendsConfig) -> AppDependencies:
    """Assemble the webhook collaborators described by ``config``."""
    authority = TokenAuthority(
        config.auth.tokens, require_auth=config.auth.require_auth
    )
    router = TopicRouter(config.broker.topic_prefix, config.repositories.aliases)
    client = create_broker_client(config.broker, SERVER_ROLE)
    publisher = EventPublisher(client, router)
    lifecycle = BrokerLifecycle(
        publisher, client, connect_timeout_s=config.broker.connect_timeout_s
    )
    return AppDependencies(
        authority=authority,
        publisher=publisher,
        readiness_probe=client.ping,
        lifecycle=lifecycle,
    )


def create_app(config: GitFriendsConfig | None = None) -> falcon.asgi.App:
    """Create the webhook application from ``config`` or the environment."""
    resolved = config if config is not None else load_config()
    if not resolved.auth.require_auth:
        log_warning(logger, "Authentication disabled; all webhooks are anonymous")
    log_info(
        logger,
        "Webhook publisher using broker %s with topic prefix %s (%d token(s))",
        broker_address(resolved.broker.url),
        resolved.broker.topic_prefix,
        len(resolved.auth.tokens),
    )
    return _create_api_app(build_dependencies(resolved))


def main(config: GitFriendsConfig | None = None) -> None:
    """Serve the webhook application with Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    normalized_level, invalid_level = configure_logging()
    if invalid_level:
        log_warning(
            logger, "Invalid GITFRIENDS_LOG_LEVEL, falling back to %s", normalized_level
        )

    resolved = config if config is not None else load_config()
    log_info(
        logger,
        "Starting git-friends server on %s:%d (log_level=%s)",
        resolved.server.host,
        resolved.server.port,
        normalized_level,
    )

    server = Granian(
        "gitfriends.runtime:create_app",
        address=resolved.server.host,
        port=resolved.server.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
