"""Broker lifecycle middleware for the Falcon ASGI application.

Falcon forwards ASGI lifespan events to middleware exposing
``process_startup`` and ``process_shutdown``. ``BrokerLifecycle`` uses them to
refuse to start until the broker answers, and to release the Redis
connection pool when the server stops.

Usage
-----
Register the middleware when creating the Falcon app::

    lifecycle = BrokerLifecycle(publisher, client, connect_timeout_s=10.0)
    app = falcon.asgi.App(middleware=[lifecycle])

"""

from __future__ import annotations

import typing as typ

from gitfriends.broker import ConnectionTimeoutError
from gitfriends.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    from redis.asyncio import Redis

    from gitfriends.broker import EventPublisher

__all__ = ["BrokerLifecycle"]

logger = get_logger(__name__)


class BrokerLifecycle:
    """Connect to the broker on startup and disconnect on shutdown.

    Parameters
    ----------
    publisher
        Publisher whose connection is awaited at startup.
    client
        Redis client closed at shutdown.
    connect_timeout_s
        Seconds to wait for the broker before startup fails.

    """

    def __init__(
        self,
        publisher: EventPublisher,
        client: Redis,
        *,
        connect_timeout_s: float,
    ) -> None:
        """Store the collaborators used during the lifespan events."""
        self._publisher = publisher
        self._client = client
        self._connect_timeout_s = connect_timeout_s

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: object
    ) -> None:
        """Wait for the broker; a timeout aborts application startup.

        Raises
        ------
        ConnectionTimeoutError
            If the broker stays unreachable for ``connect_timeout_s``.

        """
        log_info(logger, "Connecting to broker...")
        try:
            await self._publisher.wait_for_connection(self._connect_timeout_s)
        except ConnectionTimeoutError as exc:
            log_error(logger, "Broker unavailable at startup: %s", exc, exc_info=exc)
            raise
        log_info(logger, "Connected to broker")

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: object
    ) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()
        log_info(logger, "Broker connection closed")
