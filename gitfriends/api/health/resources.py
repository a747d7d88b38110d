"""Liveness and readiness resources.

``/health`` only proves the process is serving requests. ``/ready`` also
asks the broker for a ``PING`` when a probe is configured, so a load balancer
stops routing webhooks to an instance that cannot publish them.

Usage
-----
Register health endpoints on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(probe=client.ping))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from redis.exceptions import RedisError

from gitfriends.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]

logger = get_logger(__name__)


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe returning ``{"status": "ready"}``.

    Parameters
    ----------
    probe
        Optional coroutine function checking the broker. Without one the
        resource always reports ready.

    """

    def __init__(
        self,
        probe: cabc.Callable[[], cabc.Awaitable[object]] | None = None,
    ) -> None:
        """Store the optional broker probe."""
        self._probe = probe

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        if self._probe is not None:
            try:
                await self._probe()
            except (RedisError, OSError) as exc:
                log_warning(logger, "Readiness probe failed: %s", exc)
                resp.media = {"status": "unavailable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return

        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
