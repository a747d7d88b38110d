"""Publish commit events to their derived broker topics."""

from __future__ import annotations

import typing as typ

from redis.exceptions import RedisError

from gitfriends.commits import encode_commit_event
from gitfriends.logging import get_logger, log_debug, log_error, log_info

from .connection import DEFAULT_CONNECT_TIMEOUT_S, wait_for_connection
from .errors import PublishError

if typ.TYPE_CHECKING:
    from redis.asyncio import Redis

    from gitfriends.commits import CommitEvent

    from .topics import TopicRouter

logger = get_logger(__name__)


class EventPublisher:
    """At-most-once publisher for :class:`CommitEvent` values.

    Each call sends one ``PUBLISH`` and returns; there is no delivery
    acknowledgement and failed sends are never retried here. Callers decide
    what a failure means.
    """

    def __init__(self, client: Redis, router: TopicRouter) -> None:
        """Bind the publisher to a Redis client and a topic router."""
        self._client = client
        self._router = router

    @property
    def router(self) -> TopicRouter:
        """Return the router used to derive topics."""
        return self._router

    async def publish(self, event: CommitEvent, identity: str | None = None) -> str:
        """Publish ``event`` and return the topic it was sent to.

        Parameters
        ----------
        event
            Commit to publish.
        identity
            Authenticated publisher, inserted as the second topic segment.

        Raises
        ------
        PublishError
            If the broker rejects the command or the connection fails.

        """
        topic = self._router.derive(
            event.repository_url, event.committer_name, identity
        )
        payload = encode_commit_event(event)
        log_info(logger, "Publishing commit %s to topic %s", event.short_hash, topic)
        try:
            receivers = await self._client.publish(topic, payload)
        except (RedisError, OSError) as exc:
            log_error(logger, "Publish to %s failed: %s", topic, exc)
            raise PublishError(topic, str(exc)) from exc
        log_debug(logger, "Topic %s had %s subscriber(s)", topic, receivers)
        return topic

    async def wait_for_connection(
        self,
        timeout: float = DEFAULT_CONNECT_TIMEOUT_S,
    ) -> None:
        """Block until the broker answers a ``PING`` or ``timeout`` elapses.

        Raises
        ------
        ConnectionTimeoutError
            If the broker stays unreachable for ``timeout`` seconds.

        """
        await wait_for_connection(self._client.ping, timeout)
