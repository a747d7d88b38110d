"""Subscriber-side broker session.

``BrokerSubscription`` wraps a ``redis.asyncio`` ``PubSub`` and turns its raw
message dictionaries into :class:`BrokerEvent` values. Any Redis or socket
failure is reported as :class:`BrokerTransportError`; the next :meth:`poll`
after a failure reconnects and restores the pattern subscriptions.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec
from redis.exceptions import RedisError

from gitfriends.logging import get_logger, log_info

from .errors import BrokerTransportError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = get_logger(__name__)

# Server replies such as a rejected PSUBSCRIBE after reconnecting are retried
# the same way as dropped sockets.
_TRANSPORT_ERRORS = (RedisError, OSError)


class BrokerEventKind(enum.StrEnum):
    """Protocol events a subscription can yield."""

    MESSAGE = "message"
    PATTERN_MESSAGE = "pmessage"
    SUBSCRIBE = "subscribe"
    PATTERN_SUBSCRIBE = "psubscribe"
    UNSUBSCRIBE = "unsubscribe"
    PATTERN_UNSUBSCRIBE = "punsubscribe"


class BrokerEvent(msgspec.Struct, frozen=True, kw_only=True):
    """One protocol event read from the broker."""

    kind: BrokerEventKind
    topic: str
    pattern: str | None = None
    payload: bytes = b""

    @property
    def is_message(self) -> bool:
        """Return whether the event carries a published payload."""
        return self.kind in {BrokerEventKind.MESSAGE, BrokerEventKind.PATTERN_MESSAGE}


def _text(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def event_from_message(message: cabc.Mapping[str, typ.Any]) -> BrokerEvent | None:
    """Convert a redis-py pub/sub message into a :class:`BrokerEvent`.

    Returns ``None`` for message types the relay does not handle (for example
    ``pong`` replies to health checks).
    """
    try:
        kind = BrokerEventKind(_text(message.get("type")))
    except ValueError:
        return None

    data = message.get("data")
    payload = data.encode("utf-8") if isinstance(data, str) else data
    return BrokerEvent(
        kind=kind,
        topic=_text(message.get("channel")) or "",
        pattern=_text(message.get("pattern")),
        payload=payload if isinstance(payload, bytes) else b"",
    )


class BrokerSubscription:
    """Pattern subscription over a Redis pub/sub connection."""

    def __init__(self, client: Redis) -> None:
        """Create the pub/sub handle from ``client``."""
        self._pubsub: PubSub = client.pubsub()
        self._filters: tuple[str, ...] = ()

    @property
    def filters(self) -> tuple[str, ...]:
        """Return the glob patterns currently subscribed."""
        return self._filters

    async def subscribe(self, filters: cabc.Iterable[str]) -> None:
        """Subscribe to every glob pattern in ``filters``.

        Raises
        ------
        BrokerTransportError
            If the broker cannot be reached.

        """
        patterns = tuple(filters)
        for pattern in patterns:
            log_info(logger, "Subscribing to topic filter %s", pattern)
        try:
            await self._pubsub.psubscribe(*patterns)
        except _TRANSPORT_ERRORS as exc:
            raise BrokerTransportError.from_exception(exc) from exc
        self._filters = (*self._filters, *patterns)

    async def poll(self, timeout: float) -> BrokerEvent | None:
        """Wait up to ``timeout`` seconds for the next protocol event.

        Raises
        ------
        BrokerTransportError
            If the connection fails or Redis returns an error while waiting.

        """
        try:
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=False, timeout=timeout
            )
        except _TRANSPORT_ERRORS as exc:
            raise BrokerTransportError.from_exception(exc) from exc
        if message is None:
            return None
        return event_from_message(message)

    async def close(self) -> None:
        """Release the pub/sub connection."""
        await self._pubsub.aclose()
