"""Redis client construction and startup connection probing."""

from __future__ import annotations

import asyncio
import typing as typ
from urllib.parse import urlsplit

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from gitfriends.config import client_name_for
from gitfriends.logging import get_logger, log_debug, log_info

from .errors import ConnectionTimeoutError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfriends.config import BrokerConfig

logger = get_logger(__name__)

PROBE_INTERVAL_S = 0.1
DEFAULT_CONNECT_TIMEOUT_S = 10.0
DEFAULT_REDIS_PORT = 6379


def broker_address(url: str) -> str:
    """Describe the broker at ``url`` for logs, without credentials.

    >>> broker_address("redis://:secret@cache.internal/2")
    'redis://cache.internal:6379/2'
    """
    parts = urlsplit(url)
    if parts.scheme == "unix":
        return f"unix://{parts.path}"
    database = parts.path.strip("/") or "0"
    host = parts.hostname or "localhost"
    return f"{parts.scheme}://{host}:{parts.port or DEFAULT_REDIS_PORT}/{database}"


def create_broker_client(config: BrokerConfig, role: str) -> Redis:
    """Build a Redis client for ``role`` (``server``, ``relay``, ...).

    The client never retries a failed command on its own; publishing is
    at-most-once and reconnection is owned by the supervisor.
    """
    return Redis.from_url(
        config.url,
        username=config.username,
        password=config.password,
        client_name=client_name_for(config, role),
        retry=Retry(NoBackoff(), 0),
    )


async def wait_for_connection(
    probe: cabc.Callable[[], cabc.Awaitable[object]],
    timeout: float = DEFAULT_CONNECT_TIMEOUT_S,
    *,
    interval: float = PROBE_INTERVAL_S,
) -> None:
    """Call ``probe`` every ``interval`` seconds until it succeeds.

    Parameters
    ----------
    probe
        Trial command against the broker, for example ``client.ping``.
    timeout
        Seconds to keep trying.
    interval
        Pause between failed attempts.

    Raises
    ------
    ConnectionTimeoutError
        If no attempt succeeds within ``timeout``.

    """
    attempts = 0
    try:
        async with asyncio.timeout(timeout):
            while True:
                attempts += 1
                try:
                    await probe()
                except (RedisError, OSError) as exc:
                    log_debug(logger, "Broker probe %d failed: %s", attempts, exc)
                    await asyncio.sleep(interval)
                else:
                    break
    except TimeoutError as exc:
        raise ConnectionTimeoutError(timeout) from exc
    log_info(logger, "Broker connection established after %d attempt(s)", attempts)
