"""Test doubles for the Redis client, broker sessions and chat clients."""

from __future__ import annotations

import asyncio
import collections
import typing as typ
from unittest import mock

from gitfriends.relay import DeliveryError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfriends.broker import BrokerEvent


def fake_redis_client() -> mock.MagicMock:
    """Return a Redis client double whose commands succeed."""
    client = mock.MagicMock()
    client.publish = mock.AsyncMock(return_value=1)
    client.ping = mock.AsyncMock(return_value=True)
    client.aclose = mock.AsyncMock()
    return client


class ScriptedSession:
    """Broker session replaying a script of events and exceptions.

    Once the script is exhausted every poll sleeps briefly and returns
    ``None``, like an idle broker.
    """

    def __init__(self, script: cabc.Iterable[BrokerEvent | Exception | None]) -> None:
        self._script = collections.deque(script)
        self.polls = 0

    async def poll(self, timeout: float) -> BrokerEvent | None:
        self.polls += 1
        if not self._script:
            await asyncio.sleep(min(timeout, 0.001))
            return None
        step = self._script.popleft()
        if isinstance(step, Exception):
            raise step
        return step


class RecordingChat:
    """Chat double recording delivered lines; some channels can fail."""

    def __init__(self, failing: cabc.Iterable[str] = ()) -> None:
        self.failing = frozenset(failing)
        self.sent: list[tuple[str, str]] = []

    async def send_message(self, channel: str, line: str) -> None:
        if channel in self.failing:
            raise DeliveryError(channel, "not connected")
        self.sent.append((channel, line))
