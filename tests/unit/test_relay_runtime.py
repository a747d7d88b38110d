"""Unit tests for the relay process wiring.

Usage
-----
Run with pytest::

    pytest tests/unit/test_relay_runtime.py

"""

from __future__ import annotations

import asyncio
from unittest import mock

import pytest

from gitfriends.broker import ConnectionTimeoutError
from gitfriends.commits import encode_commit_event
from gitfriends.config import BrokerConfig, GitFriendsConfig, IrcConfig, RelayConfig
from gitfriends.relay import runtime
from gitfriends.relay.errors import ChatConnectionError
from tests.helpers.commit_builders import build_commit


def _config() -> GitFriendsConfig:
    return GitFriendsConfig(
        broker=BrokerConfig(connect_timeout_s=0.05),
        irc=IrcConfig(channels=("#dev",)),
        relay=RelayConfig(reconnect_backoff_s=0, poll_timeout_s=0.01),
    )


@pytest.fixture
def chat() -> mock.MagicMock:
    """Return a chat client double."""
    client = mock.MagicMock()
    client.start = mock.AsyncMock()
    client.send_message = mock.AsyncMock()
    client.connection_lost = asyncio.Event()

    async def wait_disconnected() -> str:
        await client.connection_lost.wait()
        return "Connection reset by peer"

    client.wait_disconnected = mock.AsyncMock(side_effect=wait_disconnected)
    return client


@pytest.fixture
def redis_client() -> mock.MagicMock:
    """Return a Redis client double with a scripted pub/sub handle."""
    client = mock.MagicMock()
    client.ping = mock.AsyncMock(return_value=True)
    client.aclose = mock.AsyncMock()
    pubsub = client.pubsub.return_value
    pubsub.psubscribe = mock.AsyncMock()
    pubsub.aclose = mock.AsyncMock()
    messages = [
        {
            "type": "pmessage",
            "pattern": b"git-friends/*",
            "channel": b"git-friends/alice/github_com_user_repo/bob",
            "data": encode_commit_event(build_commit()),
        }
    ]

    async def get_message(**_: object) -> dict[str, object] | None:
        if messages:
            return messages.pop()
        await asyncio.sleep(0.001)
        return None

    pubsub.get_message = mock.AsyncMock(side_effect=get_message)
    return client


@pytest.fixture(autouse=True)
def _patched(
    monkeypatch: pytest.MonkeyPatch,
    chat: mock.MagicMock,
    redis_client: mock.MagicMock,
) -> None:
    """Replace the IRC client and Redis factory used by run_relay."""
    monkeypatch.setattr(runtime, "IrcChatClient", mock.Mock(return_value=chat))
    monkeypatch.setattr(
        runtime, "create_broker_client", mock.Mock(return_value=redis_client)
    )


@pytest.mark.asyncio
async def test_relays_commit_and_cleans_up(
    chat: mock.MagicMock, redis_client: mock.MagicMock
) -> None:
    """A published commit reaches IRC; cancelling releases every resource."""
    task = asyncio.create_task(runtime.run_relay(_config()))
    async with asyncio.timeout(1.0):
        while not chat.send_message.await_count:
            await asyncio.sleep(0.001)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    channel, line = chat.send_message.await_args.args
    assert channel == "#dev", "expected the configured channel"
    assert line.startswith("[abcdef1] repo by Alice Example"), line
    redis_client.pubsub.return_value.psubscribe.assert_awaited_once_with(
        "git-friends/*"
    )
    redis_client.aclose.assert_awaited_once()
    chat.close.assert_called_once()


@pytest.mark.asyncio
async def test_unreachable_broker_aborts_startup(
    chat: mock.MagicMock, redis_client: mock.MagicMock
) -> None:
    """The relay gives up when the broker never answers."""
    redis_client.ping.side_effect = OSError("refused")

    with pytest.raises(ConnectionTimeoutError):
        await runtime.run_relay(_config())

    redis_client.aclose.assert_awaited_once()
    chat.close.assert_called_once()


@pytest.mark.asyncio
async def test_chat_disconnect_stops_relay(
    chat: mock.MagicMock, redis_client: mock.MagicMock
) -> None:
    """Losing IRC ends the relay with ChatConnectionError and cleans up."""
    task = asyncio.create_task(runtime.run_relay(_config()))
    async with asyncio.timeout(1.0):
        while not chat.send_message.await_count:
            await asyncio.sleep(0.001)

    chat.connection_lost.set()
    async with asyncio.timeout(1.0):
        with pytest.raises(ChatConnectionError, match="Connection reset by peer"):
            await task

    redis_client.pubsub.return_value.aclose.assert_awaited_once()
    redis_client.aclose.assert_awaited_once()
    chat.close.assert_called_once()
