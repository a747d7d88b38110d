"""Relay process: broker subscription on one side, IRC on the other.

``run_relay`` wires the pieces together and runs two tasks that share only
the :class:`EventQueue`:

- the :class:`ConnectionSupervisor`, which owns the broker subscription;
- the :class:`RelayDispatcher`, which owns formatting and chat delivery.

Both tasks run until the queue is closed or the process is interrupted. A
third task watches the IRC connection and closes the queue when it drops, so
the relay exits with :class:`ChatConnectionError` and can be restarted by its
process supervisor.
"""

from __future__ import annotations

import asyncio
import typing as typ

from gitfriends.broker import (
    BrokerSubscription,
    ConnectionSupervisor,
    EventQueue,
    create_broker_client,
    wait_for_connection,
)
from gitfriends.logging import get_logger, log_info, log_warning

from .dispatcher import RelayDispatcher
from .errors import ChatConnectionError
from .irc import IrcChatClient

if typ.TYPE_CHECKING:
    from gitfriends.broker import BrokerEvent
    from gitfriends.config import GitFriendsConfig

logger = get_logger(__name__)

RELAY_ROLE = "relay"


async def _watch_chat(chat: IrcChatClient, queue: EventQueue[BrokerEvent]) -> str:
    """Close ``queue`` once the chat connection drops; return the reason."""
    reason = await chat.wait_disconnected()
    log_warning(logger, "IRC connection lost (%s); stopping relay", reason)
    queue.close()
    return reason


async def run_relay(config: GitFriendsConfig) -> None:
    """Run the relay until cancelled or the IRC connection drops.

    Raises
    ------
    ChatConnectionError
        If IRC cannot be reached at startup or disconnects later.
    ConnectionTimeoutError
        If the broker does not answer within ``broker.connect_timeout_s``.

    """
    log_info(
        logger,
        "Starting relay: IRC %s:%d channels=%s filters=%s",
        config.irc.server,
        config.irc.port,
        ",".join(config.irc.channels),
        ",".join(config.irc.topic_filters),
    )

    chat = IrcChatClient(config.irc)
    await chat.start()

    client = create_broker_client(config.broker, RELAY_ROLE)
    subscription = BrokerSubscription(client)
    queue: EventQueue[BrokerEvent] = EventQueue(maxsize=config.relay.queue_size)
    try:
        await wait_for_connection(client.ping, config.broker.connect_timeout_s)
        await subscription.subscribe(config.irc.topic_filters)

        supervisor = ConnectionSupervisor(
            subscription,
            queue,
            backoff_s=config.relay.reconnect_backoff_s,
            poll_timeout_s=config.relay.poll_timeout_s,
        )
        dispatcher = RelayDispatcher(queue, config.irc.channels, chat)
        async with asyncio.TaskGroup() as group:
            group.create_task(supervisor.run(), name="broker-supervisor")
            group.create_task(dispatcher.run(), name="relay-dispatcher")
            watcher = group.create_task(
                _watch_chat(chat, queue), name="chat-watcher"
            )
        raise ChatConnectionError.lost(config.irc.server, watcher.result())
    finally:
        queue.close()
        await subscription.close()
        await client.aclose()
        chat.close()
        log_info(logger, "Relay stopped")
