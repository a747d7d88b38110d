"""Consumer side of the relay: broker events in, chat lines out.

The dispatcher owns presentation only. It reads :class:`BrokerEvent` values
from the queue filled by the :class:`ConnectionSupervisor`, decodes commit
payloads, renders them with :func:`format_line` and fans each line out to
every configured channel. A bad payload or a failing channel costs one
message or one delivery, never the loop.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from gitfriends.broker import BrokerEventKind, QueueClosedError
from gitfriends.commits import CommitDecodeError, decode_commit_event
from gitfriends.logging import get_logger, log_error, log_info, log_warning

from .errors import DeliveryError
from .format import format_line

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitfriends.broker import BrokerEvent, EventQueue

logger = get_logger(__name__)

_SUBSCRIPTION_KINDS = frozenset(
    {BrokerEventKind.SUBSCRIBE, BrokerEventKind.PATTERN_SUBSCRIBE}
)


class ChatSender(typ.Protocol):
    """Chat client able to post a plain line to a channel."""

    async def send_message(self, channel: str, line: str) -> None: ...


@dataclasses.dataclass(slots=True)
class DispatcherStats:
    """Counters exposed for logging and tests."""

    relayed: int = 0
    malformed: int = 0
    failed_deliveries: int = 0


class RelayDispatcher:
    """Relay decoded commit events to chat channels."""

    def __init__(
        self,
        queue: EventQueue[BrokerEvent],
        channels: cabc.Sequence[str],
        chat: ChatSender,
    ) -> None:
        """Bind the dispatcher to its queue, channels and chat client."""
        self._queue = queue
        self._channels = tuple(channels)
        self._chat = chat
        self.stats = DispatcherStats()

    async def run(self) -> None:
        """Handle queued events until the queue is closed."""
        log_info(
            logger, "Relay dispatcher started for %d channel(s)", len(self._channels)
        )
        while True:
            try:
                event = await self._queue.get()
            except QueueClosedError:
                break
            await self.handle(event)
        log_info(
            logger, "Relay dispatcher stopped after %d line(s)", self.stats.relayed
        )

    async def handle(self, event: BrokerEvent) -> str | None:
        """Process one broker event and return the relayed line, if any."""
        if event.kind in _SUBSCRIPTION_KINDS:
            log_info(logger, "Subscribed to %s", event.topic)
            return None
        if not event.is_message:
            return None

        try:
            commit = decode_commit_event(event.payload)
        except CommitDecodeError as exc:
            self.stats.malformed += 1
            log_warning(logger, "Skipping message on %s: %s", event.topic, exc)
            return None

        line = format_line(commit)
        log_info(logger, "Received commit on %s: %s", event.topic, line)
        await self.dispatch(line)
        self.stats.relayed += 1
        return line

    async def dispatch(self, line: str) -> list[str]:
        """Send ``line`` to every channel and return those that accepted it."""
        results = await asyncio.gather(
            *(self._deliver(channel, line) for channel in self._channels)
        )
        return [
            channel
            for channel, delivered in zip(self._channels, results, strict=True)
            if delivered
        ]

    async def _deliver(self, channel: str, line: str) -> bool:
        try:
            await self._chat.send_message(channel, line)
        except DeliveryError as exc:
            self.stats.failed_deliveries += 1
            log_error(logger, "%s", exc)
            return False
        return True
