"""Long-running owner of the subscriber-side broker session.

The supervisor is the only code that touches the broker connection on the
relay side. It forwards every protocol event into an :class:`EventQueue` and
rides out transport failures with a fixed backoff, so the consumer never sees
a connection error. It stops only when the queue is closed or its task is
cancelled.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from gitfriends.logging import get_logger, log_info, log_warning

from .errors import BrokerTransportError, QueueClosedError

if typ.TYPE_CHECKING:
    from .queue import EventQueue
    from .session import BrokerEvent

logger = get_logger(__name__)

DEFAULT_BACKOFF_S = 5.0
DEFAULT_POLL_TIMEOUT_S = 1.0


class PollableSession(typ.Protocol):
    """Broker session yielding protocol events."""

    async def poll(self, timeout: float) -> BrokerEvent | None: ...


@dataclasses.dataclass(slots=True)
class SupervisorStats:
    """Counters exposed for logging and tests."""

    events_forwarded: int = 0
    transport_failures: int = 0


class ConnectionSupervisor:
    """Poll a broker session and forward its events to a queue.

    Parameters
    ----------
    session
        Subscriber session to poll.
    queue
        Bounded queue shared with the consumer.
    backoff_s
        Pause after a transport error before polling again.
    poll_timeout_s
        Longest single wait for the next event; bounds how quickly the loop
        notices a closed queue while the broker is idle.

    """

    def __init__(
        self,
        session: PollableSession,
        queue: EventQueue[BrokerEvent],
        *,
        backoff_s: float = DEFAULT_BACKOFF_S,
        poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
    ) -> None:
        """Configure the supervisor; call :meth:`run` to start it."""
        self._session = session
        self._queue = queue
        self._backoff_s = backoff_s
        self._poll_timeout_s = poll_timeout_s
        self.stats = SupervisorStats()

    async def run(self) -> None:
        """Forward events until the queue is closed."""
        log_info(logger, "Broker supervisor started")
        consecutive_failures = 0

        while not self._queue.closed:
            try:
                event = await self._session.poll(self._poll_timeout_s)
            except BrokerTransportError as exc:
                consecutive_failures += 1
                self.stats.transport_failures += 1
                log_warning(
                    logger,
                    "%s; retrying in %.1fs (attempt %d)",
                    exc,
                    self._backoff_s,
                    consecutive_failures,
                )
                await asyncio.sleep(self._backoff_s)
                continue

            if consecutive_failures:
                log_info(
                    logger,
                    "Broker session recovered after %d failure(s)",
                    consecutive_failures,
                )
                consecutive_failures = 0

            if event is None:
                continue

            try:
                await self._queue.put(event)
            except QueueClosedError:
                break
            self.stats.events_forwarded += 1

        log_info(
            logger,
            "Broker supervisor stopped after forwarding %d event(s)",
            self.stats.events_forwarded,
        )
