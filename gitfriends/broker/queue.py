"""Bounded, closable hand-off between the supervisor and the dispatcher."""

from __future__ import annotations

import asyncio

from .errors import QueueClosedError

DEFAULT_QUEUE_SIZE = 100


class EventQueue[T]:
    """Bounded queue that either side can close.

    ``put`` blocks while the queue is full, so a slow consumer slows the
    producer down instead of losing events. ``close`` discards anything still
    buffered and makes pending and later ``put``/``get`` calls raise
    :class:`QueueClosedError`.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        """Create a queue holding at most ``maxsize`` items."""
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        """Return whether :meth:`close` has been called."""
        return self._closed

    @property
    def maxsize(self) -> int:
        """Return the queue capacity."""
        return self._queue.maxsize

    def qsize(self) -> int:
        """Return the number of buffered items."""
        return self._queue.qsize()

    async def put(self, item: T) -> None:
        """Enqueue ``item``, waiting while the queue is full."""
        try:
            await self._queue.put(item)
        except asyncio.QueueShutDown as exc:
            raise QueueClosedError from exc

    async def get(self) -> T:
        """Return the next item, waiting while the queue is empty."""
        try:
            return await self._queue.get()
        except asyncio.QueueShutDown as exc:
            raise QueueClosedError from exc

    def close(self) -> None:
        """Close the queue, dropping buffered items and waking all waiters."""
        self._closed = True
        self._queue.shutdown(immediate=True)
