"""Unit tests for the closable EventQueue.

Usage
-----
Run with pytest::

    pytest tests/unit/test_event_queue.py

"""

from __future__ import annotations

import asyncio

import pytest

from gitfriends.broker import EventQueue, QueueClosedError


@pytest.mark.asyncio
async def test_items_are_fifo() -> None:
    """Items come out in the order they went in."""
    queue: EventQueue[int] = EventQueue(maxsize=3)
    for item in (1, 2, 3):
        await queue.put(item)

    assert [await queue.get() for _ in range(3)] == [1, 2, 3]


@pytest.mark.asyncio
async def test_full_queue_blocks_producer() -> None:
    """put waits while the queue is at capacity."""
    queue: EventQueue[int] = EventQueue(maxsize=1)
    await queue.put(1)

    blocked = asyncio.create_task(queue.put(2))
    await asyncio.sleep(0)
    assert not blocked.done(), "expected put to wait for space"

    assert await queue.get() == 1
    await asyncio.wait_for(blocked, timeout=1.0)
    assert queue.qsize() == 1, "expected the second item to be buffered"


@pytest.mark.asyncio
async def test_close_wakes_waiting_consumer() -> None:
    """A consumer blocked on get sees QueueClosedError after close."""
    queue: EventQueue[int] = EventQueue()
    waiter = asyncio.create_task(queue.get())
    await asyncio.sleep(0)

    queue.close()

    with pytest.raises(QueueClosedError):
        await asyncio.wait_for(waiter, timeout=1.0)


@pytest.mark.asyncio
async def test_closed_queue_rejects_put_and_get() -> None:
    """Both sides fail fast once the queue is closed."""
    queue: EventQueue[int] = EventQueue()
    await queue.put(1)
    queue.close()

    assert queue.closed, "expected closed flag"
    with pytest.raises(QueueClosedError):
        await queue.put(2)
    with pytest.raises(QueueClosedError):
        await queue.get()
