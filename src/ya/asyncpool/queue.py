"""Implementation of the HandoffQueue class."""
from __future__ import annotations

import asyncio
from collections import deque
from contextlib import suppress
from typing import Any, Deque, Generic, Optional, TypeVar

__all__ = 'HandoffQueue'.split()

T = TypeVar('T')  # pragma: no mutate


class HandoffQueue(Generic[T]):
    """Unbounded FIFO queue handing items directly to waiting consumers.

    At any time either the buffer or the list of waiters is empty. An item
    enqueued while somebody waits is delivered to the oldest waiter without
    ever being buffered, and a dequeue with items in the buffer never waits.
    """
    __slots__ = (
        '__items',
        '__waiters',
    )

    def __init__(self: HandoffQueue) -> None:
        """Initialize the object."""
        self.__items: Deque[T] = deque()
        self.__waiters: Deque[asyncio.Future] = deque()

    def enqueue(self: HandoffQueue, item: T) -> None:
        """Hand the item to the oldest waiter, or buffer it."""
        while self.__waiters:
            waiter = self.__waiters.popleft()
            if not waiter.done():
                waiter.set_result(item)
                return
        self.__items.append(item)

    async def dequeue(self: HandoffQueue) -> T:
        """Remove and return the oldest item, waiting for one if necessary."""
        if self.__items:
            return self.__items.popleft()

        waiter = asyncio.get_running_loop().create_future()
        self.__waiters.append(waiter)
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # delivered after the cancellation was requested
                self.__restore(waiter.result())
            else:
                with suppress(ValueError):
                    self.__waiters.remove(waiter)
            raise

    def peek(self: HandoffQueue, default: Any = None) -> Optional[T]:
        """Get the oldest buffered item without removing it."""
        if self.__items:
            return self.__items[0]
        return default

    @property
    def waiters(self: HandoffQueue) -> int:
        """Get the number of consumers currently waiting for an item."""
        return sum(1 for waiter in self.__waiters if not waiter.done())

    def __len__(self: HandoffQueue) -> int:
        """Get the number of currently buffered items."""
        return len(self.__items)

    def __restore(self: HandoffQueue, item: T) -> None:
        """Put an item back at the head of the line."""
        while self.__waiters:
            waiter = self.__waiters.popleft()
            if not waiter.done():
                waiter.set_result(item)
                return
        self.__items.appendleft(item)


# vim:et sw=4 ts=4
