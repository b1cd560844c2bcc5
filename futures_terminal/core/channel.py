"""
EventChannel: typed producer/consumer channel for one stream session.

Producers call publish() (never blocks); consumers iterate with
`async for event in channel`. The queue is bounded: when the consumer falls
behind, the oldest event is dropped and counted. close() ends iteration
once the queued events are drained.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Generic, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()


class EventChannel(Generic[T]):
    DEFAULT_QUEUE_SIZE = 1000

    def __init__(self, name: str, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize + 1)  # +1 slot for the close sentinel
        self._maxsize = maxsize
        self._closed = False
        self.published = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def publish(self, event: T) -> bool:
        """Enqueue an event. Returns False if an older event had to be dropped."""
        if self._closed:
            return True
        dropped = False
        while self._queue.qsize() >= self._maxsize:
            self._queue.get_nowait()
            self.dropped += 1
            dropped = True
        self._queue.put_nowait(event)
        self.published += 1
        return not dropped

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: Optional[float] = None) -> T:
        """Next event. Raises StopAsyncIteration once closed and drained."""
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            # keep the sentinel for other consumers
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await self.get()
