# src/task_minder/core/streams.py

from __future__ import annotations

"""
Live value streams.

A StateStream holds one current value and fans it out to any number of async
subscribers. Delivery is conflated: a slow subscriber only ever sees the most
recent value, never a backlog. Setting a value equal to the current one is a
no-op (distinct-until-changed).

set() must be called from the event loop thread that owns the subscribers.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")


class StateStream(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: set[asyncio.Queue[T]] = set()

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        for q in self._subscribers:
            # Conflate: drop whatever the subscriber has not consumed yet.
            while not q.empty():
                q.get_nowait()
            q.put_nowait(value)

    async def subscribe(self) -> AsyncIterator[T]:
        q: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        self._subscribers.add(q)
        try:
            yield self._value
            while True:
                yield await q.get()
        finally:
            self._subscribers.discard(q)
