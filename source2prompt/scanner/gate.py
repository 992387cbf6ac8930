"""Bounded admission gate for filesystem operations."""

import asyncio
from collections import deque

from source2prompt.config import MAX_CONCURRENT_OPS


class ConcurrencyGate:
    """Counting gate that caps in-flight operations at ``limit``.

    A released permit is handed straight to the oldest waiter instead of
    going back to the pool, so a newcomer can never jump the queue.
    """

    def __init__(self, limit: int = MAX_CONCURRENT_OPS) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self.limit = limit
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()
        self.peak = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self) -> None:
        if self._active < self.limit and not self._waiters:
            self._active += 1
            self.peak = max(self.peak, self._active)
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was already handed over; pass it on.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        if self._active <= 0:
            raise RuntimeError("release() called more times than acquire()")
        self._active -= 1

    async def __aenter__(self) -> "ConcurrencyGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
