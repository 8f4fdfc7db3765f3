from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Hashable
from weakref import WeakValueDictionary


class KeyedLockRegistry:
    """One asyncio lock per key, created on demand.

    Entries disappear once no coroutine holds or waits on the lock, so the
    registry does not grow with the number of venues ever booked.
    """

    def __init__(self) -> None:
        self._locks: WeakValueDictionary[Hashable, asyncio.Lock] = WeakValueDictionary()

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._lock_for(key)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)

    def __bool__(self) -> bool:
        return True


def commit_key(venue_id: int, booking_date: date) -> tuple[int, str]:
    return venue_id, booking_date.isoformat()


def holder_key(holder_id: int) -> tuple[str, int]:
    return "holder", holder_id
