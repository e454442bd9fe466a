"""Per-key asyncio locks for serialising work inside one process.

Database row and advisory locks serialise writers across processes; this
lock additionally keeps two coroutines of the same worker from queueing on
the same row lock (and makes ordering deterministic in tests, which run
without a database).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class KeyedLock:
    """A lazily created ``asyncio.Lock`` per key.

    Entries are dropped once nobody holds or waits for them, so the map
    stays bounded by the number of keys in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
            self._users[key] = 0
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
