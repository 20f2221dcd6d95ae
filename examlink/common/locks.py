"""
Keyed Locks

Per-key ``asyncio.Lock`` registry used to serialize operations on a single
attempt while letting different attempts proceed independently.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable

from examlink.common.logger import app_logger

logger = app_logger.getChild("common.locks")


class KeyedLock:
    """
    A lazily populated mapping of key -> ``asyncio.Lock``.

    Entries are removed as soon as no coroutine holds or waits on them, so
    the registry only grows with the number of keys in active use.
    """

    def __init__(self, name: str = "keyed"):
        self._name = name
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def acquire(self, key: Hashable) -> AsyncIterator[None]:
        """
        Hold the lock for ``key`` for the duration of the ``async with`` block.

        Args:
            key: The key to serialize on (e.g. an attempt id)
        """
        # No await between lookup and registration, so this is atomic on the loop.
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1

        try:
            if lock.locked():
                logger.debug(f"{self._name} lock for {key} is busy, waiting")
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        """Whether some coroutine currently holds the lock for ``key``."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
