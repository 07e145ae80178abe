"""
Keyed asyncio locks.

A lock per key (room, proof) that disappears once nobody holds or
waits for it.
"""

import asyncio
import weakref


class KeyedLocks:
    """Hand out one ``asyncio.Lock`` per key while it is in use."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
