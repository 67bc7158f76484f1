"""Keyed asyncio locks for serialising work on one member, accommodation or reservation"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable, Iterable


class KeyedLock:
    """One asyncio.Lock per key, created on first use and dropped when idle"""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, *keys: Hashable) -> AsyncIterator[None]:
        """Acquire every key in sorted order so two holders never deadlock"""
        ordered = sorted(set(keys), key=repr)
        registered = []
        acquired = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                self._waiters[key] = self._waiters.get(key, 0) + 1
                registered.append(key)
                await lock.acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(registered):
                if key in acquired:
                    self._locks[key].release()
                self._release_waiter(key)

    def _release_waiter(self, key: Hashable) -> None:
        remaining = self._waiters.get(key, 0) - 1
        if remaining <= 0:
            self._waiters.pop(key, None)
            self._locks.pop(key, None)
        else:
            self._waiters[key] = remaining

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def keys(self) -> Iterable[Hashable]:
        return list(self._locks)
