"""Per-key asyncio locks."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


@dataclass
class KeyedLocks:
    """One lock per key, dropped once no task holds or waits for it."""

    _entries: dict[Hashable, _KeyLock] = field(default_factory=dict, repr=False)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.setdefault(key, _KeyLock())
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
