"""TTL cache for provider lookups."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from food_log.services.clock import utc_now


class Cache(Protocol):
    """Key-value store with per-entry expiry."""

    def get(self, key: str) -> object | None:
        """Return the live value for ``key``, if any."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store ``value`` for ``ttl_seconds``."""


@dataclass
class InMemoryCache(Cache):
    """Process-local cache bounded to ``max_entries``.

    Expired entries are dropped when read. When full, the oldest write is
    evicted to make room.
    """

    max_entries: int = 512
    clock: Callable[[], datetime] = utc_now
    _entries: dict[str, tuple[object, datetime]] = field(
        default_factory=dict, init=False, repr=False
    )

    def get(self, key: str) -> object | None:
        cached = self._entries.get(key)
        if cached is None:
            return None
        value, expires_at = cached
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            self._entries.pop(next(iter(self._entries)))
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = (value, expires_at)

    def __len__(self) -> int:
        return len(self._entries)
