"""Bounded, time-decaying cache of recently logged foods."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from food_log.domain.errors import require_user
from food_log.domain.recent import RecentFoodEntry, RecentFoodsBatch
from food_log.services.clock import utc_now
from food_log.services.locks import KeyedLocks

RECENT_FOODS_CAPACITY = 10
RECENT_FOODS_TTL = timedelta(days=30)

_logger = logging.getLogger(__name__)


class RecentFoodsRepository(Protocol):
    """Persistence interface for recent-food entries."""

    def list_recent(self, user_id: str, limit: int) -> list[RecentFoodEntry]:
        """Return up to ``limit`` entries, newest first."""

    def apply_batch(self, user_id: str, batch: RecentFoodsBatch) -> None:
        """Evict per the batch policy and insert the usage in one transaction."""


@dataclass
class RecentFoodsService:
    """Best-effort recent foods used for quick re-entry suggestions."""

    repository: RecentFoodsRepository
    capacity: int = RECENT_FOODS_CAPACITY
    ttl: timedelta = RECENT_FOODS_TTL
    clock: Callable[[], datetime] = utc_now
    _locks: KeyedLocks = field(default_factory=KeyedLocks, init=False, repr=False)

    async def record_usage(
        self, user_id: str, food_id: str, *, now: datetime | None = None
    ) -> bool:
        """Record that ``food_id`` was just logged.

        At capacity the least recent entry is evicted, whether or not
        ``food_id`` is already present; entries older than the TTL go too.
        Returns False when the update could not be applied; the cache is left
        as it was and the failure is only logged.
        """
        user = require_user(user_id)
        used_at = now or self.clock()
        batch = RecentFoodsBatch(
            food_id=food_id,
            logged_at=used_at,
            capacity=self.capacity,
            cutoff=used_at - self.ttl,
        )
        try:
            async with self._locks.hold(user):
                await asyncio.to_thread(self.repository.apply_batch, user, batch)
        except Exception:
            _logger.exception("Failed to record recent food %s for %s", food_id, user)
            return False
        _logger.info("Recorded recent food %s for %s", food_id, user)
        return True

    async def list_recent(self, user_id: str) -> list[str]:
        """Return recent food ids, newest first; errors yield an empty list."""
        user = require_user(user_id)
        try:
            entries = await asyncio.to_thread(
                self.repository.list_recent, user, self.capacity
            )
        except Exception:
            _logger.exception("Failed to list recent foods for %s", user)
            return []
        return [entry.food_id for entry in entries]
