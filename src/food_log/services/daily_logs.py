"""Per-user, per-day log store with merge-on-write persistence."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol, TypeVar
from uuid import uuid4

from food_log.domain.errors import FoodLogError, RemoteUnavailable, require_user
from food_log.domain.foods import FoodRecord
from food_log.domain.logs import (
    DEFAULT_MEAL_NAME,
    DailyLog,
    DailyLogPatch,
    HydrationEntry,
    Meal,
    empty_log,
    log_day,
    log_id_for,
)
from food_log.services.clock import utc_now
from food_log.services.locks import KeyedLocks
from food_log.services.recent_foods import RecentFoodsService
from food_log.services.subscriptions import LogPublisher

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)


class DailyLogRepository(Protocol):
    """Persistence interface for daily logs."""

    def get_log(self, user_id: str, log_id: str) -> DailyLog | None:
        """Return the stored log for a day, if any."""

    def create_log(self, user_id: str, log: DailyLog) -> DailyLog:
        """Store ``log`` unless one exists for its day; return the stored log."""

    def merge_log(self, user_id: str, log_id: str, patch: DailyLogPatch) -> None:
        """Write only the patched fields of a day's log."""

    def list_logs(self, user_id: str, limit: int) -> list[DailyLog]:
        """Return logs newest day first."""


@dataclass
class DailyLogService:
    """Reads, mutates and persists daily logs.

    Every mutation reads the current log, applies the change in memory,
    merges the touched fields back and publishes the result. Without
    ``serialize_writes`` two concurrent writers for the same day can lose
    one another's changes; the store itself is last-write-wins.
    """

    repository: DailyLogRepository
    recent_foods: RecentFoodsService
    publisher: LogPublisher = field(default_factory=LogPublisher)
    serialize_writes: bool = True
    clock: Callable[[], datetime] = utc_now
    _locks: KeyedLocks = field(default_factory=KeyedLocks, init=False, repr=False)

    async def fetch_or_create(self, user_id: str, day: date | datetime) -> DailyLog:
        """Return the day's log, creating an empty one on first access."""
        user = require_user(user_id)
        return await self._fetch_or_create(user, log_day(day))

    async def fetch_or_create_today(
        self, user_id: str, *, now: datetime | None = None
    ) -> DailyLog:
        return await self.fetch_or_create(user_id, now or self.clock())

    async def add_food(
        self, user_id: str, food: FoodRecord, day: date | datetime
    ) -> DailyLog:
        """Append a food to the day's first meal and record it as recent."""
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            stamped = food.stamped(self.clock())
            if log.meals:
                first, *rest = log.meals
                meals = (first.with_food(stamped), *rest)
            else:
                bucket = Meal(id=str(uuid4()), name=DEFAULT_MEAL_NAME, foods=(stamped,))
                meals = (bucket,)
            updated = await self._commit(user, log, DailyLogPatch(meals=meals))
        await self.recent_foods.record_usage(user, food.id)
        return updated

    async def add_meal(
        self,
        user_id: str,
        meal_name: str,
        foods: list[FoodRecord],
        day: date | datetime,
    ) -> DailyLog:
        """Append a new named meal holding ``foods``."""
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            now = self.clock()
            meal = Meal(
                id=str(uuid4()),
                name=meal_name,
                foods=tuple(food.stamped(now) for food in foods),
            )
            updated = await self._commit(
                user, log, DailyLogPatch(meals=(*log.meals, meal))
            )
        _logger.info(
            "Added meal %r with %s items to %s", meal_name, len(foods), updated.id
        )
        return updated

    async def delete_food(
        self, user_id: str, food_id: str, day: date | datetime
    ) -> DailyLog:
        """Remove every food with ``food_id`` from every meal of the day."""
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            meals = tuple(meal.without_food(food_id) for meal in log.meals)
            return await self._commit(user, log, DailyLogPatch(meals=meals))

    async def add_water(
        self,
        user_id: str,
        day: date | datetime,
        amount_ounces: float,
        goal_ounces: float,
    ) -> DailyLog:
        """Add water to the day's running total.

        A hydration entry stored for a different day is replaced rather than
        carried over.
        """
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            current = log.hydration
            if current is not None and current.date == target_day:
                hydration = HydrationEntry(
                    total_ounces=current.total_ounces + amount_ounces,
                    goal_ounces=goal_ounces,
                    date=target_day,
                )
            else:
                hydration = HydrationEntry(
                    total_ounces=amount_ounces,
                    goal_ounces=goal_ounces,
                    date=target_day,
                )
            return await self._commit(user, log, DailyLogPatch(hydration=hydration))

    async def set_water_goal(
        self, user_id: str, day: date | datetime, goal_ounces: float
    ) -> DailyLog:
        """Change the day's water goal without touching the running total."""
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            current = log.hydration
            total = 0.0
            if current is not None and current.date == target_day:
                total = current.total_ounces
            hydration = HydrationEntry(
                total_ounces=total, goal_ounces=goal_ounces, date=target_day
            )
            return await self._commit(user, log, DailyLogPatch(hydration=hydration))

    async def set_calorie_override(
        self, user_id: str, day: date | datetime, calories: float | None
    ) -> DailyLog:
        """Set or clear the manual calorie total for the day."""
        user = require_user(user_id)
        target_day = log_day(day)
        async with self._write_lock(user, target_day):
            log = await self._fetch_or_create(user, target_day)
            patch = DailyLogPatch(total_calories_override=calories)
            return await self._commit(user, log, patch)

    async def list_history(self, user_id: str, limit: int = 30) -> list[DailyLog]:
        """Return the user's logs, newest day first."""
        user = require_user(user_id)
        return await self._remote(
            self.repository.list_logs, user, limit, action="list_logs"
        )

    async def subscribe(
        self, user_id: str, day: date | datetime
    ) -> AsyncIterator[DailyLog]:
        """Yield the day's current log, then every update published for it."""
        user = require_user(user_id)
        target_day = log_day(day)
        with self.publisher.listen(user, log_id_for(target_day)) as queue:
            yield await self._fetch_or_create(user, target_day)
            while True:
                yield await queue.get()

    async def _fetch_or_create(self, user: str, day: date) -> DailyLog:
        log_id = log_id_for(day)
        existing = await self._remote(
            self.repository.get_log, user, log_id, action="get_log"
        )
        if existing is not None:
            return existing
        _logger.info("No log found for %s, creating one", log_id)
        return await self._remote(
            self.repository.create_log, user, empty_log(day), action="create_log"
        )

    async def _commit(
        self, user: str, log: DailyLog, patch: DailyLogPatch
    ) -> DailyLog:
        await self._remote(
            self.repository.merge_log, user, log.id, patch, action="merge_log"
        )
        updated = patch.apply(log)
        self.publisher.publish(user, updated)
        return updated

    async def _remote(
        self, func: Callable[..., _T], *args: object, action: str
    ) -> _T:
        """Run a blocking store call off the event loop."""
        try:
            return await asyncio.to_thread(func, *args)
        except FoodLogError:
            raise
        except Exception as exc:
            _logger.warning("Daily log %s failed: %s", action, exc)
            raise RemoteUnavailable(f"Daily log {action} failed") from exc

    @asynccontextmanager
    async def _write_lock(self, user: str, day: date) -> AsyncIterator[None]:
        if not self.serialize_writes:
            yield
            return
        async with self._locks.hold((user, log_id_for(day))):
            yield
