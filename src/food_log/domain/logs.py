"""Domain models for daily logs."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum

from food_log.domain.foods import FoodRecord

DEFAULT_MEAL_NAME = "All Meals"
LOG_ID_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class Meal:
    """Named, ordered bucket of food records."""

    id: str
    name: str
    foods: tuple[FoodRecord, ...] = ()

    def with_food(self, food: FoodRecord) -> "Meal":
        return replace(self, foods=(*self.foods, food))

    def without_food(self, food_id: str) -> "Meal":
        return replace(
            self, foods=tuple(food for food in self.foods if food.id != food_id)
        )


@dataclass(frozen=True)
class HydrationEntry:
    """Running water total for one calendar day."""

    total_ounces: float
    goal_ounces: float
    date: date


@dataclass(frozen=True)
class MacroTotals:
    """Derived macro totals for a log."""

    protein_g: float
    fat_g: float
    carbs_g: float


@dataclass(frozen=True)
class DailyLog:
    """Per-user aggregate of everything logged on one calendar day."""

    id: str
    date: date
    meals: tuple[Meal, ...] = ()
    hydration: HydrationEntry | None = None
    total_calories_override: float | None = None

    def foods(self) -> list[FoodRecord]:
        return [food for meal in self.meals for food in meal.foods]

    def total_calories(self) -> float:
        return sum(food.calories for food in self.foods())

    def effective_calories(self) -> float:
        """Return the manual override when set, else the derived total."""
        if self.total_calories_override is not None:
            return self.total_calories_override
        return self.total_calories()

    def total_macros(self) -> MacroTotals:
        foods = self.foods()
        return MacroTotals(
            protein_g=sum(food.protein_g for food in foods),
            fat_g=sum(food.fat_g for food in foods),
            carbs_g=sum(food.carbs_g for food in foods),
        )


class _Unset(Enum):
    UNSET = "unset"


UNSET = _Unset.UNSET


@dataclass(frozen=True)
class DailyLogPatch:
    """Fields to merge into a stored daily log.

    Fields left as ``UNSET`` are not written, so values stored by other
    writers survive the merge.
    """

    meals: tuple[Meal, ...] | _Unset = UNSET
    hydration: HydrationEntry | None | _Unset = UNSET
    total_calories_override: float | None | _Unset = UNSET
    touched: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        touched = frozenset(
            name
            for name in ("meals", "hydration", "total_calories_override")
            if getattr(self, name) is not UNSET
        )
        object.__setattr__(self, "touched", touched)

    def apply(self, log: DailyLog) -> DailyLog:
        """Return ``log`` with the patched fields replaced."""
        return replace(log, **{name: getattr(self, name) for name in self.touched})


def log_day(value: date | datetime) -> date:
    """Normalize a timestamp or date to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def log_id_for(value: date | datetime) -> str:
    """Return the canonical ``yyyy-MM-dd`` key for a calendar day."""
    return log_day(value).strftime(LOG_ID_FORMAT)


def empty_log(value: date | datetime) -> DailyLog:
    day = log_day(value)
    return DailyLog(id=log_id_for(day), date=day)
