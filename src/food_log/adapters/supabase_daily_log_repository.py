"""Supabase repository for daily logs."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import uuid4

from supabase import Client

from food_log.domain.foods import FoodRecord
from food_log.domain.logs import DailyLog, DailyLogPatch, HydrationEntry, Meal
from food_log.services.daily_logs import DailyLogRepository
from food_log.services.parsing import DEFAULT_SERVING_WEIGHT_G

_TABLE = "daily_logs"
_CONFLICT_KEY = "user_id,log_id"


@dataclass
class SupabaseDailyLogRepository(DailyLogRepository):
    """Supabase implementation storing one row per user and day.

    Meals and the water tracker are JSON columns using the document layout
    of earlier app versions, so existing rows stay readable.
    """

    client: Client

    def get_log(self, user_id: str, log_id: str) -> DailyLog | None:
        """Return the log row for a day, if present."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("log_id", log_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_log(response.data[0])

    def create_log(self, user_id: str, log: DailyLog) -> DailyLog:
        """Insert an empty log unless the day already has one."""
        row = {
            "user_id": user_id,
            "log_id": log.id,
            "date": log.date.isoformat(),
            "meals": _encode_meals(log.meals),
            "water_tracker": _encode_hydration(log.hydration),
            "total_calories_override": log.total_calories_override,
        }
        self.client.table(_TABLE).upsert(
            row, on_conflict=_CONFLICT_KEY, ignore_duplicates=True
        ).execute()
        stored = self.get_log(user_id, log.id)
        if stored is None:
            raise RuntimeError(f"Failed to create daily log {log.id}")
        return stored

    def merge_log(self, user_id: str, log_id: str, patch: DailyLogPatch) -> None:
        """Upsert only the columns the patch touches."""
        row: dict[str, object] = {
            "user_id": user_id,
            "log_id": log_id,
            "date": log_id,
        }
        if "meals" in patch.touched:
            row["meals"] = _encode_meals(patch.meals)
        if "hydration" in patch.touched:
            row["water_tracker"] = _encode_hydration(patch.hydration)
        if "total_calories_override" in patch.touched:
            row["total_calories_override"] = patch.total_calories_override
        self.client.table(_TABLE).upsert(row, on_conflict=_CONFLICT_KEY).execute()

    def list_logs(self, user_id: str, limit: int) -> list[DailyLog]:
        """Return logs for a user, newest day first."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("log_id", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_log(row) for row in response.data or []]


def _encode_meals(meals: tuple[Meal, ...]) -> list[dict[str, object]]:
    return [
        {
            "id": meal.id,
            "name": meal.name,
            "foodItems": [_encode_food(food) for food in meal.foods],
        }
        for meal in meals
    ]


def _encode_food(food: FoodRecord) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "calories": food.calories,
        "protein": food.protein_g,
        "carbs": food.carbs_g,
        "fats": food.fat_g,
        "servingSize": food.serving_description,
        "servingWeight": food.serving_weight_g,
        "timestamp": food.logged_at.isoformat() if food.logged_at else None,
    }


def _encode_hydration(hydration: HydrationEntry | None) -> dict[str, object] | None:
    if hydration is None:
        return None
    return {
        "totalOunces": hydration.total_ounces,
        "goalOunces": hydration.goal_ounces,
        "date": hydration.date.isoformat(),
    }


def _parse_log(row: dict[str, object]) -> DailyLog:
    log_id = str(row["log_id"])
    override = row.get("total_calories_override")
    return DailyLog(
        id=log_id,
        date=_parse_date(row.get("date")) or date.fromisoformat(log_id),
        meals=tuple(_parse_meal(item) for item in _list_of_dicts(row.get("meals"))),
        hydration=_parse_hydration(row.get("water_tracker")),
        total_calories_override=float(override) if override is not None else None,
    )


def _parse_meal(data: dict[str, object]) -> Meal:
    return Meal(
        id=str(data.get("id") or uuid4()),
        name=str(data.get("name") or "Meal"),
        foods=tuple(
            _parse_food(item) for item in _list_of_dicts(data.get("foodItems"))
        ),
    )


def _parse_food(data: dict[str, object]) -> FoodRecord:
    timestamp = data.get("timestamp")
    return FoodRecord(
        id=str(data.get("id") or uuid4()),
        name=str(data.get("name") or ""),
        calories=_number(data.get("calories"), 0.0),
        protein_g=_number(data.get("protein"), 0.0),
        carbs_g=_number(data.get("carbs"), 0.0),
        fat_g=_number(data.get("fats"), 0.0),
        serving_description=str(data.get("servingSize") or "N/A"),
        serving_weight_g=_number(data.get("servingWeight"), DEFAULT_SERVING_WEIGHT_G),
        logged_at=(
            datetime.fromisoformat(timestamp)
            if isinstance(timestamp, str) and timestamp
            else None
        ),
    )


def _parse_hydration(data: object) -> HydrationEntry | None:
    if not isinstance(data, dict):
        return None
    day = _parse_date(data.get("date"))
    if day is None:
        return None
    return HydrationEntry(
        total_ounces=_number(data.get("totalOunces"), 0.0),
        goal_ounces=_number(data.get("goalOunces"), 0.0),
        date=day,
    )


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    # Timestamps from older rows carry a time part; only the day matters.
    return date.fromisoformat(value[:10])


def _number(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    return float(value)


def _list_of_dicts(value: object) -> list[dict[str, object]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
