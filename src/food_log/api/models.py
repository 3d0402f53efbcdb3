"""Request models for the food log API."""

from pydantic import AwareDatetime, BaseModel, Field

from food_log.domain.foods import FoodRecord
from food_log.services.recipes import RemainingGoals


class FoodIn(BaseModel):
    """Canonical food record supplied by a client."""

    id: str = Field(min_length=1)
    name: str
    calories: float = Field(ge=0.0)
    protein_g: float = Field(ge=0.0)
    carbs_g: float = Field(ge=0.0)
    fat_g: float = Field(ge=0.0)
    serving_description: str = "N/A"
    serving_weight_g: float = Field(default=100.0, gt=0.0)

    def to_record(self) -> FoodRecord:
        return FoodRecord(**self.model_dump())


class NormalizeRequest(BaseModel):
    """Raw provider payload to normalize."""

    payload: dict[str, object] | str
    barcode: str | None = None


class MealIn(BaseModel):
    name: str = Field(min_length=1)
    foods: list[FoodIn]


class WaterIn(BaseModel):
    amount_ounces: float
    goal_ounces: float = Field(ge=0.0)


class WaterGoalIn(BaseModel):
    goal_ounces: float = Field(ge=0.0)


class CalorieOverrideIn(BaseModel):
    calories: float | None = Field(default=None, ge=0.0)


class RemainingGoalsIn(BaseModel):
    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float

    def to_goals(self) -> RemainingGoals:
        return RemainingGoals(**self.model_dump())


class RecipeAskIn(BaseModel):
    message: str = Field(min_length=1)
    remaining: RemainingGoalsIn | None = None


class RecipeLogIn(BaseModel):
    text: str
    logged_at: AwareDatetime | None = None
