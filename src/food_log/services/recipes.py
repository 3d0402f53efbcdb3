"""Recipe suggestions from a language model and logging of their nutrition."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from food_log.domain.errors import require_user
from food_log.domain.logs import DailyLog
from food_log.services.clock import utc_now
from food_log.services.daily_logs import DailyLogService
from food_log.services.normalization import BREAKDOWN_MARKER, normalize_recipe

BREAKFAST_END_HOUR = 11
LUNCH_END_HOUR = 16
DINNER_END_HOUR = 21

SYSTEM_PROMPT = (
    "You are a helpful recipe assistant for a nutrition tracking app. Provide "
    "healthy, easy-to-make recipes based on the user's request. Always use the "
    'word "recipe" when providing one, include ingredients and instructions, '
    "and keep the tone friendly. If the user asks for something unhealthy, "
    "suggest a healthier alternative.\n\n"
    "If the user specifies a calorie target (for example \"1k calorie recipe\" "
    "meaning 1000 calories), scale the recipe to meet it as closely as "
    "possible. If the target exceeds the remaining daily goals, say so but "
    "still provide the recipe.\n\n"
    "{remaining}"
    "Start the reply with the recipe name on its own line. At the end of the "
    "recipe, include a nutritional breakdown in exactly this format, each value "
    "on a new line:\n"
    f"{BREAKDOWN_MARKER}\n"
    "Calories: X kcal\n"
    "Protein: Y g\n"
    "Fats: Z g\n"
    "Carbs: W g\n"
    "Replace X, Y, Z and W with numbers. Do not add any other text after the "
    "numbers."
)


@dataclass(frozen=True)
class RemainingGoals:
    """What is left of the user's daily targets."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float


class RecipeClient(Protocol):
    """Interface for chat completions."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        user_message: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the assistant reply text."""


@dataclass
class RecipeService:
    """Asks for recipes and logs accepted ones as a meal."""

    client: RecipeClient
    daily_log_service: DailyLogService
    model: str
    max_tokens: int = 1000
    temperature: float = 0.7
    clock: Callable[[], datetime] = utc_now

    async def ask(self, message: str, remaining: RemainingGoals | None = None) -> str:
        """Return a recipe reply for ``message``."""
        reply = await self.client.complete(
            model=self.model,
            system_prompt=build_system_prompt(remaining),
            user_message=message,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return reply.strip()

    async def log_recipe(
        self, user_id: str, recipe_text: str, *, now: datetime | None = None
    ) -> DailyLog:
        """Log a recipe reply as a meal named after the time of day.

        Raises IncompleteNutritionData when the breakdown is missing a value;
        nothing is written in that case.
        """
        user = require_user(user_id)
        record = normalize_recipe(recipe_text)
        logged_at = now or self.clock()
        return await self.daily_log_service.add_meal(
            user, meal_name_for(logged_at), [record], logged_at
        )


def build_system_prompt(remaining: RemainingGoals | None) -> str:
    if remaining is None:
        return SYSTEM_PROMPT.format(remaining="")
    summary = (
        "The user has the following remaining nutritional goals for the day:\n"
        f"- Calories: {remaining.calories:.0f} kcal\n"
        f"- Protein: {remaining.protein_g:.0f} g\n"
        f"- Fats: {remaining.fat_g:.0f} g\n"
        f"- Carbs: {remaining.carbs_g:.0f} g\n"
        "Without an explicit calorie target, fit the recipe within these.\n\n"
    )
    return SYSTEM_PROMPT.format(remaining=summary)


def meal_name_for(moment: datetime) -> str:
    """Name a meal by the hour it is logged."""
    if moment.hour < BREAKFAST_END_HOUR:
        return "Breakfast"
    if moment.hour < LUNCH_END_HOUR:
        return "Lunch"
    if moment.hour < DINNER_END_HOUR:
        return "Dinner"
    return "Snack"
