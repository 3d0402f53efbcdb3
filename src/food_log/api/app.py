"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import AwareDatetime

from food_log.api.models import (
    CalorieOverrideIn,
    FoodIn,
    MealIn,
    NormalizeRequest,
    RecipeAskIn,
    RecipeLogIn,
    WaterGoalIn,
    WaterIn,
)
from food_log.app_logging import configure_logging
from food_log.containers import AppContainer
from food_log.domain.errors import (
    FoodLogError,
    NormalizationError,
    NotAuthenticated,
    RemoteUnavailable,
    require_user,
)
from food_log.domain.foods import FoodRecord
from food_log.domain.logs import DailyLog, HydrationEntry, Meal
from food_log.services.normalization import normalize


def current_user(x_user_id: str | None = Header(default=None)) -> str:
    """Resolve the caller's identity from the ``X-User-Id`` header."""
    return require_user(x_user_id)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(FoodLogError)
    async def food_log_error_handler(
        request: Request, exc: FoodLogError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        logger.warning(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc,
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": exc.user_message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/foods/normalize")
    async def normalize_food(body: NormalizeRequest) -> dict[str, object]:
        """Normalize a raw provider payload into a food record."""
        return {"food": _food_to_dict(normalize(body.payload, barcode=body.barcode))}

    @app.get("/foods/search")
    async def search_foods(
        query: str, state: AppContainer = Depends(_container)
    ) -> dict[str, object]:
        """Search the catalog; failures return an empty list."""
        records = await state.catalog_service.search(query)
        return {"foods": [_food_to_dict(record) for record in records]}

    @app.get("/foods/barcode/{barcode}")
    async def lookup_barcode(
        barcode: str,
        source: str = "structured",
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Look up a barcode in the structured provider or product database."""
        if source == "product":
            record = await state.catalog_service.lookup_product(barcode)
        else:
            record = await state.catalog_service.lookup_barcode(barcode)
        return {"food": _food_to_dict(record)}

    @app.get("/foods/{food_id}")
    async def get_food(
        food_id: str, state: AppContainer = Depends(_container)
    ) -> dict[str, object]:
        """Return provider details for a food id."""
        record = await state.catalog_service.get_food(food_id)
        return {"food": _food_to_dict(record)}

    @app.get("/logs")
    async def list_logs(
        limit: int = 30,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Return the caller's daily history, newest first."""
        logs = await state.daily_log_service.list_history(user_id, limit=limit)
        return {"logs": [_log_to_dict(log) for log in logs]}

    @app.get("/logs/today")
    async def today_log(
        at: AwareDatetime | None = None,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Return today's log; ``at`` picks the day in the caller's offset."""
        log = await state.daily_log_service.fetch_or_create_today(user_id, now=at)
        return _log_to_dict(log)

    @app.get("/logs/{day}")
    async def get_log(
        day: date,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Return the day's log, creating it if needed."""
        log = await state.daily_log_service.fetch_or_create(user_id, day)
        return _log_to_dict(log)

    @app.post("/logs/{day}/foods")
    async def add_food(
        day: date,
        body: FoodIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.add_food(user_id, body.to_record(), day)
        return _log_to_dict(log)

    @app.post("/logs/{day}/meals")
    async def add_meal(
        day: date,
        body: MealIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.add_meal(
            user_id, body.name, [food.to_record() for food in body.foods], day
        )
        return _log_to_dict(log)

    @app.delete("/logs/{day}/foods/{food_id}")
    async def delete_food(
        day: date,
        food_id: str,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.delete_food(user_id, food_id, day)
        return _log_to_dict(log)

    @app.post("/logs/{day}/water")
    async def add_water(
        day: date,
        body: WaterIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.add_water(
            user_id, day, body.amount_ounces, body.goal_ounces
        )
        return _log_to_dict(log)

    @app.put("/logs/{day}/water-goal")
    async def set_water_goal(
        day: date,
        body: WaterGoalIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.set_water_goal(
            user_id, day, body.goal_ounces
        )
        return _log_to_dict(log)

    @app.put("/logs/{day}/calorie-override")
    async def set_calorie_override(
        day: date,
        body: CalorieOverrideIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        log = await state.daily_log_service.set_calorie_override(
            user_id, day, body.calories
        )
        return _log_to_dict(log)

    @app.get("/recent-foods")
    async def recent_foods(
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Return recently logged food ids, newest first."""
        return {"food_ids": await state.recent_foods_service.list_recent(user_id)}

    @app.post("/recipes/ask", dependencies=[Depends(current_user)])
    async def ask_recipe(
        body: RecipeAskIn, state: AppContainer = Depends(_container)
    ) -> dict[str, str]:
        remaining = body.remaining.to_goals() if body.remaining else None
        reply = await state.recipe_service.ask(body.message, remaining)
        return {"reply": reply}

    @app.post("/recipes/log")
    async def log_recipe(
        body: RecipeLogIn,
        user_id: str = Depends(current_user),
        state: AppContainer = Depends(_container),
    ) -> dict[str, object]:
        """Log a recipe reply; incomplete nutrition data is rejected."""
        log = await state.recipe_service.log_recipe(
            user_id, body.text, now=body.logged_at
        )
        return _log_to_dict(log)

    return app


def _status_for(exc: FoodLogError) -> int:
    if isinstance(exc, NotAuthenticated):
        return 401
    if isinstance(exc, NormalizationError):
        return 422
    if isinstance(exc, RemoteUnavailable):
        return 503
    return 400


def _food_to_dict(food: FoodRecord) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "calories": food.calories,
        "protein_g": food.protein_g,
        "carbs_g": food.carbs_g,
        "fat_g": food.fat_g,
        "serving_description": food.serving_description,
        "serving_weight_g": food.serving_weight_g,
        "logged_at": food.logged_at.isoformat() if food.logged_at else None,
    }


def _meal_to_dict(meal: Meal) -> dict[str, object]:
    return {
        "id": meal.id,
        "name": meal.name,
        "foods": [_food_to_dict(food) for food in meal.foods],
    }


def _hydration_to_dict(hydration: HydrationEntry | None) -> dict[str, object] | None:
    if hydration is None:
        return None
    return {
        "total_ounces": hydration.total_ounces,
        "goal_ounces": hydration.goal_ounces,
        "date": hydration.date.isoformat(),
    }


def _log_to_dict(log: DailyLog) -> dict[str, object]:
    macros = log.total_macros()
    return {
        "id": log.id,
        "date": log.date.isoformat(),
        "meals": [_meal_to_dict(meal) for meal in log.meals],
        "hydration": _hydration_to_dict(log.hydration),
        "total_calories_override": log.total_calories_override,
        "totals": {
            "calories": log.effective_calories(),
            "protein_g": macros.protein_g,
            "fat_g": macros.fat_g,
            "carbs_g": macros.carbs_g,
        },
    }
