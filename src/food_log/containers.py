"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from food_log.adapters.fatsecret_client import HttpxFatSecretClient
from food_log.adapters.open_food_facts_client import HttpxOpenFoodFactsClient
from food_log.adapters.openai_recipe_client import OpenAIRecipeClient
from food_log.adapters.supabase_daily_log_repository import (
    SupabaseDailyLogRepository,
)
from food_log.adapters.supabase_recent_foods_repository import (
    SupabaseRecentFoodsRepository,
)
from food_log.config import Settings
from food_log.services.cache import InMemoryCache
from food_log.services.catalog import FoodCatalogService
from food_log.services.daily_logs import DailyLogService
from food_log.services.recent_foods import RecentFoodsService
from food_log.services.recipes import RecipeService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: FoodCatalogService
    recent_foods_service: RecentFoodsService
    daily_log_service: DailyLogService
    recipe_service: RecipeService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    recent_foods_service = RecentFoodsService(
        repository=SupabaseRecentFoodsRepository(supabase_client),
        capacity=resolved_settings.recent_foods_capacity,
        ttl=timedelta(days=resolved_settings.recent_foods_ttl_days),
    )
    daily_log_service = DailyLogService(
        repository=SupabaseDailyLogRepository(supabase_client),
        recent_foods=recent_foods_service,
        serialize_writes=resolved_settings.serialize_log_writes,
    )
    fatsecret_client = HttpxFatSecretClient.create(
        resolved_settings.fatsecret_proxy_url
    )
    product_client = HttpxOpenFoodFactsClient.create(
        resolved_settings.open_food_facts_base_url
    )
    catalog_service = FoodCatalogService(
        fatsecret_client=fatsecret_client,
        product_client=product_client,
        cache=InMemoryCache(),
    )
    recipe_client = OpenAIRecipeClient.create(resolved_settings.openai_api_key)
    recipe_service = RecipeService(
        client=recipe_client,
        daily_log_service=daily_log_service,
        model=resolved_settings.openai_model,
        max_tokens=resolved_settings.openai_max_tokens,
        temperature=resolved_settings.openai_temperature,
    )

    async def close_resources() -> None:
        await fatsecret_client.close()
        await product_client.close()
        await recipe_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        recent_foods_service=recent_foods_service,
        daily_log_service=daily_log_service,
        recipe_service=recipe_service,
        close_resources=close_resources,
    )
