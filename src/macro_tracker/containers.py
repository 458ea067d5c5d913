"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_tracker.adapters.fdc_client import FdcClient, HttpxFdcClient
from macro_tracker.adapters.supabase_meal_log_repository import (
    SupabaseMealLogRepository,
)
from macro_tracker.adapters.supabase_meal_plan_repository import (
    SupabaseMealPlanRepository,
)
from macro_tracker.adapters.supabase_user_repository import SupabaseUserRepository
from macro_tracker.config import Settings
from macro_tracker.services.cache import InMemoryCache
from macro_tracker.services.export import ExportService
from macro_tracker.services.meals import MealLogService
from macro_tracker.services.nutrition import NutritionService
from macro_tracker.services.plans import MealPlanService
from macro_tracker.services.stats import StatsService
from macro_tracker.services.targets import TargetsService
from macro_tracker.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    fdc_client: FdcClient
    user_service: UserService
    nutrition_service: NutritionService
    meal_log_service: MealLogService
    meal_plan_service: MealPlanService
    stats_service: StatsService
    targets_service: TargetsService
    export_service: ExportService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    meal_log_repository = SupabaseMealLogRepository(supabase_client)
    meal_plan_repository = SupabaseMealPlanRepository(supabase_client)
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
        data_types=resolved_settings.fdc_data_types,
    )
    nutrition_service = NutritionService(
        fdc_client=fdc_client,
        cache=InMemoryCache(),
    )
    user_service = UserService(user_repository)
    stats_service = StatsService(
        meal_log_repository, timezone_name=resolved_settings.timezone
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        fdc_client=fdc_client,
        user_service=user_service,
        nutrition_service=nutrition_service,
        meal_log_service=MealLogService(
            nutrition_service=nutrition_service,
            repository=meal_log_repository,
        ),
        meal_plan_service=MealPlanService(
            nutrition_service=nutrition_service,
            repository=meal_plan_repository,
        ),
        stats_service=stats_service,
        targets_service=TargetsService(user_service, stats_service),
        export_service=ExportService(stats_service),
        close_resources=close_resources,
    )
