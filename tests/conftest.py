"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

import httpx
import pytest

from macro_tracker.adapters.fdc_client import FdcClient
from macro_tracker.config import Settings
from macro_tracker.containers import AppContainer
from macro_tracker.domain.meals import LoggedMeal, MealType
from macro_tracker.domain.models import MacroTargets, UserProfile, UserRecord
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.domain.plans import MealPlanItem, MealPlanTemplate, MealSlot
from macro_tracker.services.cache import InMemoryCache
from macro_tracker.services.export import ExportService
from macro_tracker.services.meals import MealLogRepository, MealLogService
from macro_tracker.services.nutrition import NutritionService
from macro_tracker.services.plans import MealPlanRepository, MealPlanService
from macro_tracker.services.stats import MealHistoryRepository, StatsService
from macro_tracker.services.targets import TargetsService
from macro_tracker.services.users import UserRepository, UserService

CHICKEN_FDC_ID = 171077
RICE_FDC_ID = 168878
WATER_FDC_ID = 173647


def chicken_payload() -> dict[str, object]:
    """Full food detail with nested nutrient objects."""
    return {
        "fdcId": CHICKEN_FDC_ID,
        "description": "Chicken, broilers or fryers, breast, meat only, roasted",
        "dataType": "SR Legacy",
        "foodNutrients": [
            {
                "nutrient": {"id": 1003, "name": "Protein", "unitName": "g"},
                "amount": 31,
            },
            {
                "nutrient": {"id": 1004, "name": "Total lipid (fat)", "unitName": "g"},
                "amount": 3.6,
            },
            {
                "nutrient": {
                    "id": 1005,
                    "name": "Carbohydrate, by difference",
                    "unitName": "g",
                },
                "amount": 0,
            },
            {
                "nutrient": {"id": 1008, "name": "Energy", "unitName": "kcal"},
                "amount": 165,
            },
        ],
    }


def rice_payload() -> dict[str, object]:
    """Search-style payload with flat nutrient ids."""
    return {
        "fdcId": RICE_FDC_ID,
        "description": "Rice, white, long-grain, regular, cooked",
        "dataType": "SR Legacy",
        "foodNutrients": [
            {"nutrientId": 1003, "nutrientName": "Protein", "value": 2.7},
            {"nutrientId": 1004, "nutrientName": "Total lipid (fat)", "value": 0.3},
            {
                "nutrientId": 1005,
                "nutrientName": "Carbohydrate, by difference",
                "value": 28.0,
            },
            {"nutrientId": 1008, "nutrientName": "Energy", "value": 130},
            {"nutrientId": 1079, "nutrientName": "Fiber, total dietary", "value": 0.4},
        ],
    }


def water_payload() -> dict[str, object]:
    """A food with no usable macros."""
    return {
        "fdcId": WATER_FDC_ID,
        "description": "Water, bottled, generic",
        "dataType": "SR Legacy",
        "foodNutrients": [{"nutrientId": 1051, "nutrientName": "Water", "value": 99.9}],
    }


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client serving a few foods from memory."""

    foods: dict[int, dict[str, object]] = field(
        default_factory=lambda: {
            CHICKEN_FDC_ID: chicken_payload(),
            RICE_FDC_ID: rice_payload(),
            WATER_FDC_ID: water_payload(),
        }
    )
    search_calls: list[str] = field(default_factory=list)
    food_calls: list[int] = field(default_factory=list)

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.search_calls.append(query)
        hits = [
            payload
            for payload in self.foods.values()
            if query.lower() in str(payload["description"]).lower()
        ]
        return {"totalHits": len(hits), "foods": hits[:page_size]}

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls.append(fdc_id)
        if fdc_id not in self.foods:
            request = httpx.Request("GET", f"https://api.test/food/{fdc_id}")
            raise httpx.HTTPStatusError(
                "Not Found",
                request=request,
                response=httpx.Response(404, request=request),
            )
        return self.foods[fdc_id]


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)

    def create_user(self, profile: UserProfile) -> UserRecord:
        user = UserRecord(
            id=max(self.users, default=0) + 1,
            name=profile.name,
            age=profile.age,
            weight_kg=profile.weight_kg,
            height_cm=profile.height_cm,
            gender=profile.gender,
            targets=MacroTargets(),
        )
        self.users[user.id] = user
        return user

    def get_user(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def list_users(self) -> list[UserRecord]:
        return [self.users[user_id] for user_id in sorted(self.users)]

    def update_profile(self, user_id: int, profile: UserProfile) -> bool:
        user = self.users.get(user_id)
        if user is None:
            return False
        self.users[user_id] = replace(
            user,
            name=profile.name,
            age=profile.age,
            weight_kg=profile.weight_kg,
            height_cm=profile.height_cm,
            gender=profile.gender,
        )
        return True

    def update_targets(self, user_id: int, targets: MacroTargets) -> bool:
        user = self.users.get(user_id)
        if user is None:
            return False
        self.users[user_id] = replace(user, targets=targets)
        return True


@dataclass
class InMemoryMealLogRepository(MealLogRepository, MealHistoryRepository):
    """In-memory meal log repository for tests."""

    meals: list[LoggedMeal] = field(default_factory=list)

    def create_meal(  # noqa: PLR0913
        self,
        user_id: int,
        meal_type: MealType,
        logged_at: datetime,
        food_id: int,
        food_name: str,
        grams: float,
        macros: CanonicalMacros,
    ) -> LoggedMeal:
        meal = LoggedMeal(
            id=len(self.meals) + 1,
            user_id=user_id,
            meal_type=meal_type,
            logged_at=logged_at,
            food_id=food_id,
            food_name=food_name,
            grams=grams,
            macros=macros,
        )
        self.meals.append(meal)
        return meal

    def list_meals(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[LoggedMeal]:
        return sorted(
            (
                meal
                for meal in self.meals
                if meal.user_id == user_id and start <= meal.logged_at < end
            ),
            key=lambda meal: meal.logged_at,
        )


@dataclass
class InMemoryMealPlanRepository(MealPlanRepository):
    """In-memory meal plan repository for tests."""

    plans: dict[int, MealPlanTemplate] = field(default_factory=dict)
    items: dict[int, MealPlanItem] = field(default_factory=dict)
    next_item_id: int = 1

    def create_plan(
        self, user_id: int, name: str, description: str
    ) -> MealPlanTemplate:
        plan = MealPlanTemplate(
            id=max(self.plans, default=0) + 1,
            user_id=user_id,
            name=name,
            description=description,
        )
        self.plans[plan.id] = plan
        return plan

    def list_plans(self, user_id: int) -> list[MealPlanTemplate]:
        return [plan for plan in self.plans.values() if plan.user_id == user_id]

    def get_plan(self, plan_id: int) -> MealPlanTemplate | None:
        return self.plans.get(plan_id)

    def list_items(self, plan_id: int) -> list[MealPlanItem]:
        return [item for item in self.items.values() if item.meal_plan_id == plan_id]

    def create_item(  # noqa: PLR0913
        self,
        plan_id: int,
        slot: MealSlot,
        food_id: int,
        food_name: str,
        grams: float,
        macros: CanonicalMacros,
    ) -> MealPlanItem:
        item = MealPlanItem(
            id=self.next_item_id,
            meal_plan_id=plan_id,
            slot=slot,
            food_id=food_id,
            food_name=food_name,
            grams=grams,
            macros=macros,
        )
        self.items[item.id] = item
        self.next_item_id += 1
        return item

    def update_item_slot(self, item_id: int, slot: MealSlot) -> bool:
        item = self.items.get(item_id)
        if item is None:
            return False
        self.items[item_id] = replace(item, slot=slot)
        return True

    def delete_item(self, item_id: int) -> bool:
        return self.items.pop(item_id, None) is not None


def make_meal(  # noqa: PLR0913
    meal_id: int,
    logged_at: datetime,
    calories: float,
    protein_g: float = 0.0,
    carbs_g: float = 0.0,
    fat_g: float = 0.0,
    fiber_g: float = 0.0,
    user_id: int = 1,
) -> LoggedMeal:
    return LoggedMeal(
        id=meal_id,
        user_id=user_id,
        meal_type=MealType.LUNCH,
        logged_at=logged_at,
        food_id=meal_id,
        food_name=f"food {meal_id}",
        grams=100.0,
        macros=CanonicalMacros(
            protein_g=protein_g,
            carbs_g=carbs_g,
            fat_g=fat_g,
            calories=calories,
            fiber_g=fiber_g,
        ),
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        fdc_api_key="fdc-key",
        timezone="UTC",
        export_dir=tmp_path / "exports",
    )


@pytest.fixture
def fdc_client() -> FakeFdcClient:
    return FakeFdcClient()


@pytest.fixture
def nutrition_service(fdc_client: FakeFdcClient) -> NutritionService:
    return NutritionService(
        fdc_client=fdc_client, cache=InMemoryCache(), retry_delay_seconds=0
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def meal_log_repository() -> InMemoryMealLogRepository:
    return InMemoryMealLogRepository()


@pytest.fixture
def meal_plan_repository() -> InMemoryMealPlanRepository:
    return InMemoryMealPlanRepository()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    fdc_client: FakeFdcClient,
    nutrition_service: NutritionService,
    user_repository: InMemoryUserRepository,
    meal_log_repository: InMemoryMealLogRepository,
    meal_plan_repository: InMemoryMealPlanRepository,
) -> AppContainer:
    user_service = UserService(user_repository)
    stats_service = StatsService(meal_log_repository, timezone_name=settings.timezone)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        fdc_client=fdc_client,
        user_service=user_service,
        nutrition_service=nutrition_service,
        meal_log_service=MealLogService(
            nutrition_service=nutrition_service, repository=meal_log_repository
        ),
        meal_plan_service=MealPlanService(
            nutrition_service=nutrition_service, repository=meal_plan_repository
        ),
        stats_service=stats_service,
        targets_service=TargetsService(user_service, stats_service),
        export_service=ExportService(stats_service),
        close_resources=close_resources,
    )
