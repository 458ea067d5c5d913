"""Meal logging service."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from macro_tracker.domain.meals import LoggedMeal, MealLogResult, MealType
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.services.nutrition import NutritionService
from macro_tracker.services.scaler import check_grams, scale_macros

_logger = logging.getLogger(__name__)


class MealLogRepository(Protocol):
    """Persistence interface for logged meals."""

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
        """Insert a meal and return it with its id."""

    def list_meals(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[LoggedMeal]:
        """Return meals logged in ``[start, end)``, oldest first."""


@dataclass
class MealLogService:
    """Service that resolves, scales and persists consumed foods."""

    nutrition_service: NutritionService
    repository: MealLogRepository

    async def log_food(
        self,
        user_id: int,
        fdc_id: int,
        grams: float,
        meal_type: MealType,
        logged_at: datetime | None = None,
    ) -> MealLogResult:
        """Fetch a food, scale its macros to ``grams`` and store the meal.

        Foods whose macros cannot be resolved are still stored, with zeros;
        ``macros_missing`` lets the caller warn the user.
        """
        check_grams(grams)
        details = await self.nutrition_service.get_food(fdc_id)
        per_100g = details.macros.clamped()
        portion = scale_macros(per_100g, grams)
        meal = self.repository.create_meal(
            user_id=user_id,
            meal_type=meal_type,
            logged_at=logged_at or datetime.now(tz=UTC),
            food_id=fdc_id,
            food_name=details.record.description,
            grams=grams,
            macros=portion,
        )
        macros_missing = portion.is_empty()
        if macros_missing:
            _logger.warning(
                "Logged meal %s for user %s has no macros (fdc_id=%s)",
                meal.id,
                user_id,
                fdc_id,
            )
        return MealLogResult(meal=meal, macros_missing=macros_missing)
