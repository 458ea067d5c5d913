"""Meal-plan template service."""

from dataclasses import dataclass, replace
from typing import Protocol

from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.domain.plans import MealPlanItem, MealPlanTemplate, MealSlot
from macro_tracker.services.nutrition import NutritionService
from macro_tracker.services.scaler import check_grams, scale_macros
from macro_tracker.services.stats import sum_macros


class MealPlanRepository(Protocol):
    """Persistence interface for meal-plan templates and their items."""

    def create_plan(
        self, user_id: int, name: str, description: str
    ) -> MealPlanTemplate:
        """Create an empty template and return it."""

    def list_plans(self, user_id: int) -> list[MealPlanTemplate]:
        """Return a user's templates without their items."""

    def get_plan(self, plan_id: int) -> MealPlanTemplate | None:
        """Return a template without its items, if present."""

    def list_items(self, plan_id: int) -> list[MealPlanItem]:
        """Return the items of a template in insertion order."""

    def create_item(  # noqa: PLR0913
        self,
        plan_id: int,
        slot: MealSlot,
        food_id: int,
        food_name: str,
        grams: float,
        macros: CanonicalMacros,
    ) -> MealPlanItem:
        """Insert an item and return it with its id."""

    def update_item_slot(self, item_id: int, slot: MealSlot) -> bool:
        """Move an item to another slot; returns False when no row matched."""

    def delete_item(self, item_id: int) -> bool:
        """Delete an item; returns False when no row matched."""


@dataclass
class MealPlanService:
    """Create and browse day templates, and edit their items."""

    nutrition_service: NutritionService
    repository: MealPlanRepository

    def create_plan(
        self, user_id: int, name: str, description: str = ""
    ) -> MealPlanTemplate:
        return self.repository.create_plan(user_id, name, description)

    def list_plans(self, user_id: int) -> list[MealPlanTemplate]:
        """Return a user's templates with their items attached."""
        return [
            replace(plan, items=self.repository.list_items(plan.id))
            for plan in self.repository.list_plans(user_id)
        ]

    def add_item(  # noqa: PLR0913
        self,
        plan_id: int,
        slot: MealSlot,
        food_id: int,
        food_name: str,
        grams: float,
        macros: CanonicalMacros,
    ) -> MealPlanItem | None:
        """Add an item whose macros are already scaled to ``grams``.

        Returns None when the template does not exist.
        """
        check_grams(grams)
        if self.repository.get_plan(plan_id) is None:
            return None
        return self.repository.create_item(
            plan_id=plan_id,
            slot=slot,
            food_id=food_id,
            food_name=food_name,
            grams=grams,
            macros=macros.clamped(),
        )

    async def add_food(
        self, plan_id: int, slot: MealSlot, fdc_id: int, grams: float
    ) -> MealPlanItem | None:
        """Look a food up, scale it to ``grams`` and add it to a template."""
        check_grams(grams)
        details = await self.nutrition_service.get_food(fdc_id)
        return self.add_item(
            plan_id=plan_id,
            slot=slot,
            food_id=fdc_id,
            food_name=details.record.description,
            grams=grams,
            macros=scale_macros(details.macros, grams),
        )

    def update_item_slot(self, item_id: int, slot: MealSlot) -> bool:
        return self.repository.update_item_slot(item_id, slot)

    def delete_item(self, item_id: int) -> bool:
        return self.repository.delete_item(item_id)


def plan_totals(plan: MealPlanTemplate) -> CanonicalMacros:
    """Sum the macros of every item in a template."""
    return sum_macros(item.macros for item in plan.items)
