"""Supabase repository for meal-plan templates."""

from dataclasses import dataclass

from supabase import Client

from macro_tracker.adapters.supabase_meal_log_repository import parse_macros
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.domain.plans import MealPlanItem, MealPlanTemplate, MealSlot
from macro_tracker.services.plans import MealPlanRepository

_ITEM_COLUMNS = (
    "id, meal_plan_id, meal_type, food_id, food_name, grams, "
    "protein_g, carbs_g, fat_g, calories, fiber_g"
)


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase implementation for meal plans and plan items."""

    client: Client

    def create_plan(
        self, user_id: int, name: str, description: str
    ) -> MealPlanTemplate:
        response = (
            self.client.table("meal_plans")
            .insert({"user_id": user_id, "name": name, "description": description})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal plan")
        return _parse_plan(response.data[0])

    def list_plans(self, user_id: int) -> list[MealPlanTemplate]:
        response = (
            self.client.table("meal_plans")
            .select("id, user_id, name, description")
            .eq("user_id", user_id)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_plan(row) for row in response.data or []]

    def get_plan(self, plan_id: int) -> MealPlanTemplate | None:
        response = (
            self.client.table("meal_plans")
            .select("id, user_id, name, description")
            .eq("id", plan_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def list_items(self, plan_id: int) -> list[MealPlanItem]:
        response = (
            self.client.table("meal_plan_items")
            .select(_ITEM_COLUMNS)
            .eq("meal_plan_id", plan_id)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_item(row) for row in response.data or []]

    def create_item(  # noqa: PLR0913
        self,
        plan_id: int,
        slot: MealSlot,
        food_id: int,
        food_name: str,
        grams: float,
        macros: CanonicalMacros,
    ) -> MealPlanItem:
        response = (
            self.client.table("meal_plan_items")
            .insert(
                {
                    "meal_plan_id": plan_id,
                    "meal_type": str(slot),
                    "food_id": food_id,
                    "food_name": food_name,
                    "grams": grams,
                    **macros.to_dict(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal plan item")
        return _parse_item(response.data[0])

    def update_item_slot(self, item_id: int, slot: MealSlot) -> bool:
        response = (
            self.client.table("meal_plan_items")
            .update({"meal_type": str(slot)})
            .eq("id", item_id)
            .execute()
        )
        return bool(response.data)

    def delete_item(self, item_id: int) -> bool:
        response = (
            self.client.table("meal_plan_items").delete().eq("id", item_id).execute()
        )
        return bool(response.data)


def _parse_plan(row: dict[str, object]) -> MealPlanTemplate:
    return MealPlanTemplate(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        name=str(row.get("name") or ""),
        description=str(row.get("description") or ""),
    )


def _parse_item(row: dict[str, object]) -> MealPlanItem:
    return MealPlanItem(
        id=int(row["id"]),
        meal_plan_id=int(row["meal_plan_id"]),
        slot=MealSlot.parse(str(row.get("meal_type", ""))),
        food_id=int(row.get("food_id") or 0),
        food_name=str(row.get("food_name") or ""),
        grams=float(row.get("grams") or 0.0),
        macros=parse_macros(row),
    )
