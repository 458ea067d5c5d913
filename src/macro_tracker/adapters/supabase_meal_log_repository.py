"""Supabase repository for logged meals."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from macro_tracker.domain.meals import LoggedMeal, MealType
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.services.meals import MealLogRepository
from macro_tracker.services.stats import MealHistoryRepository

_MEAL_COLUMNS = (
    "id, user_id, meal_type, logged_at, food_id, food_name, grams, "
    "protein_g, carbs_g, fat_g, calories, fiber_g"
)


@dataclass
class SupabaseMealLogRepository(MealLogRepository, MealHistoryRepository):
    """Supabase implementation for meal logs."""

    client: Client

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
        """Create a meal row and return it."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": user_id,
                    "meal_type": str(meal_type),
                    "logged_at": logged_at.isoformat(),
                    "food_id": food_id,
                    "food_name": food_name,
                    "grams": grams,
                    **macros.to_dict(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return _parse_meal(response.data[0])

    def list_meals(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[LoggedMeal]:
        """Return meals in the time range, oldest first."""
        response = (
            self.client.table("meals")
            .select(_MEAL_COLUMNS)
            .eq("user_id", user_id)
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        return [_parse_meal(row) for row in response.data or []]


def _parse_meal(row: dict[str, object]) -> LoggedMeal:
    return LoggedMeal(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        meal_type=MealType.parse(str(row.get("meal_type", ""))),
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        food_id=int(row.get("food_id") or 0),
        food_name=str(row.get("food_name") or ""),
        grams=float(row.get("grams") or 0.0),
        macros=parse_macros(row),
    )


def parse_macros(row: dict[str, object]) -> CanonicalMacros:
    """Read the five macro columns of a meal or plan item row."""
    return CanonicalMacros(
        protein_g=float(row.get("protein_g") or 0.0),
        carbs_g=float(row.get("carbs_g") or 0.0),
        fat_g=float(row.get("fat_g") or 0.0),
        calories=float(row.get("calories") or 0.0),
        fiber_g=float(row.get("fiber_g") or 0.0),
    )
