"""Domain models for meal-plan templates."""

from dataclasses import dataclass, field
from enum import StrEnum

from macro_tracker.domain.nutrition import CanonicalMacros


class MealSlot(StrEnum):
    """One of the five parts of a planned day."""

    BREAKFAST = "breakfast"
    SNACK1 = "snack1"
    LUNCH = "lunch"
    SNACK2 = "snack2"
    DINNER = "dinner"

    @classmethod
    def parse(cls, raw: str) -> "MealSlot":
        """Parse a slot tag; raises ValueError for unknown tags."""
        return cls(raw.strip().lower())


@dataclass(frozen=True)
class MealPlanItem:
    """A food placed in a slot of a meal-plan template."""

    id: int
    meal_plan_id: int
    slot: MealSlot
    food_id: int
    food_name: str
    grams: float
    macros: CanonicalMacros


@dataclass(frozen=True)
class MealPlanTemplate:
    """A named, reusable day owned by a user."""

    id: int
    user_id: int
    name: str
    description: str
    items: list[MealPlanItem] = field(default_factory=list)
