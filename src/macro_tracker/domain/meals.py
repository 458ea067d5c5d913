"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from macro_tracker.domain.nutrition import CanonicalMacros

_MEAL_TYPE_ALIASES = {
    "petit-dejeuner": "breakfast",
    "dejeuner": "lunch",
    "diner": "dinner",
    "collation": "snack",
}


class MealType(StrEnum):
    """Meal a logged food belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @classmethod
    def parse(cls, raw: str) -> "MealType":
        """Parse a meal type tag, accepting the French aliases."""
        cleaned = raw.strip().lower()
        return cls(_MEAL_TYPE_ALIASES.get(cleaned, cleaned))


@dataclass(frozen=True)
class LoggedMeal:
    """A food consumed by a user, with macros already scaled to the portion."""

    id: int
    user_id: int
    meal_type: MealType
    logged_at: datetime
    food_id: int
    food_name: str
    grams: float
    macros: CanonicalMacros


@dataclass(frozen=True)
class MealLogResult:
    """Outcome of logging a food."""

    meal: LoggedMeal
    macros_missing: bool
