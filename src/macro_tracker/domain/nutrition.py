"""Nutrition domain models."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class CanonicalMacros:
    """Macro quantities in grams (calories in kcal), per 100g unless scaled."""

    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    calories: float = 0.0
    fiber_g: float = 0.0

    def clamped(self) -> "CanonicalMacros":
        """Return a copy with negative or non-finite values replaced by 0."""
        return CanonicalMacros(
            protein_g=_non_negative(self.protein_g),
            carbs_g=_non_negative(self.carbs_g),
            fat_g=_non_negative(self.fat_g),
            calories=_non_negative(self.calories),
            fiber_g=_non_negative(self.fiber_g),
        )

    def is_empty(self) -> bool:
        """Return True when none of protein, carbs, fat or calories is positive."""
        return (
            self.protein_g <= 0
            and self.carbs_g <= 0
            and self.fat_g <= 0
            and self.calories <= 0
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "calories": self.calories,
            "fiber_g": self.fiber_g,
        }


@dataclass(frozen=True)
class RawNutrient:
    """A nutrient entry exactly as the food data provider returned it.

    FDC responses come in several shapes: search results carry a flat
    ``nutrientId``/``nutrientName``/``value``, full food details nest the id
    and name under ``nutrient`` and put the quantity in ``amount``. Any field
    may be missing.
    """

    nutrient_id: int | None = None
    name: str | None = None
    value: float | None = None
    amount: float | None = None
    nested_id: int | None = None
    nested_name: str | None = None
    unit_name: str | None = None


@dataclass(frozen=True)
class FoodRecord:
    """A food fetched from the food data provider."""

    fdc_id: int
    description: str
    data_type: str | None = None
    nutrients: tuple[RawNutrient, ...] = ()


@dataclass(frozen=True)
class FoodDetails:
    """A food record together with its resolved per-100g macros."""

    record: FoodRecord
    macros: CanonicalMacros


def _non_negative(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value
