"""Domain models for users, targets and health metrics."""

from dataclasses import dataclass
from enum import StrEnum

_GENDER_ALIASES = {
    "homme": "male",
    "m": "male",
    "man": "male",
    "femme": "female",
    "f": "female",
    "woman": "female",
}


class Gender(StrEnum):
    """Gender categories used by the body-fat estimate."""

    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, raw: str) -> "Gender":
        cleaned = raw.strip().lower()
        return cls(_GENDER_ALIASES.get(cleaned, cleaned))


class BmiCategory(StrEnum):
    """WHO body-mass-index bands."""

    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"


@dataclass(frozen=True)
class MacroTargets:
    """Daily goals of a user. All-zero means no targets are set."""

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0

    @property
    def is_set(self) -> bool:
        return self.calories > 0

    def to_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "fiber_g": self.fiber_g,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, object] | None) -> "MacroTargets":
        """Build targets from a stored JSON object; missing keys are 0."""
        if not raw:
            return cls()
        return cls(
            calories=float(raw.get("calories") or 0.0),
            protein_g=float(raw.get("protein_g") or 0.0),
            carbs_g=float(raw.get("carbs_g") or 0.0),
            fat_g=float(raw.get("fat_g") or 0.0),
            fiber_g=float(raw.get("fiber_g") or 0.0),
        )


@dataclass(frozen=True)
class UserProfile:
    """Profile fields supplied when creating or updating a user."""

    name: str
    age: int = 0
    weight_kg: float = 0.0
    height_cm: float = 0.0
    gender: Gender | None = None


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: int
    name: str
    age: int
    weight_kg: float
    height_cm: float
    gender: Gender | None
    targets: MacroTargets


@dataclass(frozen=True)
class HealthReport:
    """Anthropometric summary of a user."""

    weight_kg: float
    height_cm: float
    bmi: float
    category: BmiCategory
    body_fat_pct: float | None
