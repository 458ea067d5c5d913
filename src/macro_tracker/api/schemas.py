"""Pydantic request models for the HTTP API."""

from pydantic import AwareDatetime, BaseModel, Field, FiniteFloat, field_validator

from macro_tracker.domain.meals import MealType
from macro_tracker.domain.models import Gender
from macro_tracker.domain.plans import MealSlot


def _gender_or_none(value: object) -> object:
    if isinstance(value, str):
        if not value.strip():
            return None
        return Gender.parse(value)
    return value


class UserCreate(BaseModel):
    """Body of a user creation request."""

    name: str = Field(min_length=1)
    age: int = Field(default=0, ge=0)
    weight_kg: FiniteFloat = Field(default=0.0, ge=0)
    height_cm: FiniteFloat = Field(default=0.0, ge=0)
    gender: Gender | None = None

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, value: object) -> object:
        return _gender_or_none(value)


class UserUpdate(BaseModel):
    """Partial profile update; empty or zero fields are ignored."""

    name: str | None = None
    age: int | None = Field(default=None, ge=0)
    weight_kg: FiniteFloat | None = Field(default=None, ge=0)
    height_cm: FiniteFloat | None = Field(default=None, ge=0)
    gender: Gender | None = None

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, value: object) -> object:
        return _gender_or_none(value)


class TargetsRequest(BaseModel):
    """Calorie goal and energy split used to derive gram targets."""

    calorie_goal: FiniteFloat = Field(gt=0)
    protein_pct: FiniteFloat = Field(ge=0, le=100)
    carbs_pct: FiniteFloat = Field(ge=0, le=100)
    fat_pct: FiniteFloat = Field(ge=0, le=100)
    fiber_g: FiniteFloat = Field(default=0.0, ge=0)
    normalize: bool = False


class MealLogRequest(BaseModel):
    """A food eaten by a user."""

    fdc_id: int = Field(gt=0)
    grams: FiniteFloat = Field(gt=0)
    meal_type: MealType
    logged_at: AwareDatetime | None = None

    @field_validator("meal_type", mode="before")
    @classmethod
    def _parse_meal_type(cls, value: object) -> object:
        return MealType.parse(value) if isinstance(value, str) else value


class MealPlanCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""


class MealPlanItemCreate(BaseModel):
    """A food to place in a slot of a template."""

    fdc_id: int = Field(gt=0)
    grams: FiniteFloat = Field(gt=0)
    meal_type: MealSlot

    @field_validator("meal_type", mode="before")
    @classmethod
    def _parse_slot(cls, value: object) -> object:
        return MealSlot.parse(value) if isinstance(value, str) else value


class MealSlotUpdate(BaseModel):
    meal_type: MealSlot

    @field_validator("meal_type", mode="before")
    @classmethod
    def _parse_slot(cls, value: object) -> object:
        return MealSlot.parse(value) if isinstance(value, str) else value
