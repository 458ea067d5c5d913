"""Nutrition targets: derivation from a calorie goal and progress comparison."""

import math
from dataclasses import dataclass
from datetime import date

from macro_tracker.domain.models import MacroTargets
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.domain.stats import DayReport
from macro_tracker.services.stats import StatsService
from macro_tracker.services.users import UserService

KCAL_PER_G_PROTEIN = 4.0
KCAL_PER_G_CARBS = 4.0
KCAL_PER_G_FAT = 9.0
PERCENT_TOLERANCE = 1.0

_COMPARED_FIELDS = ("calories", "protein_g", "carbs_g", "fat_g", "fiber_g")


def needs_normalization(
    protein_pct: float, carbs_pct: float, fat_pct: float
) -> bool:
    """Return True when the split is more than one point away from 100%."""
    return abs(protein_pct + carbs_pct + fat_pct - 100.0) > PERCENT_TOLERANCE


def normalize_percentages(
    protein_pct: float, carbs_pct: float, fat_pct: float
) -> tuple[float, float, float]:
    """Rescale the three percentages so they sum to 100."""
    total = protein_pct + carbs_pct + fat_pct
    if total <= 0:
        raise ValueError("Percentages must sum to a positive value")
    factor = 100.0 / total
    return protein_pct * factor, carbs_pct * factor, fat_pct * factor


def derive_targets(  # noqa: PLR0913
    calorie_goal: float,
    protein_pct: float,
    carbs_pct: float,
    fat_pct: float,
    fiber_g: float,
    normalize: bool = False,
) -> MacroTargets:
    """Convert a calorie goal and energy split into gram targets.

    Normalization only happens when ``normalize`` is True and the split is
    off by more than one point; callers must ask the user first.
    """
    if not math.isfinite(calorie_goal) or calorie_goal <= 0:
        raise ValueError("calorie goal must be a finite positive number")
    for value in (protein_pct, carbs_pct, fat_pct, fiber_g):
        if not math.isfinite(value) or value < 0:
            raise ValueError("percentages and fiber must be finite and non-negative")
    if normalize and needs_normalization(protein_pct, carbs_pct, fat_pct):
        protein_pct, carbs_pct, fat_pct = normalize_percentages(
            protein_pct, carbs_pct, fat_pct
        )
    return MacroTargets(
        calories=calorie_goal,
        protein_g=calorie_goal * protein_pct / 100.0 / KCAL_PER_G_PROTEIN,
        carbs_g=calorie_goal * carbs_pct / 100.0 / KCAL_PER_G_CARBS,
        fat_g=calorie_goal * fat_pct / 100.0 / KCAL_PER_G_FAT,
        fiber_g=fiber_g,
    )


def compare(actual: CanonicalMacros, targets: MacroTargets) -> dict[str, float]:
    """Return ``actual / target * 100`` per field, skipping unusable targets."""
    percentages: dict[str, float] = {}
    for field in _COMPARED_FIELDS:
        target = getattr(targets, field)
        if target == 0 or not math.isfinite(target):
            continue
        percentages[field] = getattr(actual, field) / target * 100.0
    return percentages


def target_split(targets: MacroTargets) -> dict[str, float]:
    """Return the share of the calorie goal covered by each gram target."""
    if not targets.is_set:
        return {}
    return {
        "protein_g": targets.protein_g * KCAL_PER_G_PROTEIN / targets.calories * 100,
        "carbs_g": targets.carbs_g * KCAL_PER_G_CARBS / targets.calories * 100,
        "fat_g": targets.fat_g * KCAL_PER_G_FAT / targets.calories * 100,
    }


@dataclass
class TargetsService:
    """Stores user targets and reports daily progress against them."""

    user_service: UserService
    stats_service: StatsService

    def get_targets(self, user_id: int) -> MacroTargets | None:
        """Return a user's targets, or None if the user does not exist."""
        user = self.user_service.get_user(user_id)
        if user is None:
            return None
        return user.targets

    def set_targets(self, user_id: int, targets: MacroTargets) -> bool:
        """Persist targets; returns False when the user does not exist."""
        return self.user_service.repository.update_targets(user_id, targets)

    def day_report(self, user_id: int, day: date | None = None) -> DayReport | None:
        """Return a day's totals with the percent-of-target comparison."""
        user = self.user_service.get_user(user_id)
        if user is None:
            return None
        totals, meals = self.stats_service.get_day(user_id, day)
        if not user.targets.is_set:
            return DayReport(
                totals=totals, meals=meals, targets=None, percent_of_target=None
            )
        return DayReport(
            totals=totals,
            meals=meals,
            targets=user.targets,
            percent_of_target=compare(totals.macros, user.targets),
        )
