"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date

from macro_tracker.domain.meals import LoggedMeal
from macro_tracker.domain.models import MacroTargets
from macro_tracker.domain.nutrition import CanonicalMacros


@dataclass(frozen=True)
class DailyTotals:
    """Daily total macros."""

    day: date
    macros: CanonicalMacros


@dataclass(frozen=True)
class DayReport:
    """A day's meals and totals, compared with the user's targets when set."""

    totals: DailyTotals
    meals: list[LoggedMeal]
    targets: MacroTargets | None
    percent_of_target: dict[str, float] | None
