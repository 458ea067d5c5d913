"""Statistics service for meal logs."""

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from macro_tracker.domain.meals import LoggedMeal
from macro_tracker.domain.nutrition import CanonicalMacros
from macro_tracker.domain.stats import DailyTotals

DEFAULT_HISTORY_DAYS = 7


class MealHistoryRepository(Protocol):
    """Read access to a user's logged meals."""

    def list_meals(
        self, user_id: int, start: datetime, end: datetime
    ) -> list[LoggedMeal]:
        """Return meals logged in ``[start, end)``, oldest first."""


def daily_totals(meals: Iterable[LoggedMeal]) -> CanonicalMacros:
    """Sum the macros of ``meals``; an empty input gives exact zeros."""
    return sum_macros(meal.macros for meal in meals)


def sum_macros(macros: Iterable[CanonicalMacros]) -> CanonicalMacros:
    """Field-wise sum. ``math.fsum`` is exactly rounded, so order is irrelevant."""
    items = list(macros)
    return CanonicalMacros(
        protein_g=math.fsum(m.protein_g for m in items),
        carbs_g=math.fsum(m.carbs_g for m in items),
        fat_g=math.fsum(m.fat_g for m in items),
        calories=math.fsum(m.calories for m in items),
        fiber_g=math.fsum(m.fiber_g for m in items),
    )


@dataclass
class StatsService:
    """Service computing per-day totals in the deployment timezone."""

    repository: MealHistoryRepository
    timezone_name: str = "UTC"

    def __post_init__(self) -> None:
        self._tz = ZoneInfo(self.timezone_name)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def today(self) -> date:
        return datetime.now(tz=self.tz).date()

    def list_day(self, user_id: int, day: date) -> list[LoggedMeal]:
        """Return the meals logged on ``day``."""
        start, end = self._bounds(day, day)
        return self.repository.list_meals(user_id, start, end)

    def get_day(
        self, user_id: int, day: date | None = None
    ) -> tuple[DailyTotals, list[LoggedMeal]]:
        """Return a day's totals and meals (today by default)."""
        resolved_day = day or self.today()
        meals = self.list_day(user_id, resolved_day)
        return DailyTotals(day=resolved_day, macros=daily_totals(meals)), meals

    def list_range(self, user_id: int, start: date, end: date) -> list[LoggedMeal]:
        """Return every meal logged between two calendar days, inclusive."""
        range_start, range_end = self._bounds(start, end)
        return self.repository.list_meals(user_id, range_start, range_end)

    def range_totals(
        self, user_id: int, start: date, end: date, newest_first: bool = True
    ) -> list[DailyTotals]:
        """Return totals for each day of ``[start, end]`` with logged calories."""
        if end < start:
            return []
        by_day: dict[date, list[LoggedMeal]] = defaultdict(list)
        for meal in self.list_range(user_id, start, end):
            by_day[meal.logged_at.astimezone(self.tz).date()].append(meal)

        totals = [
            DailyTotals(day=day, macros=daily_totals(meals))
            for day, meals in by_day.items()
            if start <= day <= end
        ]
        totals = [entry for entry in totals if entry.macros.calories > 0]
        return sorted(totals, key=lambda entry: entry.day, reverse=newest_first)

    def history(
        self,
        user_id: int,
        days: int = DEFAULT_HISTORY_DAYS,
        today: date | None = None,
    ) -> list[DailyTotals]:
        """Return the last ``days`` days ending today, newest first."""
        if days < 1:
            raise ValueError("days must be at least 1")
        end = today or self.today()
        start = end - timedelta(days=days - 1)
        return self.range_totals(user_id, start, end, newest_first=True)

    def _bounds(self, start: date, end: date) -> tuple[datetime, datetime]:
        tz = self.tz
        range_start = datetime.combine(start, time.min, tzinfo=tz)
        range_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz)
        return range_start.astimezone(UTC), range_end.astimezone(UTC)
