"""CSV export of logged meals."""

import calendar
import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from macro_tracker.domain.meals import LoggedMeal
from macro_tracker.services.stats import StatsService

CSV_HEADER = (
    "Date",
    "Meal type",
    "Food",
    "Quantity (g)",
    "Calories",
    "Protein",
    "Carbs",
    "Fat",
    "Fiber",
)


@dataclass
class ExportService:
    """Builds CSV exports of the last month of a user's meals."""

    stats_service: StatsService

    def list_last_month(
        self, user_id: int, today: date | None = None
    ) -> list[LoggedMeal]:
        end = today or self.stats_service.today()
        return self.stats_service.list_range(user_id, one_month_before(end), end)

    def rows(self, meals: Iterable[LoggedMeal]) -> list[tuple[str, ...]]:
        """Return the header followed by one row per meal."""
        tz = self.stats_service.tz
        rows: list[tuple[str, ...]] = [CSV_HEADER]
        for meal in meals:
            rows.append(
                (
                    meal.logged_at.astimezone(tz).date().isoformat(),
                    str(meal.meal_type),
                    meal.food_name,
                    f"{meal.grams:.1f}",
                    f"{meal.macros.calories:.1f}",
                    f"{meal.macros.protein_g:.1f}",
                    f"{meal.macros.carbs_g:.1f}",
                    f"{meal.macros.fat_g:.1f}",
                    f"{meal.macros.fiber_g:.1f}",
                )
            )
        return rows

    def to_csv(self, user_id: int, today: date | None = None) -> str:
        buffer = io.StringIO()
        csv.writer(buffer).writerows(self.rows(self.list_last_month(user_id, today)))
        return buffer.getvalue()

    def write_csv(
        self, user_id: int, directory: Path, today: date | None = None
    ) -> Path:
        """Write ``export_<user>_<YYYYMMDD>.csv`` into ``directory``."""
        day = today or self.stats_service.today()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"export_{user_id}_{day:%Y%m%d}.csv"
        path.write_text(self.to_csv(user_id, day), encoding="utf-8", newline="")
        return path


def one_month_before(day: date) -> date:
    """Return the same day one month earlier, clamped to the month's length."""
    year, month = (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))
