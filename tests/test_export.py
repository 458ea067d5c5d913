"""Tests for CSV export."""

from datetime import UTC, date, datetime

from macro_tracker.services.export import CSV_HEADER, ExportService, one_month_before
from macro_tracker.services.stats import StatsService
from tests.conftest import InMemoryMealLogRepository, make_meal


def test_one_month_before_clamps_to_month_length() -> None:
    assert one_month_before(date(2024, 3, 31)) == date(2024, 2, 29)
    assert one_month_before(date(2023, 3, 31)) == date(2023, 2, 28)
    assert one_month_before(date(2024, 1, 15)) == date(2023, 12, 15)


def test_rows_format_one_decimal() -> None:
    service = ExportService(StatsService(InMemoryMealLogRepository()))
    meal = make_meal(
        1,
        datetime(2024, 5, 1, 12, tzinfo=UTC),
        247.5,
        protein_g=46.5,
        fat_g=5.4,
    )

    rows = service.rows([meal])

    assert rows[0] == CSV_HEADER
    assert rows[1] == (
        "2024-05-01",
        "lunch",
        "food 1",
        "100.0",
        "247.5",
        "46.5",
        "0.0",
        "5.4",
        "0.0",
    )


def test_export_covers_last_month_only(tmp_path) -> None:
    repo = InMemoryMealLogRepository(
        meals=[
            make_meal(1, datetime(2024, 3, 31, 12, tzinfo=UTC), 100),
            make_meal(2, datetime(2024, 4, 15, 12, tzinfo=UTC), 200),
            make_meal(3, datetime(2024, 5, 1, 12, tzinfo=UTC), 300),
            make_meal(4, datetime(2024, 5, 1, 13, tzinfo=UTC), 400, user_id=2),
        ]
    )
    service = ExportService(StatsService(repo))

    path = service.write_csv(1, tmp_path, today=date(2024, 5, 1))

    assert path.name == "export_1_20240501.csv"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert lines[1].startswith("2024-04-15,")
    assert lines[2].startswith("2024-05-01,")
