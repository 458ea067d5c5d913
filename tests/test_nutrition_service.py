"""Tests for nutrition service."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest

from macro_tracker.adapters.fdc_client import FdcClient
from macro_tracker.services.cache import InMemoryCache
from macro_tracker.services.nutrition import NutritionService, parse_food_record
from tests.conftest import (
    CHICKEN_FDC_ID,
    RICE_FDC_ID,
    FakeFdcClient,
    chicken_payload,
)


@dataclass
class FlakyFdcClient(FdcClient):
    failures: int = 1
    calls: int = 0
    status: int | None = None

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        raise NotImplementedError

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.calls += 1
        if self.calls <= self.failures:
            if self.status is None:
                raise httpx.ConnectError("connection refused")
            request = httpx.Request("GET", f"https://api.test/food/{fdc_id}")
            raise httpx.HTTPStatusError(
                "failed",
                request=request,
                response=httpx.Response(self.status, request=request),
            )
        return chicken_payload()


@dataclass
class SparseSearchFdcClient(FakeFdcClient):
    """Search hits carry no nutrients, like abridged FDC search results."""

    missing_ids: set[int] = field(default_factory=set)

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        payload = await super().search_foods(query, page_size)
        hits = [
            {"fdcId": hit["fdcId"], "description": hit["description"]}
            for hit in payload["foods"]
        ]
        hits.extend(
            {"fdcId": fdc_id, "description": "gone"} for fdc_id in self.missing_ids
        )
        return {"foods": hits}


@dataclass
class BrokenFdcClient(FlakyFdcClient):
    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.calls += 1
        raise KeyError("fdcId")


def _service(client: FdcClient, **kwargs: object) -> NutritionService:
    return NutritionService(
        client, InMemoryCache(), retry_delay_seconds=0, **kwargs
    )


def test_search_uses_cache() -> None:
    client = FakeFdcClient()
    service = _service(client)

    results = asyncio.run(service.search("rice", limit=1))
    assert results[0].fdc_id == RICE_FDC_ID
    assert client.search_calls == ["rice"]

    cached = asyncio.run(service.search("RICE", limit=1))
    assert cached[0].fdc_id == RICE_FDC_ID
    assert client.search_calls == ["rice"]


def test_get_food_returns_macros() -> None:
    client = FakeFdcClient()
    service = _service(client)

    details = asyncio.run(service.get_food(CHICKEN_FDC_ID))
    asyncio.run(service.get_food(CHICKEN_FDC_ID))

    assert details.record.description.startswith("Chicken")
    assert details.macros.calories == 165
    assert details.macros.protein_g == 31
    assert details.macros.fat_g == 3.6
    assert details.macros.carbs_g == 0
    assert client.food_calls == [CHICKEN_FDC_ID]


def test_search_with_macros_drops_foods_without_macros() -> None:
    client = FakeFdcClient()
    service = _service(client)

    results = asyncio.run(service.search_with_macros("e"))

    ids = [result.record.fdc_id for result in results]
    assert CHICKEN_FDC_ID in ids
    assert RICE_FDC_ID in ids
    assert len(ids) == 2
    assert client.food_calls == []


def test_search_with_macros_fetches_details_for_bare_hits() -> None:
    client = SparseSearchFdcClient(missing_ids={424242})
    service = _service(client, retry_attempts=0)

    results = asyncio.run(service.search_with_macros("chicken"))

    assert [result.record.fdc_id for result in results] == [CHICKEN_FDC_ID]
    assert results[0].macros.protein_g == 31
    assert client.food_calls == [CHICKEN_FDC_ID, 424242]


def test_search_with_macros_caps_results() -> None:
    client = FakeFdcClient(
        foods={
            fdc_id: {**chicken_payload(), "fdcId": fdc_id}
            for fdc_id in range(1, 16)
        }
    )
    service = _service(client)

    results = asyncio.run(service.search_with_macros("chicken"))

    assert len(results) == 10


def test_retry_recovers_from_transient_failure() -> None:
    client = FlakyFdcClient(failures=1)
    service = _service(client, retry_attempts=1)

    details = asyncio.run(service.get_food(CHICKEN_FDC_ID))

    assert details.macros.calories == 165
    assert client.calls == 2


def test_retry_gives_up_and_raises() -> None:
    client = FlakyFdcClient(failures=5)
    service = _service(client, retry_attempts=1)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(service.get_food(CHICKEN_FDC_ID))
    assert client.calls == 2


@pytest.mark.parametrize("status", [429, 503])
def test_retry_recovers_from_server_errors(status: int) -> None:
    client = FlakyFdcClient(failures=1, status=status)
    service = _service(client, retry_attempts=1)

    details = asyncio.run(service.get_food(CHICKEN_FDC_ID))

    assert details.macros.protein_g == 31
    assert client.calls == 2


def test_client_errors_are_not_retried() -> None:
    client = FakeFdcClient()
    service = _service(client, retry_attempts=2)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(service.get_food(1))
    assert client.food_calls == [1]


def test_unexpected_errors_are_not_retried() -> None:
    client = BrokenFdcClient()
    service = _service(client, retry_attempts=2)

    with pytest.raises(KeyError):
        asyncio.run(service.get_food(CHICKEN_FDC_ID))
    assert client.calls == 1


def test_parse_food_record_drops_non_finite_values() -> None:
    record = parse_food_record(
        {
            "fdcId": 7,
            "foodNutrients": [
                {"nutrientId": 1003, "value": "NaN"},
                {"nutrientId": 1008, "value": float("inf")},
            ],
        }
    )

    assert [nutrient.value for nutrient in record.nutrients] == [None, None]


def test_parse_food_record_tolerates_missing_fields() -> None:
    record = parse_food_record(
        {
            "fdcId": 5,
            "foodNutrients": [
                {"nutrientId": "1003", "value": "4.5"},
                {"nutrient": {"id": 1008}},
                "garbage",
            ],
        }
    )

    assert record.description == ""
    assert record.data_type is None
    assert len(record.nutrients) == 2
    assert record.nutrients[0].nutrient_id == 1003
    assert record.nutrients[0].value == 4.5
    assert record.nutrients[1].nested_id == 1008
    assert record.nutrients[1].amount is None
