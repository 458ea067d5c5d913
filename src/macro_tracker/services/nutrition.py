"""Nutrition service integrating USDA FDC."""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from macro_tracker.adapters.fdc_client import FdcClient
from macro_tracker.domain.nutrition import FoodDetails, FoodRecord, RawNutrient
from macro_tracker.services.cache import Cache
from macro_tracker.services.resolver import resolve_macros

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class NutritionService:
    """Food lookups with caching, a short retry and macro resolution."""

    fdc_client: FdcClient
    cache: Cache
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int = 10) -> list[FoodRecord]:
        """Search FDC foods; results may carry no nutrient detail."""
        cache_key = f"fdc:search:{query.lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.search_foods(query, page_size=limit),
            action="search",
        )
        foods = [parse_food_record(food) for food in payload.get("foods") or []]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        _logger.debug("FDC search: query=%s results=%s", query, len(foods))
        return foods

    async def get_food(self, fdc_id: int) -> FoodDetails:
        """Retrieve a food with its resolved per-100g macros."""
        cache_key = f"fdc:food:{fdc_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodDetails):
            return cached

        payload = await self._call_with_retry(
            lambda: self.fdc_client.get_food(fdc_id),
            action=f"get_food:{fdc_id}",
        )
        record = parse_food_record(payload)
        details = FoodDetails(record=record, macros=resolve_macros(record))
        self.cache.set(cache_key, details, ttl_seconds=self.food_ttl_seconds)
        return details

    async def search_with_macros(
        self, query: str, limit: int = 10
    ) -> list[FoodDetails]:
        """Search and resolve macros, dropping foods with no usable values.

        Search hits without nutrients are completed with a detail lookup; a
        hit whose lookup fails is skipped.
        """
        results: list[FoodDetails] = []
        for record in (await self.search(query, limit=limit))[:limit]:
            if record.nutrients:
                details = FoodDetails(record=record, macros=resolve_macros(record))
            else:
                try:
                    details = await self.get_food(record.fdc_id)
                except httpx.HTTPError:
                    _logger.exception(
                        "FDC detail lookup failed for fdc_id=%s", record.fdc_id
                    )
                    continue
            if details.macros.is_empty():
                continue
            results.append(details)
        return results

    async def _call_with_retry(
        self, func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry.

        Only transport errors and server or rate-limit responses are retried.
        """
        attempt = 0
        while True:
            try:
                return await func()
            except httpx.HTTPError as exc:
                attempt += 1
                _logger.warning(
                    "FDC %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts or not _is_retryable(exc):
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def parse_food_record(payload: dict[str, object]) -> FoodRecord:
    """Build a FoodRecord from any FDC search hit or food detail payload."""
    nutrients = payload.get("foodNutrients") or []
    return FoodRecord(
        fdc_id=int(payload.get("fdcId") or 0),
        description=str(payload.get("description") or ""),
        data_type=payload.get("dataType"),
        nutrients=tuple(
            _parse_nutrient(entry) for entry in nutrients if isinstance(entry, dict)
        ),
    )


def _parse_nutrient(entry: dict[str, object]) -> RawNutrient:
    nested = entry.get("nutrient")
    if not isinstance(nested, dict):
        nested = {}
    return RawNutrient(
        nutrient_id=_to_int(entry.get("nutrientId")),
        name=_to_str(entry.get("nutrientName") or entry.get("name")),
        value=_to_float(entry.get("value")),
        amount=_to_float(entry.get("amount")),
        nested_id=_to_int(nested.get("id")),
        nested_name=_to_str(nested.get("name")),
        unit_name=_to_str(entry.get("unitName") or nested.get("unitName")),
    )


def _to_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _to_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
    else:
        return None
    return parsed if math.isfinite(parsed) else None


def _to_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _is_retryable(exc: httpx.HTTPError) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return True


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
