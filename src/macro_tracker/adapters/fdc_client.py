"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

DEFAULT_DATA_TYPES = "Foundation,SR Legacy"


class FdcClient(Protocol):
    """Interface for FoodData Central API interactions."""

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Search foods by query and return raw API data."""

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch a food by FDC id and return raw API data."""


@dataclass
class HttpxFdcClient(FdcClient):
    """HTTPX-backed FDC client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    data_types: str = DEFAULT_DATA_TYPES
    timeout_seconds: float = 15

    @classmethod
    def create(
        cls, api_key: str, base_url: str, data_types: str = DEFAULT_DATA_TYPES
    ) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            data_types=data_types,
        )

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        """Search Foundation and SR Legacy foods by query."""
        url = f"{self.base_url}/foods/search"
        params: dict[str, str | int] = {
            "api_key": self.api_key,
            "query": query,
            "pageSize": page_size,
        }
        if self.data_types:
            params["dataType"] = self.data_types
        response = await self.http_client.get(
            url, params=params, timeout=self.timeout_seconds
        )
        response.raise_for_status()
        return response.json()

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch the full record of a food, nutrients included."""
        url = f"{self.base_url}/food/{fdc_id}"
        response = await self.http_client.get(
            url,
            params={"api_key": self.api_key, "format": "full"},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
