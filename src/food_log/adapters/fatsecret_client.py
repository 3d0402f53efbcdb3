"""Client for the structured-serving food provider proxy."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FatSecretClient(Protocol):
    """Interface for barcode, detail and search lookups."""

    async def find_food_id_for_barcode(self, barcode: str) -> dict[str, object]:
        """Return the raw barcode lookup payload."""

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Return the raw detail payload for a food id."""

    async def search_foods(self, query: str) -> dict[str, object]:
        """Return the raw search payload for a query."""


@dataclass
class HttpxFatSecretClient(FatSecretClient):
    """HTTPX-backed client talking to the provider through a proxy."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, base_url: str) -> "HttpxFatSecretClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def find_food_id_for_barcode(self, barcode: str) -> dict[str, object]:
        """Look up the provider food id for a barcode."""
        return await self._get("/barcode", {"barcode": barcode})

    async def get_food(self, food_id: str) -> dict[str, object]:
        """Fetch a food with all of its servings."""
        return await self._get("/food", {"food_id": food_id})

    async def search_foods(self, query: str) -> dict[str, object]:
        """Search foods by free text."""
        return await self._get("/search", {"query": query})

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            params=params,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
