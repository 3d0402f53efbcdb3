"""Client for the per-100 g product database."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ProductClient(Protocol):
    """Interface for product lookups by barcode."""

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Return the raw product payload for a barcode."""


@dataclass
class HttpxOpenFoodFactsClient(ProductClient):
    """HTTPX-backed Open Food Facts client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsClient":
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def get_product(self, barcode: str) -> dict[str, object]:
        """Fetch a product by barcode."""
        response = await self.http_client.get(
            f"{self.base_url}/product/{barcode}.json",
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self.http_client.aclose()
