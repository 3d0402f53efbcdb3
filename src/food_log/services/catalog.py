"""Food catalog lookups across the external providers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from food_log.adapters.fatsecret_client import FatSecretClient
from food_log.adapters.open_food_facts_client import ProductClient
from food_log.domain.errors import InvalidSource, RemoteUnavailable
from food_log.domain.foods import FoodRecord
from food_log.services.cache import Cache
from food_log.services.normalization import (
    normalize_product,
    normalize_search_results,
    normalize_structured,
)

_logger = logging.getLogger(__name__)


@dataclass
class FoodCatalogService:
    """Searches and looks up foods, returning canonical records.

    Search is a catalog path and degrades to an empty list; lookups are used
    to commit log entries and raise.
    """

    fatsecret_client: FatSecretClient
    product_client: ProductClient
    cache: Cache
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    _inflight: dict[str, "asyncio.Future[FoodRecord]"] = field(
        default_factory=dict, init=False, repr=False
    )

    async def search(self, query: str) -> list[FoodRecord]:
        """Search the structured provider; any failure yields no results."""
        cleaned = query.strip()
        if not cleaned:
            return []
        cache_key = f"catalog:search:{cleaned.lower()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, tuple):
            return list(cached)
        try:
            payload = await self._call_with_retry(
                lambda: self.fatsecret_client.search_foods(cleaned),
                action=f"search:{cleaned}",
            )
        except (RemoteUnavailable, InvalidSource):
            _logger.warning("Food search failed for %r, returning no results", cleaned)
            return []
        records = normalize_search_results(payload)
        self.cache.set(cache_key, tuple(records), ttl_seconds=self.search_ttl_seconds)
        _logger.info("Food search %r returned %s results", cleaned, len(records))
        return records

    async def get_food(self, food_id: str) -> FoodRecord:
        """Return the normalized detail record for a provider food id."""
        cache_key = f"catalog:food:{food_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, FoodRecord):
            return cached
        payload = await self._call_with_retry(
            lambda: self.fatsecret_client.get_food(food_id),
            action=f"get_food:{food_id}",
        )
        record = normalize_structured(payload)
        self.cache.set(cache_key, record, ttl_seconds=self.food_ttl_seconds)
        return record

    async def lookup_barcode(self, barcode: str) -> FoodRecord:
        """Resolve a barcode through the structured provider.

        Concurrent lookups of the same barcode share one request.
        """
        pending = self._inflight.get(barcode)
        if pending is None:
            pending = asyncio.ensure_future(self._lookup_barcode(barcode))
            self._inflight[barcode] = pending
            pending.add_done_callback(lambda _: self._inflight.pop(barcode, None))
        else:
            _logger.info("Joining in-flight lookup for barcode %s", barcode)
        return await asyncio.shield(pending)

    async def lookup_product(self, barcode: str) -> FoodRecord:
        """Resolve a barcode through the per-100 g product database."""
        payload = await self._call_with_retry(
            lambda: self.product_client.get_product(barcode),
            action=f"product:{barcode}",
        )
        return normalize_product(payload, barcode=barcode)

    async def _lookup_barcode(self, barcode: str) -> FoodRecord:
        payload = await self._call_with_retry(
            lambda: self.fatsecret_client.find_food_id_for_barcode(barcode),
            action=f"barcode:{barcode}",
        )
        food_ref = payload.get("food_id")
        food_id = food_ref.get("value") if isinstance(food_ref, dict) else None
        if not food_id:
            raise InvalidSource(f"No food id found for barcode {barcode}")
        return await self.get_food(str(food_id))

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[dict[str, object]]], *, action: str
    ) -> dict[str, object]:
        """Call a provider with a short retry on transport errors."""
        attempt = 0
        while True:
            try:
                payload = await func()
            except httpx.HTTPError as exc:
                attempt += 1
                _logger.warning(
                    "Provider %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise RemoteUnavailable(f"Provider {action} failed") from exc
                await asyncio.sleep(self.retry_delay_seconds)
                continue
            except ValueError as exc:
                raise InvalidSource(f"Provider {action} returned invalid JSON") from exc
            if not isinstance(payload, dict):
                raise InvalidSource(f"Provider {action} returned a non-object payload")
            return payload


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
