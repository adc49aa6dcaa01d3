# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Precious-metal spot price client."""

from __future__ import annotations

import asyncio
import dataclasses
import time
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from goldsmith.client.base import BaseApiClient
from goldsmith.client.circuit_breaker import CircuitBreaker, CircuitBreakerFactory
from goldsmith.client.errors import ApiError, HttpStatusError, InvalidResponseError
from goldsmith.kernel.exceptions import CircuitOpenError
from goldsmith.kernel.types import Clock, utc_now
from goldsmith.pricing.cache import CacheStats, PriceCache
from goldsmith.pricing.properties import HttpClientProperties, MetalPriceProperties
from goldsmith.pricing.types import TROY_OUNCE_IN_GRAMS, MetalPrice, MetalPriceQuote

logger = structlog.get_logger("goldsmith.pricing.metal")

BREAKER_NAME = "metal-prices"

SUPPORTED_METALS = ("gold", "silver", "platinum", "palladium")

# USD per gram, used only when neither a live nor a cached price exists.
DEFAULT_PRICES_PER_GRAM: dict[str, float] = {
    "gold": 65.0,
    "silver": 0.8,
    "platinum": 30.0,
    "palladium": 25.0,
}


class MetalPriceApiClient(BaseApiClient):
    """Fetches metal spot prices behind the ``metal-prices`` circuit breaker.

    Lookups go fresh cache, then a rate-limited live request through the
    breaker, then the last known (stale) price. When all of these come up
    empty the result is ``None``; no fetch failure is raised to the caller.

    Live requests are spaced at least ``rate_limit`` apart, across all
    metals, including requests issued concurrently.
    """

    def __init__(
        self,
        breaker_factory: CircuitBreakerFactory,
        properties: MetalPriceProperties | None = None,
        http: HttpClientProperties | None = None,
        *,
        clock: Clock = utc_now,
        transport: httpx.AsyncBaseTransport | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._properties = properties or MetalPriceProperties()
        http = http or HttpClientProperties()
        super().__init__(
            self._properties.base_url,
            timeout=self._properties.timeout,
            retries=http.retries,
            retry_delay=http.retry_delay,
            headers={"X-API-Key": self._properties.api_key} if self._properties.api_key else None,
            transport=transport,
        )
        self._clock = clock
        self._breaker = breaker_factory.get_instance(BREAKER_NAME, self._properties.breaker_config())
        self._cache: PriceCache[MetalPrice] = PriceCache(self._properties.cache_timeout, clock=clock)
        self._monotonic = monotonic
        self._rate_lock = asyncio.Lock()
        self._last_request: float | None = None

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def get_current_price(self, metal: str) -> MetalPrice | None:
        """Current price of *metal*, or None when no price is available."""
        metal = metal.lower()

        cached = self._cache.get(metal)
        if cached is not None:
            return cached

        await self._enforce_rate_limit()

        try:
            price = await self._breaker.execute(self._fetch_price, metal)
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("metal_price_fetch_failed", metal=metal, error=exc.message, code=exc.code)
            return self._stale_price(metal)

        if price is not None:
            self._cache.put(metal, price)
        return price

    async def get_multiple_prices(self, metals: Iterable[str]) -> dict[str, MetalPrice | None]:
        """Fetch several metals; one metal failing never affects the others."""
        metals = list(metals)
        results = await asyncio.gather(
            *(self.get_current_price(metal) for metal in metals),
            return_exceptions=True,
        )

        prices: dict[str, MetalPrice | None] = {}
        for metal, result in zip(metals, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("metal_price_lookup_failed", metal=metal, error=str(result))
                prices[metal] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                prices[metal] = result
        return prices

    async def get_all_prices(self) -> dict[str, MetalPrice | None]:
        return await self.get_multiple_prices(SUPPORTED_METALS)

    async def get_historical_price(self, metal: str, on: date) -> MetalPrice | None:
        """Best-effort historical price; not cached, None on any failure."""
        metal = metal.lower()
        day = on.date() if isinstance(on, datetime) else on

        async def fetch() -> MetalPrice:
            response = await self.get(f"/historical/{metal}", params={"date": day.isoformat()})
            return self._parse(response.data)

        try:
            return await self._breaker.execute(fetch)
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("historical_metal_price_failed", metal=metal, date=day.isoformat(), error=exc.message)
            return None

    async def get_price_or_default(self, metal: str) -> MetalPrice | None:
        """Like :meth:`get_current_price`, falling back to the default table.

        Default prices are flagged ``stale`` with provider ``"default"``.
        None is returned only for metals missing from the table.
        """
        price = await self.get_current_price(metal)
        if price is not None:
            return price

        metal = metal.lower()
        per_gram = DEFAULT_PRICES_PER_GRAM.get(metal)
        if per_gram is None:
            return None

        logger.warning("using_default_metal_price", metal=metal, price_per_gram=per_gram)
        return MetalPrice(
            metal=metal,
            price_per_ounce=per_gram * TROY_OUNCE_IN_GRAMS,
            price_per_gram=per_gram,
            currency="USD",
            last_updated=self._clock(),
            provider="default",
            stale=True,
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def _fetch_price(self, metal: str) -> MetalPrice | None:
        try:
            response = await self.get(f"/{metal}")
        except HttpStatusError as exc:
            if exc.status != 404:
                raise
            try:
                response = await self.get(f"/spot/{metal}")
            except ApiError:
                logger.info("metal_not_supported", metal=metal)
                return None
        return self._parse(response.data)

    def _parse(self, payload: Any) -> MetalPrice:
        try:
            quote = MetalPriceQuote.model_validate(payload)
        except ValidationError as exc:
            raise InvalidResponseError("Unexpected metal price payload", details=payload) from exc
        return quote.to_metal_price()

    def _stale_price(self, metal: str) -> MetalPrice | None:
        cached = self._cache.get(metal, include_expired=True)
        if cached is None:
            return None
        logger.info("serving_stale_price", metal=metal, last_updated=cached.last_updated.isoformat())
        return dataclasses.replace(cached, stale=True)

    async def _enforce_rate_limit(self) -> None:
        async with self._rate_lock:
            if self._last_request is not None:
                elapsed = self._monotonic() - self._last_request
                wait = self._properties.rate_limit.total_seconds() - elapsed
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request = self._monotonic()
