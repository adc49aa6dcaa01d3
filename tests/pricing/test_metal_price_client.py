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
"""Tests for MetalPriceApiClient: cache, breaker and fallbacks."""

import asyncio
from datetime import date, timedelta

import httpx
import pytest

from goldsmith.client.circuit_breaker import CircuitBreakerFactory, CircuitState
from goldsmith.pricing import metal_client
from goldsmith.pricing.metal_client import BREAKER_NAME, MetalPriceApiClient
from goldsmith.pricing.properties import HttpClientProperties, MetalPriceProperties
from goldsmith.pricing.types import TROY_OUNCE_IN_GRAMS

FAST = MetalPriceProperties(rate_limit=timedelta(0), failure_threshold=3)
NO_RETRY = HttpClientProperties(retries=0, retry_delay=timedelta(0))


def quote(metal: str, price: float, unit: str = "oz") -> dict:
    return {"metal": metal, "price_usd": price, "currency": "USD", "timestamp": "2026-01-01T12:00:00Z", "unit": unit}


class Upstream:
    """Programmable mock upstream that records every request path."""

    def __init__(self) -> None:
        self.paths: list[str] = []
        self.fail = False
        self.prices = {"gold": quote("gold", 2000.0), "silver": quote("silver", 25.0)}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if self.fail:
            return httpx.Response(500, json={"message": "upstream down"})
        metal = request.url.path.rsplit("/", 1)[-1]
        if metal in self.prices:
            return httpx.Response(200, json=self.prices[metal])
        return httpx.Response(404, json={"message": "not found"})


def make_client(upstream, clock, properties=FAST, factory=None) -> MetalPriceApiClient:
    return MetalPriceApiClient(
        factory or CircuitBreakerFactory(clock=clock),
        properties,
        NO_RETRY,
        clock=clock,
        transport=httpx.MockTransport(upstream),
    )


class TestCurrentPrice:
    @pytest.mark.asyncio
    async def test_normalizes_ounce_price(self, clock):
        client = make_client(Upstream(), clock)

        price = await client.get_current_price("Gold")

        assert price is not None
        assert price.metal == "gold"
        assert price.price_per_ounce == 2000.0
        assert price.price_per_gram == pytest.approx(2000.0 / TROY_OUNCE_IN_GRAMS)
        assert price.currency == "USD"
        assert price.stale is False

    @pytest.mark.asyncio
    async def test_normalizes_gram_price(self, clock):
        upstream = Upstream()
        upstream.prices["platinum"] = quote("platinum", 30.0, unit="g")
        client = make_client(upstream, clock)

        price = await client.get_current_price("platinum")

        assert price.price_per_gram == 30.0
        assert price.price_per_ounce == pytest.approx(30.0 * TROY_OUNCE_IN_GRAMS)

    @pytest.mark.asyncio
    async def test_cache_freshness(self, clock):
        upstream = Upstream()
        client = make_client(upstream, clock)

        await client.get_current_price("gold")
        await client.get_current_price("gold")
        assert len(upstream.paths) == 1

        clock.advance(timedelta(hours=1, seconds=1))
        await client.get_current_price("gold")
        assert len(upstream.paths) == 2

    @pytest.mark.asyncio
    async def test_stale_fallback_after_expiry(self, clock):
        upstream = Upstream()
        client = make_client(upstream, clock)
        first = await client.get_current_price("gold")

        clock.advance(timedelta(hours=2))
        upstream.fail = True
        second = await client.get_current_price("gold")

        assert second is not None
        assert second.price_per_ounce == first.price_per_ounce
        assert second.stale is True

    @pytest.mark.asyncio
    async def test_no_cache_and_failure_returns_none(self, clock):
        upstream = Upstream()
        upstream.fail = True
        client = make_client(upstream, clock)

        assert await client.get_current_price("gold") is None

    @pytest.mark.asyncio
    async def test_open_circuit_serves_stale_without_request(self, clock):
        upstream = Upstream()
        client = make_client(upstream, clock)
        await client.get_current_price("gold")
        clock.advance(timedelta(hours=2))
        upstream.fail = True

        for _ in range(3):
            await client.get_current_price("gold")
        assert client.breaker.state == CircuitState.OPEN
        requests_before = len(upstream.paths)

        price = await client.get_current_price("gold")

        assert price is not None and price.stale
        assert len(upstream.paths) == requests_before

    @pytest.mark.asyncio
    async def test_404_falls_back_to_spot_path_then_unsupported(self, clock):
        upstream = Upstream()
        client = make_client(upstream, clock)

        assert await client.get_current_price("rhodium") is None
        assert upstream.paths == ["/v1/spot/rhodium", "/v1/spot/spot/rhodium"]
        assert client.breaker.get_stats().failure_count == 0

    @pytest.mark.asyncio
    async def test_invalid_payload_counts_as_failure(self, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        client = make_client(handler, clock)

        assert await client.get_current_price("gold") is None
        assert client.breaker.get_stats().failure_count == 1

    @pytest.mark.asyncio
    async def test_api_key_header(self, clock):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("x-api-key"))
            return httpx.Response(200, json=quote("gold", 2000.0))

        client = make_client(handler, clock, MetalPriceProperties(api_key="k-123", rate_limit=timedelta(0)))
        await client.get_current_price("gold")

        assert seen == ["k-123"]

    def test_uses_shared_named_breaker(self, clock):
        factory = CircuitBreakerFactory(clock=clock)
        client = make_client(Upstream(), clock, factory=factory)

        assert factory.get_instance(BREAKER_NAME) is client.breaker
        assert client.breaker.config.failure_threshold == 3


class TestBulkAndExtras:
    @pytest.mark.asyncio
    async def test_multiple_prices_are_independent(self, clock):
        client = make_client(Upstream(), clock)

        prices = await client.get_multiple_prices(["gold", "silver", "rhodium"])

        assert prices["gold"].price_per_ounce == 2000.0
        assert prices["silver"].price_per_ounce == 25.0
        assert prices["rhodium"] is None

    @pytest.mark.asyncio
    async def test_all_prices_covers_supported_metals(self, clock):
        client = make_client(Upstream(), clock)

        prices = await client.get_all_prices()

        assert set(prices) == {"gold", "silver", "platinum", "palladium"}

    @pytest.mark.asyncio
    async def test_historical_price(self, clock):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, request.url.params.get("date")))
            return httpx.Response(200, json=quote("gold", 1800.0))

        client = make_client(handler, clock)
        price = await client.get_historical_price("gold", date(2025, 6, 30))

        assert price.price_per_ounce == 1800.0
        assert seen == [("/v1/spot/historical/gold", "2025-06-30")]

    @pytest.mark.asyncio
    async def test_historical_price_failure_is_none(self, clock):
        upstream = Upstream()
        upstream.fail = True
        client = make_client(upstream, clock)

        assert await client.get_historical_price("gold", date(2025, 6, 30)) is None

    @pytest.mark.asyncio
    async def test_price_or_default(self, clock):
        upstream = Upstream()
        upstream.fail = True
        client = make_client(upstream, clock)

        price = await client.get_price_or_default("gold")

        assert price.provider == "default"
        assert price.stale is True
        assert price.price_per_gram == 65.0
        assert await client.get_price_or_default("unobtainium") is None

    @pytest.mark.asyncio
    async def test_cache_stats_and_clear(self, clock):
        client = make_client(Upstream(), clock)
        await client.get_current_price("gold")
        clock.advance(timedelta(minutes=5))

        stats = client.get_cache_stats()
        assert stats.size == 1
        assert stats.ages["gold"] == timedelta(minutes=5)

        client.clear_cache()
        assert client.get_cache_stats().size == 0


class Ticks:
    """Monotonic seconds that only move when a sleep is recorded."""

    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def ticks(monkeypatch) -> Ticks:
    ticks = Ticks()
    real_sleep = asyncio.sleep

    async def sleep(seconds: float) -> None:
        ticks.sleeps.append(seconds)
        ticks.now += seconds
        await real_sleep(0)

    monkeypatch.setattr(metal_client.asyncio, "sleep", sleep)
    return ticks


class TestRateLimit:
    def make_client(self, upstream, clock, ticks) -> MetalPriceApiClient:
        return MetalPriceApiClient(
            CircuitBreakerFactory(clock=clock),
            MetalPriceProperties(rate_limit=timedelta(seconds=2)),
            NO_RETRY,
            clock=clock,
            transport=httpx.MockTransport(upstream),
            monotonic=ticks,
        )

    @pytest.mark.asyncio
    async def test_spacing_applies_across_metals(self, clock, ticks):
        client = self.make_client(Upstream(), clock, ticks)

        await client.get_current_price("gold")
        ticks.now += 0.5
        await client.get_current_price("silver")

        assert ticks.sleeps == [1.5]

    @pytest.mark.asyncio
    async def test_no_wait_once_interval_elapsed(self, clock, ticks):
        client = self.make_client(Upstream(), clock, ticks)

        await client.get_current_price("gold")
        ticks.now += 3
        await client.get_current_price("silver")

        assert ticks.sleeps == []

    @pytest.mark.asyncio
    async def test_cache_hits_skip_the_limiter(self, clock, ticks):
        client = self.make_client(Upstream(), clock, ticks)

        await client.get_current_price("gold")
        await client.get_current_price("gold")

        assert ticks.sleeps == []

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_serialized(self, clock, ticks):
        upstream = Upstream()
        upstream.prices["palladium"] = quote("palladium", 1000.0)
        client = self.make_client(upstream, clock, ticks)

        prices = await client.get_multiple_prices(["gold", "silver", "palladium"])

        assert all(price is not None for price in prices.values())
        assert ticks.sleeps == [2.0, 2.0]
        assert ticks.now == 104.0
