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
"""Currency exchange-rate client."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Iterable
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
from goldsmith.pricing.properties import ExchangeRateProperties, HttpClientProperties
from goldsmith.pricing.types import ConversionResult, ExchangeRate, ExchangeRateQuote

logger = structlog.get_logger("goldsmith.pricing.exchange")

BREAKER_NAME = "exchange-rates"

PROVIDER = "exchange-rate-api"

FALLBACK_CURRENCIES = ["USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY", "SEK", "NZD"]


def _pair(from_currency: str, to_currency: str) -> str:
    return f"{from_currency}-{to_currency}"


class ExchangeRateApiClient(BaseApiClient):
    """Fetches exchange rates behind the ``exchange-rates`` circuit breaker.

    Same degradation ladder as the metal client: fresh cache, live request,
    stale cache, then ``None``. Currency codes are upper-cased.
    """

    def __init__(
        self,
        breaker_factory: CircuitBreakerFactory,
        properties: ExchangeRateProperties | None = None,
        http: HttpClientProperties | None = None,
        *,
        clock: Clock = utc_now,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._properties = properties or ExchangeRateProperties()
        http = http or HttpClientProperties()
        super().__init__(
            self._properties.base_url,
            timeout=self._properties.timeout,
            retries=http.retries,
            retry_delay=http.retry_delay,
            transport=transport,
        )
        if self._properties.api_key:
            self.set_auth_token(self._properties.api_key)
        self._clock = clock
        self._base_currency = self._properties.base_currency.upper()
        self._breaker = breaker_factory.get_instance(BREAKER_NAME, self._properties.breaker_config())
        self._cache: PriceCache[ExchangeRate] = PriceCache(self._properties.cache_timeout, clock=clock)

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def base_currency(self) -> str:
        return self._base_currency

    async def get_exchange_rate(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        """Rate converting *from_currency* into *to_currency*, or None."""
        from_currency, to_currency = from_currency.upper(), to_currency.upper()
        key = _pair(from_currency, to_currency)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            rate = await self._breaker.execute(self._fetch_rate, from_currency, to_currency)
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("exchange_rate_fetch_failed", pair=key, error=exc.message, code=exc.code)
            return self._stale_rate(key)

        if rate is not None:
            self._cache.put(key, rate)
        return rate

    async def get_multiple_rates(
        self, from_currency: str, to_currencies: Iterable[str]
    ) -> dict[str, ExchangeRate | None]:
        """Rates from one currency to several, fetched with a single request.

        When the request fails each pair falls back to its own stale entry.
        """
        from_currency = from_currency.upper()
        targets = [currency.upper() for currency in to_currencies]

        try:
            quote = await self._breaker.execute(self._fetch_quote, f"/{from_currency}")
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("exchange_rates_fetch_failed", base=from_currency, error=exc.message)
            return {to: self._stale_rate(_pair(from_currency, to)) for to in targets}

        rates: dict[str, ExchangeRate | None] = {}
        for to in targets:
            value = quote.rates.get(to)
            if not value:
                rates[to] = None
                continue
            rate = ExchangeRate(from_currency, to, value, quote.last_updated, PROVIDER)
            self._cache.put(_pair(from_currency, to), rate)
            rates[to] = rate
        return rates

    async def convert_currency(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult | None:
        from_currency, to_currency = from_currency.upper(), to_currency.upper()
        if from_currency == to_currency:
            same = ExchangeRate(from_currency, to_currency, 1.0, self._clock(), "same-currency")
            return ConversionResult(converted_amount=amount, rate=same)

        rate = await self.get_exchange_rate(from_currency, to_currency)
        if rate is None:
            return None
        return ConversionResult(converted_amount=amount * rate.rate, rate=rate)

    async def get_supported_currencies(self) -> list[str]:
        """Currency codes known upstream, or a fixed list of common ones."""
        try:
            quote = await self._breaker.execute(self._fetch_quote, f"/{self._base_currency}")
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("supported_currencies_fetch_failed", error=exc.message)
            return list(FALLBACK_CURRENCIES)
        return sorted(quote.rates)

    async def get_historical_rate(self, from_currency: str, to_currency: str, on: date) -> ExchangeRate | None:
        """Best-effort historical rate; not cached, None on any failure."""
        from_currency, to_currency = from_currency.upper(), to_currency.upper()
        day = on.date() if isinstance(on, datetime) else on

        async def fetch() -> ExchangeRate | None:
            quote = await self._fetch_quote(
                f"/{day.isoformat()}",
                params={"base": from_currency, "symbols": to_currency},
            )
            value = quote.rates.get(to_currency)
            if not value:
                return None
            return ExchangeRate(from_currency, to_currency, value, quote.last_updated, PROVIDER)

        try:
            return await self._breaker.execute(fetch)
        except (ApiError, CircuitOpenError) as exc:
            logger.warning("historical_rate_fetch_failed", date=day.isoformat(), error=exc.message)
            return None

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def _fetch_quote(self, path: str, params: dict[str, str] | None = None) -> ExchangeRateQuote:
        response = await self.get(path, params=params)
        return self._parse(response.data)

    async def _fetch_rate(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        try:
            quote = await self._fetch_quote(f"/{from_currency}", params={"symbols": to_currency})
        except HttpStatusError as exc:
            if exc.status in (400, 422):
                return await self._fetch_rate_via_base(from_currency, to_currency)
            raise

        value = quote.rates.get(to_currency)
        if not value:
            return None
        return ExchangeRate(from_currency, to_currency, value, quote.last_updated, PROVIDER)

    async def _fetch_rate_via_base(self, from_currency: str, to_currency: str) -> ExchangeRate | None:
        """Cross rate computed from two base-currency rates."""
        from_base, to_base = await asyncio.gather(
            self._base_rate(from_currency),
            self._base_rate(to_currency),
        )
        if not from_base or not to_base:
            return None
        return ExchangeRate(from_currency, to_currency, to_base / from_base, self._clock(), "calculated-via-base")

    async def _base_rate(self, currency: str) -> float | None:
        if currency == self._base_currency:
            return 1.0
        try:
            quote = await self._fetch_quote(f"/{self._base_currency}", params={"symbols": currency})
        except ApiError as exc:
            logger.debug("base_rate_unavailable", currency=currency, error=exc.message)
            return None
        return quote.rates.get(currency)

    def _parse(self, payload: Any) -> ExchangeRateQuote:
        try:
            return ExchangeRateQuote.model_validate(payload)
        except ValidationError as exc:
            raise InvalidResponseError("Unexpected exchange rate payload", details=payload) from exc

    def _stale_rate(self, key: str) -> ExchangeRate | None:
        cached = self._cache.get(key, include_expired=True)
        if cached is None:
            return None
        logger.info("serving_stale_rate", pair=key, last_updated=cached.last_updated.isoformat())
        return dataclasses.replace(cached, stale=True)
