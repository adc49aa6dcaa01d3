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
"""Pricing calculations on top of the price clients."""

from __future__ import annotations

import dataclasses

import structlog

from goldsmith.kernel.exceptions import PriceUnavailableException
from goldsmith.pricing.exchange_client import ExchangeRateApiClient
from goldsmith.pricing.metal_client import MetalPriceApiClient
from goldsmith.pricing.types import MetalPrice

logger = structlog.get_logger("goldsmith.pricing")


class PricingService:
    """Material pricing for quotations and receipts."""

    def __init__(self, metals: MetalPriceApiClient, rates: ExchangeRateApiClient) -> None:
        self._metals = metals
        self._rates = rates

    async def get_metal_price(self, metal: str) -> MetalPrice | None:
        """Live, cached, stale or default price, in that order of preference."""
        return await self._metals.get_price_or_default(metal)

    async def calculate_material_cost(self, metal: str, weight_grams: float, karat: int | None = None) -> float:
        """Cost of *weight_grams* of *metal*; gold is scaled by ``karat / 24``.

        Raises:
            PriceUnavailableException: No price of any kind exists for *metal*.
            ValueError: *karat* is outside 1..24.
        """
        price = await self.get_metal_price(metal)
        if price is None:
            raise PriceUnavailableException(metal)

        purity = 1.0
        if karat is not None and price.metal == "gold":
            if not 0 < karat <= 24:
                raise ValueError(f"Karat must be between 1 and 24, got {karat}")
            purity = karat / 24

        cost = price.price_per_gram * weight_grams * purity
        logger.debug(
            "material_cost_calculated",
            metal=price.metal,
            weight_grams=weight_grams,
            karat=karat,
            cost=cost,
            stale=price.stale,
        )
        return cost

    async def get_metal_price_in(self, metal: str, currency: str) -> MetalPrice | None:
        """Metal price converted into *currency*, or None if either lookup fails."""
        price = await self.get_metal_price(metal)
        if price is None:
            return None

        currency = currency.upper()
        if currency == price.currency:
            return price

        conversion = await self._rates.convert_currency(price.price_per_gram, price.currency, currency)
        if conversion is None:
            logger.warning("metal_price_conversion_failed", metal=price.metal, currency=currency)
            return None

        return dataclasses.replace(
            price,
            price_per_gram=conversion.converted_amount,
            price_per_ounce=price.price_per_ounce * conversion.rate.rate,
            currency=currency,
            stale=price.stale or conversion.rate.stale,
        )
