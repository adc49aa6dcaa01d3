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
"""Price value types and upstream payload models."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from datetime import UTC, datetime, time
from typing import Literal

from pydantic import BaseModel, Field

TROY_OUNCE_IN_GRAMS = 31.1035


@dataclass(frozen=True)
class MetalPrice:
    """Spot price of a metal, in both per-ounce and per-gram form.

    ``stale`` is set when the value was served from an expired cache entry
    or from the built-in default table (``provider == "default"``).
    """

    metal: str
    price_per_ounce: float
    price_per_gram: float
    currency: str
    last_updated: datetime
    provider: str = "metals-live"
    stale: bool = False


@dataclass(frozen=True)
class ExchangeRate:
    from_currency: str
    to_currency: str
    rate: float
    last_updated: datetime
    provider: str = "exchange-rate-api"
    stale: bool = False


@dataclass(frozen=True)
class ConversionResult:
    converted_amount: float
    rate: ExchangeRate


class MetalPriceQuote(BaseModel):
    """Metal price payload as reported by the upstream API."""

    metal: str
    price_usd: float = Field(gt=0)
    currency: str = "USD"
    timestamp: datetime
    unit: Literal["oz", "g"] = "oz"

    def to_metal_price(self, provider: str = "metals-live") -> MetalPrice:
        if self.unit == "oz":
            per_ounce = self.price_usd
            per_gram = self.price_usd / TROY_OUNCE_IN_GRAMS
        else:
            per_ounce = self.price_usd * TROY_OUNCE_IN_GRAMS
            per_gram = self.price_usd
        return MetalPrice(
            metal=self.metal.lower(),
            price_per_ounce=per_ounce,
            price_per_gram=per_gram,
            currency=self.currency.upper(),
            last_updated=self.timestamp,
            provider=provider,
        )


class ExchangeRateQuote(BaseModel):
    """Rates table as reported by the upstream API."""

    base: str
    date: dt.date
    rates: dict[str, float] = Field(default_factory=dict)

    @property
    def last_updated(self) -> datetime:
        return datetime.combine(self.date, time(), tzinfo=UTC)
