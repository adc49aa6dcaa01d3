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
"""Goldsmith Pricing: metal and exchange-rate clients with cache fallback."""

from goldsmith.pricing.cache import CacheStats, PriceCache
from goldsmith.pricing.exchange_client import ExchangeRateApiClient
from goldsmith.pricing.metal_client import DEFAULT_PRICES_PER_GRAM, SUPPORTED_METALS, MetalPriceApiClient
from goldsmith.pricing.properties import (
    ExchangeRateProperties,
    HttpClientProperties,
    MetalPriceProperties,
)
from goldsmith.pricing.service import PricingService
from goldsmith.pricing.types import (
    TROY_OUNCE_IN_GRAMS,
    ConversionResult,
    ExchangeRate,
    ExchangeRateQuote,
    MetalPrice,
    MetalPriceQuote,
)

__all__ = [
    "DEFAULT_PRICES_PER_GRAM",
    "SUPPORTED_METALS",
    "TROY_OUNCE_IN_GRAMS",
    "CacheStats",
    "ConversionResult",
    "ExchangeRate",
    "ExchangeRateApiClient",
    "ExchangeRateProperties",
    "ExchangeRateQuote",
    "HttpClientProperties",
    "MetalPrice",
    "MetalPriceApiClient",
    "MetalPriceProperties",
    "MetalPriceQuote",
    "PriceCache",
    "PricingService",
]
