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
"""Typed configuration bound from the ``goldsmith.*`` config sections."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, Field

from goldsmith.client.circuit_breaker import CircuitBreakerConfig
from goldsmith.core.config import config_properties


@config_properties(prefix="goldsmith.http")
class HttpClientProperties(BaseModel):
    timeout: timedelta = timedelta(seconds=30)
    retries: int = Field(default=3, ge=0)
    retry_delay: timedelta = timedelta(seconds=1)


class _BreakerSettings(BaseModel):
    failure_threshold: int = Field(default=3, ge=1)
    reset_timeout: timedelta = timedelta(minutes=2)
    monitoring_period: timedelta = timedelta(minutes=10)

    def breaker_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            reset_timeout=self.reset_timeout,
            monitoring_period=self.monitoring_period,
        )


@config_properties(prefix="goldsmith.pricing.metal")
class MetalPriceProperties(_BreakerSettings):
    base_url: str = "https://api.metals.live/v1/spot"
    api_key: str | None = None
    timeout: timedelta = timedelta(seconds=15)
    rate_limit: timedelta = timedelta(seconds=1)
    cache_timeout: timedelta = timedelta(hours=1)


@config_properties(prefix="goldsmith.pricing.exchange")
class ExchangeRateProperties(_BreakerSettings):
    base_url: str = "https://api.exchangerate-api.com/v4/latest"
    api_key: str | None = None
    base_currency: str = "USD"
    timeout: timedelta = timedelta(seconds=10)
    cache_timeout: timedelta = timedelta(hours=1)
    reset_timeout: timedelta = timedelta(minutes=5)
    monitoring_period: timedelta = timedelta(minutes=15)
