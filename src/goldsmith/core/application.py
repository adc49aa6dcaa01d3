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
"""Composition root wiring configuration, clients and the event bus."""

from __future__ import annotations

import functools
from types import TracebackType
from typing import Any, TypeVar

import httpx

from goldsmith.client.circuit_breaker import CircuitBreakerFactory
from goldsmith.container import Container, Token
from goldsmith.core.config import Config
from goldsmith.eda import EventBus, EventBusProperties, register_default_handlers
from goldsmith.kernel.exceptions import InfrastructureException
from goldsmith.kernel.types import Clock, utc_now
from goldsmith.logging.structlog_adapter import StructlogAdapter
from goldsmith.pricing import (
    ExchangeRateApiClient,
    ExchangeRateProperties,
    HttpClientProperties,
    MetalPriceApiClient,
    MetalPriceProperties,
    PricingService,
)

T = TypeVar("T")

_PROPERTIES = (HttpClientProperties, MetalPriceProperties, ExchangeRateProperties, EventBusProperties)


class ServiceContainer:
    """Owns the process-wide services and their lifecycle.

    Nothing is built until :meth:`init`; :meth:`dispose` tears everything
    down again. Several independent instances can coexist, e.g. one per test.

        services = ServiceContainer(Config.from_sources("."))
        services.init()
        pricing = services.resolve(PricingService)
        ...
        await services.dispose()

    Args:
        config: Configuration; package defaults when omitted.
        clock: Time source shared by breakers and price caches.
        transport: httpx transport handed to both price clients.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        clock: Clock = utc_now,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or Config.defaults()
        self._clock = clock
        self._transport = transport
        self._container = Container()
        self._logging = StructlogAdapter()
        self._logger = self._logging.get_logger("goldsmith.core")
        self._initialized = False
        self._disposed = False

    @property
    def config(self) -> Config:
        return self._config

    @property
    def container(self) -> Container:
        return self._container

    @property
    def event_bus(self) -> EventBus:
        return self.resolve(EventBus)

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self) -> ServiceContainer:
        """Configure logging and register every core service.

        Raises:
            InfrastructureException: Already initialized, or disposed.
        """
        if self._initialized or self._disposed:
            raise InfrastructureException(
                "ServiceContainer is already initialized" if self._initialized else "ServiceContainer is disposed",
                code="INVALID_LIFECYCLE",
            )

        self._logging.configure(self._config)
        container = self._container

        container.register_instance(Config, self._config)
        container.register_instance(CircuitBreakerFactory, CircuitBreakerFactory(clock=self._clock))
        for properties_cls in _PROPERTIES:
            container.register_singleton(properties_cls, functools.partial(self._config.bind, properties_cls))

        container.register_singleton(EventBus)
        container.register_singleton(
            MetalPriceApiClient,
            functools.partial(MetalPriceApiClient, clock=self._clock, transport=self._transport),
            dependencies=[CircuitBreakerFactory, MetalPriceProperties, HttpClientProperties],
        )
        container.register_singleton(
            ExchangeRateApiClient,
            functools.partial(ExchangeRateApiClient, clock=self._clock, transport=self._transport),
            dependencies=[CircuitBreakerFactory, ExchangeRateProperties, HttpClientProperties],
        )
        container.register_singleton(PricingService)

        self._initialized = True
        register_default_handlers(self.event_bus)

        self._logger.info(
            "service_container_initialized",
            services=len(container.tokens),
            config_sources=self._config.loaded_sources,
        )
        return self

    def resolve(self, token: type[T] | Token) -> T | Any:
        """Resolve *token* from the underlying container."""
        if not self._initialized:
            raise InfrastructureException("ServiceContainer is not initialized", code="INVALID_LIFECYCLE")
        return self._container.resolve(token)

    async def dispose(self) -> None:
        """Dispose every managed service. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        was_initialized, self._initialized = self._initialized, False
        await self._container.dispose()
        if was_initialized:
            self._logger.info("service_container_disposed")

    async def __aenter__(self) -> ServiceContainer:
        return self.init()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()
