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
"""Unified exception hierarchy for Goldsmith.

All Goldsmith exceptions inherit from GoldsmithException so callers can
handle every library failure in one place, or catch a specific category.

Categories:
- BusinessException: a pricing rule cannot be satisfied
- InfrastructureException: circuit breakers, DI resolution, local runtime
- ExternalServiceException: upstream metal/exchange-rate APIs
"""

from __future__ import annotations

from datetime import datetime

# =============================================================================
# Base Exception
# =============================================================================


class GoldsmithException(Exception):
    """Base exception for all Goldsmith errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CIRCUIT_OPEN").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(GoldsmithException):
    """Domain rule violations and business logic errors."""


class PriceUnavailableException(BusinessException):
    """No live, cached, or default price exists for a calculation."""

    def __init__(self, metal: str) -> None:
        super().__init__(
            f"Price not available for metal: {metal}",
            code="PRICE_UNAVAILABLE",
            context={"metal": metal},
        )
        self.metal = metal


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(GoldsmithException):
    """Infrastructure failures: remote calls, breakers, service wiring."""


class CircuitOpenError(InfrastructureException):
    """Circuit breaker is open; the protected operation was not attempted."""

    def __init__(self, name: str = "", next_retry_time: datetime | None = None) -> None:
        label = f"'{name}' " if name else ""
        super().__init__(
            f"Circuit breaker {label}is open - request rejected",
            code="CIRCUIT_OPEN",
            context={"breaker": name, "next_retry_time": next_retry_time},
        )
        self.name = name
        self.next_retry_time = next_retry_time


# =============================================================================
# External Service Exceptions
# =============================================================================


class ExternalServiceException(InfrastructureException):
    """Failure communicating with an external or third-party service."""
