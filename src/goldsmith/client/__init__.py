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
"""Goldsmith Client: resilient HTTP client with circuit breaker and retry."""

from goldsmith.client.base import ApiResponse, BaseApiClient
from goldsmith.client.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerFactory,
    CircuitBreakerStats,
    CircuitState,
)
from goldsmith.client.errors import (
    ApiError,
    ApiTimeoutError,
    HttpStatusError,
    InvalidResponseError,
    NetworkError,
)
from goldsmith.client.retry import RetryPolicy, is_transient

__all__ = [
    "ApiError",
    "ApiResponse",
    "ApiTimeoutError",
    "BaseApiClient",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerFactory",
    "CircuitBreakerStats",
    "CircuitState",
    "HttpStatusError",
    "InvalidResponseError",
    "NetworkError",
    "RetryPolicy",
    "is_transient",
]
