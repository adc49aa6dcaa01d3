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
"""Retry with linear backoff for transient HTTP failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import TypeVar

import structlog

from goldsmith.client.errors import ApiError, ApiTimeoutError, HttpStatusError, NetworkError

logger = structlog.get_logger("goldsmith.client.retry")

T = TypeVar("T")

RetryCondition = Callable[[ApiError], bool]


def is_transient(error: ApiError) -> bool:
    """Default retry condition: no response, a timeout, or a 5xx status.

    4xx responses and unparseable payloads are never retried.
    """
    if isinstance(error, (NetworkError, ApiTimeoutError)):
        return True
    return isinstance(error, HttpStatusError) and error.is_server_error


class RetryPolicy:
    """Retry policy with linear backoff.

    The operation runs once, then up to ``retries`` more times while
    ``retry_condition`` accepts the error. Attempt *n* (0-based) waits
    ``retry_delay * (n + 1)`` before the next try.

    Args:
        retries: Additional attempts after the first.
        retry_delay: Backoff unit.
        retry_condition: Predicate deciding whether an error is retryable.
    """

    def __init__(
        self,
        retries: int = 3,
        retry_delay: timedelta = timedelta(seconds=1),
        retry_condition: RetryCondition = is_transient,
    ) -> None:
        self.retries = retries
        self.retry_delay = retry_delay
        self.retry_condition = retry_condition

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed *attempt* (0-based)."""
        return self.retry_delay.total_seconds() * (attempt + 1)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Execute *operation* with retry logic, re-raising the last error."""
        last_error: ApiError | None = None

        for attempt in range(self.retries + 1):
            try:
                return await operation()
            except ApiError as exc:
                last_error = exc
                if attempt == self.retries or not self.retry_condition(exc):
                    break
                delay = self.delay_for(attempt)
                logger.debug(
                    "request_retry_scheduled",
                    attempt=attempt + 1,
                    retries=self.retries,
                    delay=delay,
                    error=exc.message,
                )
                await asyncio.sleep(delay)

        assert last_error is not None
        raise last_error
