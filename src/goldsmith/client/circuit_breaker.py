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
"""Circuit breaker pattern for resilient remote calls."""

from __future__ import annotations

from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

import structlog

from goldsmith.kernel.exceptions import CircuitOpenError
from goldsmith.kernel.types import Clock, utc_now

logger = structlog.get_logger("goldsmith.client.circuit_breaker")

T = TypeVar("T")

# Rolling-window trip rule: at least this many samples, at least this failure rate.
MIN_WINDOW_SAMPLES = 10
FAILURE_RATE_THRESHOLD = 0.5


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Immutable breaker configuration.

    Args:
        failure_threshold: Failures since the last close that open the circuit.
        reset_timeout: Cooldown before an open circuit admits a probe call.
        monitoring_period: Width of the rolling failure-rate window.
    """

    failure_threshold: int = 5
    reset_timeout: timedelta = timedelta(seconds=60)
    monitoring_period: timedelta = timedelta(seconds=300)


@dataclass(frozen=True)
class CircuitBreakerStats:
    """Read-only snapshot of a breaker."""

    state: CircuitState
    failure_count: int
    success_count: int
    total_requests: int
    last_failure_time: datetime | None = None
    next_retry_time: datetime | None = None


class CircuitBreaker:
    """Circuit breaker that prevents cascading failures.

    The circuit opens when the failure count reaches ``failure_threshold``,
    or when at least half of the calls recorded inside ``monitoring_period``
    failed (given a minimum sample size). An open circuit rejects calls with
    :class:`CircuitOpenError` until ``reset_timeout`` has elapsed, then admits
    calls in the half-open state: a success closes the circuit, a failure
    re-evaluates the trip rules.

    Instances are created by :class:`CircuitBreakerFactory`.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        name: str = "",
        clock: Clock = utc_now,
    ) -> None:
        self.name = name
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._total_requests = 0
        self._last_failure_time: datetime | None = None
        self._next_retry_time: datetime | None = None
        self._window: deque[tuple[bool, datetime]] = deque()

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_rate(self) -> float:
        """Failure ratio over the monitoring window (0.0 when empty)."""
        self._prune_window()
        if not self._window:
            return 0.0
        failures = sum(1 for success, _ in self._window if not success)
        return failures / len(self._window)

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run *func* through the breaker.

        Raises:
            CircuitOpenError: The circuit is open and the cooldown has not
                elapsed. *func* is not invoked and no failure is recorded.
        """
        if self._state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self._state = CircuitState.HALF_OPEN
                logger.info("circuit_half_open", breaker=self.name)
            else:
                raise CircuitOpenError(self.name, self._next_retry_time)

        self._total_requests += 1

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def get_stats(self) -> CircuitBreakerStats:
        """Snapshot of counters and state; no side effects."""
        return CircuitBreakerStats(
            state=self._state,
            failure_count=self._failure_count,
            success_count=self._success_count,
            total_requests=self._total_requests,
            last_failure_time=self._last_failure_time,
            next_retry_time=self._next_retry_time,
        )

    def reset(self) -> None:
        """Hard reset to closed with all counters zeroed."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._total_requests = 0
        self._last_failure_time = None
        self._next_retry_time = None
        self._window.clear()

    def force_open(self) -> None:
        """Open the circuit immediately, starting a fresh cooldown."""
        now = self._clock()
        self._state = CircuitState.OPEN
        self._last_failure_time = now
        self._next_retry_time = now + self._config.reset_timeout
        logger.warning("circuit_forced_open", breaker=self.name)

    def force_closed(self) -> None:
        """Close the circuit immediately and clear the failure count."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._next_retry_time = None
        logger.info("circuit_forced_closed", breaker=self.name)

    def _on_success(self) -> None:
        self._success_count += 1
        self._record(True)

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._next_retry_time = None
            logger.info("circuit_closed", breaker=self.name)

    def _on_failure(self) -> None:
        now = self._clock()
        self._failure_count += 1
        self._last_failure_time = now
        self._record(False)

        if self._should_open():
            self._state = CircuitState.OPEN
            self._next_retry_time = now + self._config.reset_timeout
            logger.warning(
                "circuit_opened",
                breaker=self.name,
                failure_count=self._failure_count,
                next_retry_time=self._next_retry_time.isoformat(),
            )

    def _should_open(self) -> bool:
        if self._failure_count >= self._config.failure_threshold:
            return True
        rate = self.failure_rate
        return len(self._window) >= MIN_WINDOW_SAMPLES and rate >= FAILURE_RATE_THRESHOLD

    def _should_attempt_reset(self) -> bool:
        return self._next_retry_time is not None and self._clock() >= self._next_retry_time

    def _record(self, success: bool) -> None:
        self._window.append((success, self._clock()))
        self._prune_window()

    def _prune_window(self) -> None:
        cutoff = self._clock() - self._config.monitoring_period
        while self._window and self._window[0][1] <= cutoff:
            self._window.popleft()


class CircuitBreakerFactory:
    """Registry owning one :class:`CircuitBreaker` per name.

    ``get_instance`` creates a breaker lazily on first request and returns
    the same instance afterwards. The configuration only applies at
    creation; a different configuration passed later for an existing name
    is ignored (and logged).
    """

    DEFAULT_CONFIG = CircuitBreakerConfig()

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._instances: dict[str, CircuitBreaker] = {}

    def get_instance(self, name: str, config: CircuitBreakerConfig | None = None) -> CircuitBreaker:
        """Get or create the breaker registered under *name*."""
        breaker = self._instances.get(name)
        if breaker is None:
            breaker = CircuitBreaker(config or self.DEFAULT_CONFIG, name=name, clock=self._clock)
            self._instances[name] = breaker
        elif config is not None and config != breaker.config:
            logger.warning(
                "circuit_breaker_config_ignored",
                breaker=name,
                requested=repr(config),
                active=repr(breaker.config),
            )
        return breaker

    def remove_instance(self, name: str) -> bool:
        """Forget the breaker for *name*; returns whether it existed."""
        return self._instances.pop(name, None) is not None

    def get_all_instances(self) -> dict[str, CircuitBreaker]:
        return dict(self._instances)

    def get_all_stats(self) -> dict[str, CircuitBreakerStats]:
        return {name: breaker.get_stats() for name, breaker in self._instances.items()}
