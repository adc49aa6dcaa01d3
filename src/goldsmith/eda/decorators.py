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
"""Decorators for declarative event publishing and consumption."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from goldsmith.eda.bus import EventBus
from goldsmith.eda.types import DomainEvent

F = TypeVar("F", bound=Callable[..., Any])


def publish_result(
    bus: EventBus,
    condition: Callable[[DomainEvent], bool] | None = None,
) -> Callable[[F], F]:
    """Publish the ``DomainEvent`` returned by an async function.

    Non-event return values pass through untouched.

    Args:
        bus: Event bus instance.
        condition: Optional predicate on the event; publish only if True.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = await func(*args, **kwargs)

            if isinstance(result, DomainEvent) and (condition is None or condition(result)):
                await bus.publish(result)

            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def event_listener(
    bus: EventBus,
    event_types: Iterable[str],
) -> Callable[[F], F]:
    """Subscribe a function to each of *event_types*.

    Args:
        bus: Event bus instance.
        event_types: Event types to subscribe to.
    """

    def decorator(func: F) -> F:
        for event_type in event_types:
            bus.subscribe(event_type, func)
        return func

    return decorator
