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
"""Core EDA types: domain events, handlers and subscriptions."""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of something that happened to an aggregate.

    ``data`` is exposed as a read-only mapping.
    """

    type: str
    aggregate_id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    version: int = 1
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


@runtime_checkable
class EventHandler(Protocol):
    """Object-style handler; plain callables are accepted as well."""

    def handle(self, event: DomainEvent) -> Awaitable[None] | None: ...


EventHandlerFunction = Callable[[DomainEvent], Awaitable[None] | None]

Handler = EventHandler | EventHandlerFunction

ErrorHandler = Callable[[Exception, DomainEvent], None]


@dataclass(frozen=True)
class EventSubscription:
    """Handle returned by ``EventBus.subscribe``."""

    id: str
    event_type: str
    handler: Handler
    _unsubscribe: Callable[[], bool] = field(repr=False, compare=False)

    def unsubscribe(self) -> bool:
        """Remove exactly this subscription; returns whether it was still active."""
        return self._unsubscribe()


@dataclass(frozen=True)
class EventBusStats:
    subscription_count: int
    event_type_count: int
    queue_size: int
    event_types: list[str] = field(default_factory=list)
