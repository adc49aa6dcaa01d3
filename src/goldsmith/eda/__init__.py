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
"""Goldsmith EDA: in-process domain event bus."""

from goldsmith.eda.bus import EventBus, log_event_error
from goldsmith.eda.decorators import event_listener, publish_result
from goldsmith.eda.events import EventTypes
from goldsmith.eda.handlers import DEFAULT_HANDLERS, register_default_handlers
from goldsmith.eda.properties import EventBusProperties
from goldsmith.eda.types import (
    DomainEvent,
    ErrorHandler,
    EventBusStats,
    EventHandler,
    EventHandlerFunction,
    EventSubscription,
)

__all__ = [
    "DEFAULT_HANDLERS",
    "DomainEvent",
    "ErrorHandler",
    "EventBus",
    "EventBusProperties",
    "EventBusStats",
    "EventHandler",
    "EventHandlerFunction",
    "EventSubscription",
    "EventTypes",
    "event_listener",
    "log_event_error",
    "publish_result",
    "register_default_handlers",
]
