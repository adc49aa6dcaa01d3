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
"""Dependency injection container."""

from goldsmith.container.container import Container
from goldsmith.container.decorators import Inject, injectable, scoped, singleton, transient
from goldsmith.container.exceptions import (
    CircularDependencyError,
    InvalidDescriptorError,
    ScopeError,
    ServiceNotRegisteredError,
    ServiceResolutionError,
)
from goldsmith.container.lifecycle import dispose_instance
from goldsmith.container.registry import ServiceDescriptor
from goldsmith.container.scope import ServiceScope
from goldsmith.container.types import ServiceLifecycle, Token

__all__ = [
    "CircularDependencyError",
    "Container",
    "Inject",
    "InvalidDescriptorError",
    "ScopeError",
    "ServiceDescriptor",
    "ServiceLifecycle",
    "ServiceNotRegisteredError",
    "ServiceResolutionError",
    "ServiceScope",
    "Token",
    "dispose_instance",
    "injectable",
    "scoped",
    "singleton",
    "transient",
]
