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
"""Service registration metadata."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from goldsmith.container.types import ServiceLifecycle, Token


@dataclass
class ServiceDescriptor:
    """How to produce the service registered under ``token``.

    Exactly one of ``instance``, ``factory`` or ``constructor`` is used, in
    that order of precedence. ``dependencies`` lists the tokens resolved and
    passed positionally to the factory or constructor; when omitted, a
    constructor's dependencies come from ``@injectable(inject=[...])``
    metadata, then from its ``__init__`` type hints.
    """

    token: Token
    lifecycle: ServiceLifecycle = ServiceLifecycle.TRANSIENT
    factory: Callable[..., Any] | None = None
    constructor: type | None = None
    instance: Any = field(default=None, repr=False)
    dependencies: list[Token] | None = None
