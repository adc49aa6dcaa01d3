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
"""Container types and enums."""

from __future__ import annotations

from collections.abc import Hashable
from enum import Enum
from typing import Any

# A token is any hashable key: a class, a string, or a sentinel object.
Token = Hashable


class ServiceLifecycle(Enum):
    """How long a resolved instance lives."""

    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


def token_name(token: Any) -> str:
    """Human-readable name for a token, for error messages and logs."""
    if isinstance(token, str):
        return token
    name = getattr(token, "__qualname__", None) or getattr(token, "__name__", None)
    return str(name) if name else repr(token)
