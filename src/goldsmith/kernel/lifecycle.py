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
"""Disposable protocol for resources owned by the DI container.

Anything holding connections, pools, or background tasks exposes
``dispose()``. The container calls it during scope and container teardown.
Both plain and coroutine implementations are accepted.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable


@runtime_checkable
class Disposable(Protocol):
    """A resource that must be released at the end of its lifetime."""

    def dispose(self) -> Awaitable[None] | None:
        """Release the resource.

        Called once when the owning scope or container is disposed.
        Best-effort: errors are logged by the caller and do not prevent
        the disposal of other instances.
        """
        ...
