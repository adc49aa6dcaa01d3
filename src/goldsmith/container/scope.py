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
"""Named resolution scopes."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from goldsmith.container.lifecycle import dispose_instance
from goldsmith.container.types import Token, token_name


class ServiceScope:
    """Caches scoped instances until the scope is disposed.

    A scope is created and tracked by :class:`~goldsmith.container.Container`;
    disposing it removes it from the container that created it.
    """

    def __init__(self, scope_id: str, on_dispose: Callable[[str], None] | None = None) -> None:
        self.id = scope_id
        self.instances: dict[Token, Any] = {}
        self._on_dispose = on_dispose
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def dispose(self) -> None:
        """Dispose every cached instance, then forget the scope. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        instances, self.instances = self.instances, {}
        for token, instance in instances.items():
            await dispose_instance(instance, token_name(token))
        if self._on_dispose is not None:
            self._on_dispose(self.id)

    def __repr__(self) -> str:
        return f"ServiceScope(id={self.id!r}, instances={len(self.instances)}, disposed={self._disposed})"
