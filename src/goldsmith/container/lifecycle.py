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
"""Teardown helpers for container-managed instances."""

from __future__ import annotations

import inspect
from typing import Any

import structlog

from goldsmith.kernel.lifecycle import Disposable

logger = structlog.get_logger("goldsmith.container")


async def dispose_instance(instance: Any, label: str = "") -> None:
    """Call ``instance.dispose()`` if present, awaiting it when needed.

    Failures are logged and do not propagate, so one broken resource
    cannot block the teardown of the others.
    """
    if not isinstance(instance, Disposable):
        return
    try:
        result = instance.dispose()
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("dispose_failed", service=label or type(instance).__qualname__)
