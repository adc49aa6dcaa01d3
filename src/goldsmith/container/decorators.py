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
"""Decorators attaching injectable metadata to classes.

A decorated class registers itself on its first ``Container.resolve``,
so it does not need an explicit registration step:

    @singleton(inject=[CircuitBreakerFactory, "metal-properties"])
    class MetalClient: ...

    @injectable(lifecycle=ServiceLifecycle.SCOPED)
    class UnitOfWork: ...
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, TypeVar, overload

from goldsmith.container.types import ServiceLifecycle, Token

T = TypeVar("T", bound=type)

INJECTABLE_ATTR = "__goldsmith_injectable__"
LIFECYCLE_ATTR = "__goldsmith_lifecycle__"
INJECT_ATTR = "__goldsmith_inject__"


@overload
def injectable(cls: T) -> T: ...


@overload
def injectable(
    *,
    lifecycle: ServiceLifecycle = ServiceLifecycle.TRANSIENT,
    inject: Sequence[Token] | None = None,
) -> Callable[[T], T]: ...


def injectable(
    cls: T | None = None,
    *,
    lifecycle: ServiceLifecycle = ServiceLifecycle.TRANSIENT,
    inject: Sequence[Token] | None = None,
) -> T | Callable[[T], T]:
    """Mark a class as injectable.

    Args:
        lifecycle: Lifecycle used when the class auto-registers.
        inject: Ordered constructor dependency tokens. Overrides the
            ``__init__`` type hints when given.
    """

    def decorator(cls: T) -> T:
        setattr(cls, INJECTABLE_ATTR, True)
        setattr(cls, LIFECYCLE_ATTR, lifecycle)
        if inject is not None:
            setattr(cls, INJECT_ATTR, list(inject))
        return cls

    if cls is not None:
        return decorator(cls)
    return decorator


def _make_lifecycle_decorator(lifecycle: ServiceLifecycle) -> Callable[..., Any]:
    """Factory for the ``@singleton`` / ``@transient`` / ``@scoped`` shortcuts."""

    def lifecycle_decorator(
        cls: T | None = None,
        *,
        inject: Sequence[Token] | None = None,
    ) -> T | Callable[[T], T]:
        return injectable(cls, lifecycle=lifecycle, inject=inject)  # type: ignore[call-overload]

    lifecycle_decorator.__name__ = lifecycle.value
    lifecycle_decorator.__qualname__ = lifecycle.value
    return lifecycle_decorator


singleton = _make_lifecycle_decorator(ServiceLifecycle.SINGLETON)
transient = _make_lifecycle_decorator(ServiceLifecycle.TRANSIENT)
scoped = _make_lifecycle_decorator(ServiceLifecycle.SCOPED)


class Inject:
    """Used with typing.Annotated to inject a specific token.

    Usage::

        def __init__(self, rates: Annotated[RateSource, Inject("exchange-rates")]):
            ...
    """

    __slots__ = ("token",)

    def __init__(self, token: Token) -> None:
        self.token = token

    def __repr__(self) -> str:
        return f"Inject({self.token!r})"
