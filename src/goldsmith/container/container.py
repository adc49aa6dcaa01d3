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
"""Dependency injection container with lifecycle management."""

from __future__ import annotations

import difflib
import inspect
import types
import typing
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

import structlog

from goldsmith.container.decorators import INJECT_ATTR, INJECTABLE_ATTR, LIFECYCLE_ATTR, Inject
from goldsmith.container.exceptions import (
    CircularDependencyError,
    InvalidDescriptorError,
    ScopeError,
    ServiceNotRegisteredError,
)
from goldsmith.container.lifecycle import dispose_instance
from goldsmith.container.registry import ServiceDescriptor
from goldsmith.container.scope import ServiceScope
from goldsmith.container.types import ServiceLifecycle, Token, token_name

T = TypeVar("T")

logger = structlog.get_logger("goldsmith.container")


class Container:
    """Registers services and resolves them according to their lifecycle.

    * ``SINGLETON``: one instance per container.
    * ``TRANSIENT``: a new instance per ``resolve``.
    * ``SCOPED``: one instance per active scope; a fresh instance on every
      ``resolve`` when no scope is active.

    Resolution is synchronous, so a singleton is constructed at most once
    even when many tasks resolve it concurrently. The active scope is
    tracked per asyncio task through a context variable.
    """

    def __init__(self) -> None:
        self._services: dict[Token, ServiceDescriptor] = {}
        self._singletons: dict[Token, Any] = {}
        self._scopes: dict[str, ServiceScope] = {}
        self._current_scope: ContextVar[ServiceScope | None] = ContextVar(
            f"goldsmith_scope_{id(self):x}", default=None
        )
        self._resolving: dict[Token, None] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        token: Token,
        *,
        lifecycle: ServiceLifecycle = ServiceLifecycle.TRANSIENT,
        factory: Callable[..., Any] | None = None,
        constructor: type | None = None,
        instance: Any = None,
        dependencies: list[Token] | None = None,
    ) -> Container:
        """Register (or replace) the descriptor for *token*.

        A class token registered without a factory, constructor or instance
        is its own constructor. Re-registering drops any cached singleton.
        """
        if factory is None and constructor is None and instance is None and isinstance(token, type):
            constructor = token
        descriptor = ServiceDescriptor(
            token=token,
            lifecycle=lifecycle,
            factory=factory,
            constructor=constructor,
            instance=instance,
            dependencies=list(dependencies) if dependencies is not None else None,
        )
        self._services[token] = descriptor
        self._singletons.pop(token, None)
        if instance is not None and lifecycle is ServiceLifecycle.SINGLETON:
            self._singletons[token] = instance
        return self

    def register_singleton(
        self,
        token: Token,
        factory: Callable[..., Any] | None = None,
        *,
        constructor: type | None = None,
        dependencies: list[Token] | None = None,
    ) -> Container:
        return self.register(
            token,
            lifecycle=ServiceLifecycle.SINGLETON,
            factory=factory,
            constructor=constructor,
            dependencies=dependencies,
        )

    def register_transient(
        self,
        token: Token,
        factory: Callable[..., Any] | None = None,
        *,
        constructor: type | None = None,
        dependencies: list[Token] | None = None,
    ) -> Container:
        return self.register(
            token,
            lifecycle=ServiceLifecycle.TRANSIENT,
            factory=factory,
            constructor=constructor,
            dependencies=dependencies,
        )

    def register_scoped(
        self,
        token: Token,
        factory: Callable[..., Any] | None = None,
        *,
        constructor: type | None = None,
        dependencies: list[Token] | None = None,
    ) -> Container:
        return self.register(
            token,
            lifecycle=ServiceLifecycle.SCOPED,
            factory=factory,
            constructor=constructor,
            dependencies=dependencies,
        )

    def register_instance(self, token: Token, instance: Any) -> Container:
        """Register a pre-built instance; it behaves as a singleton."""
        return self.register(token, lifecycle=ServiceLifecycle.SINGLETON, instance=instance)

    def has(self, token: Token) -> bool:
        return token in self._services

    @property
    def tokens(self) -> list[Token]:
        return list(self._services)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, token: type[T] | Token) -> T | Any:
        """Resolve a service by token.

        Unregistered classes decorated with ``@injectable`` (or one of its
        lifecycle shortcuts) register themselves on first resolve.

        Raises:
            ServiceNotRegisteredError: Nothing is registered for *token*.
            CircularDependencyError: *token* transitively depends on itself.
            InvalidDescriptorError: The descriptor cannot produce an instance.
        """
        descriptor = self._services.get(token)
        if descriptor is None:
            descriptor = self._auto_register(token)
        return self._materialize(descriptor)

    def _auto_register(self, token: Token) -> ServiceDescriptor:
        if isinstance(token, type) and token.__dict__.get(INJECTABLE_ATTR, False):
            self.register(
                token,
                lifecycle=token.__dict__.get(LIFECYCLE_ATTR, ServiceLifecycle.TRANSIENT),
                constructor=token,
            )
            logger.debug("service_auto_registered", token=token_name(token))
            return self._services[token]
        raise ServiceNotRegisteredError(token, suggestions=self._suggest(token))

    def _materialize(self, descriptor: ServiceDescriptor) -> Any:
        token = descriptor.token

        if descriptor.lifecycle is ServiceLifecycle.SINGLETON:
            if token in self._singletons:
                return self._singletons[token]
            instance = self._create_instance(descriptor)
            self._singletons[token] = instance
            return instance

        if descriptor.lifecycle is ServiceLifecycle.SCOPED:
            scope = self._current_scope.get()
            if scope is None:
                return self._create_instance(descriptor)
            if scope.disposed:
                raise ScopeError(f"Scope '{scope.id}' has been disposed", code="SCOPE_DISPOSED")
            if token not in scope.instances:
                scope.instances[token] = self._create_instance(descriptor)
            return scope.instances[token]

        return self._create_instance(descriptor)

    def _create_instance(self, descriptor: ServiceDescriptor) -> Any:
        if descriptor.instance is not None:
            return descriptor.instance

        token = descriptor.token
        if token in self._resolving:
            raise CircularDependencyError(chain=list(self._resolving), current=token)

        self._resolving[token] = None
        try:
            if descriptor.factory is not None:
                args = self._resolve_dependencies(token, descriptor.dependencies or [])
                return descriptor.factory(*args)
            if descriptor.constructor is not None:
                return self._construct(token, descriptor.constructor, descriptor.dependencies)
            raise InvalidDescriptorError(token)
        finally:
            self._resolving.pop(token, None)

    def _construct(self, token: Token, cls: type, dependencies: list[Token] | None) -> Any:
        """Instantiate *cls*, resolving its constructor arguments.

        Explicit descriptor dependencies win, then ``inject`` metadata, then
        ``__init__`` type hints. Hinted parameters that cannot be resolved
        fall back to their default value when they declare one.
        """
        if dependencies is None:
            dependencies = cls.__dict__.get(INJECT_ATTR)
        if dependencies is not None:
            return cls(*self._resolve_dependencies(token, dependencies))

        init = cls.__init__
        if init is object.__init__:
            return cls()

        hints = typing.get_type_hints(init, include_extras=True)
        hints.pop("return", None)
        sig = inspect.signature(init)

        kwargs: dict[str, Any] = {}
        for name, param in sig.parameters.items():
            if name == "self" or param.kind in (
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                continue
            has_default = param.default is not inspect.Parameter.empty
            hint = hints.get(name)
            if hint is None:
                if has_default:
                    continue
                raise ServiceNotRegisteredError(
                    None,
                    required_by=f"{cls.__qualname__}.__init__()",
                    parameter=f"{name} (no type hint)",
                )
            try:
                kwargs[name] = self._resolve_hint(hint)
            except ServiceNotRegisteredError as exc:
                # Only the direct parameter is optional; deeper failures propagate.
                if exc.required_by is not None:
                    raise
                if has_default:
                    continue
                raise ServiceNotRegisteredError(
                    exc.token,
                    required_by=f"{cls.__qualname__}.__init__()",
                    parameter=f"{name}: {token_name(hint)}",
                    suggestions=exc.suggestions,
                ) from None
        return cls(**kwargs)

    def _resolve_dependencies(self, consumer: Token, dependencies: list[Token]) -> list[Any]:
        """Resolve positional dependencies, naming *consumer* on a missing token."""
        args: list[Any] = []
        for index, dep in enumerate(dependencies):
            try:
                args.append(self.resolve(dep))
            except ServiceNotRegisteredError as exc:
                if exc.required_by is not None:
                    raise
                raise ServiceNotRegisteredError(
                    exc.token,
                    required_by=token_name(consumer),
                    parameter=f"dependencies[{index}]",
                    suggestions=exc.suggestions,
                ) from None
        return args

    def _resolve_hint(self, hint: Any) -> Any:
        origin = get_origin(hint)

        if origin is Annotated:
            base, *metadata = get_args(hint)
            for meta in metadata:
                if isinstance(meta, Inject):
                    return self.resolve(meta.token)
            return self._resolve_hint(base)

        if origin is Union or isinstance(hint, types.UnionType):
            args = get_args(hint)
            non_none = [a for a in args if a is not type(None)]
            if len(non_none) == 1 and len(non_none) < len(args):
                try:
                    return self.resolve(non_none[0])
                except ServiceNotRegisteredError as exc:
                    if exc.required_by is not None:
                        raise
                    return None
            raise ServiceNotRegisteredError(hint)

        if not isinstance(hint, type):
            raise ServiceNotRegisteredError(hint)
        return self.resolve(hint)

    def _suggest(self, token: Token) -> list[str]:
        names = [token_name(t) for t in self._services]
        return difflib.get_close_matches(token_name(token), names, n=3, cutoff=0.6)

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def create_scope(self, scope_id: str | None = None) -> ServiceScope:
        """Create a named scope, or return the live scope with that id."""
        if scope_id is not None and scope_id in self._scopes:
            return self._scopes[scope_id]
        scope = ServiceScope(scope_id or uuid.uuid4().hex, on_dispose=self._forget_scope)
        self._scopes[scope.id] = scope
        return scope

    def get_scope(self, scope_id: str) -> ServiceScope | None:
        return self._scopes.get(scope_id)

    @property
    def current_scope(self) -> ServiceScope | None:
        return self._current_scope.get()

    async def with_scope(self, scope_id: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run *fn* with the scope *scope_id* active, creating it if needed.

        The previously active scope is restored afterwards, even on error.
        The scope itself stays alive until disposed.
        """
        scope = self.create_scope(scope_id)
        reset_token = self._current_scope.set(scope)
        try:
            return await fn()
        finally:
            self._current_scope.reset(reset_token)

    def _forget_scope(self, scope_id: str) -> None:
        self._scopes.pop(scope_id, None)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def dispose(self) -> None:
        """Dispose every scope and every singleton, then clear all state.

        Instances registered under several tokens are disposed once.
        Calling ``dispose`` again is a no-op.
        """
        for scope in list(self._scopes.values()):
            await scope.dispose()

        seen: set[int] = set()
        for token, instance in list(self._singletons.items()):
            if id(instance) in seen:
                continue
            seen.add(id(instance))
            await dispose_instance(instance, token_name(token))

        count = len(self._singletons)
        self._singletons.clear()
        self._scopes.clear()
        self._services.clear()
        if count:
            logger.debug("container_disposed", singletons=count)
