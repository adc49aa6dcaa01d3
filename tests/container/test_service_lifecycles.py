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
"""Tests for registration and lifecycle semantics of the DI container."""

import pytest

from goldsmith.container import Container, ServiceLifecycle


class Repository:
    pass


class Service:
    def __init__(self, repo: Repository) -> None:
        self.repo = repo


class TestRegistration:
    def test_register_returns_container_for_chaining(self):
        container = Container()
        assert container.register_singleton(Repository).register_transient(Service) is container
        assert container.has(Repository)
        assert container.has(Service)
        assert not container.has("missing")

    def test_nothing_is_built_eagerly(self):
        built = []
        container = Container()
        container.register_singleton("thing", lambda: built.append(1) or object())
        assert built == []

    def test_later_registration_overwrites(self):
        container = Container()
        container.register_instance("greeting", "hello")
        container.register_instance("greeting", "hola")
        assert container.resolve("greeting") == "hola"

    def test_string_tokens_with_factories(self):
        container = Container()
        container.register_singleton("base-url", lambda: "https://api.test")
        container.register_transient("client", lambda url: {"url": url}, dependencies=["base-url"])

        assert container.resolve("client") == {"url": "https://api.test"}

    def test_register_with_explicit_lifecycle(self):
        container = Container()
        container.register(Repository, lifecycle=ServiceLifecycle.SINGLETON)
        assert container.resolve(Repository) is container.resolve(Repository)


class TestLifecycles:
    def test_singleton_identity(self):
        container = Container()
        container.register_singleton(Repository)
        assert container.resolve(Repository) is container.resolve(Repository)

    def test_transient_distinct(self):
        container = Container()
        container.register_transient(Repository)
        assert container.resolve(Repository) is not container.resolve(Repository)

    def test_scoped_outside_scope_behaves_as_transient(self):
        container = Container()
        container.register_scoped(Repository)
        assert container.resolve(Repository) is not container.resolve(Repository)

    def test_singleton_factory_runs_once(self):
        calls = []

        def make():
            calls.append(1)
            return Repository()

        container = Container()
        container.register_singleton(Repository, make)
        container.resolve(Repository)
        container.resolve(Repository)
        assert calls == [1]

    def test_instance_registration(self):
        repo = Repository()
        container = Container()
        container.register_instance(Repository, repo)
        assert container.resolve(Repository) is repo


class TestConstructorInjection:
    def test_type_hints_drive_injection(self):
        container = Container()
        container.register_singleton(Repository)
        container.register_transient(Service)

        service = container.resolve(Service)

        assert service.repo is container.resolve(Repository)

    def test_explicit_dependencies_win_over_hints(self):
        special = Repository()
        container = Container()
        container.register_singleton(Repository)
        container.register_instance("special-repo", special)
        container.register_transient(Service, dependencies=["special-repo"])

        assert container.resolve(Service).repo is special

    def test_optional_dependency_resolves_to_none(self):
        class WithOptional:
            def __init__(self, repo: Repository | None = None) -> None:
                self.repo = repo

        container = Container()
        container.register_transient(WithOptional)
        assert container.resolve(WithOptional).repo is None

    def test_defaults_kept_for_unresolvable_parameters(self):
        class WithDefaults:
            def __init__(self, repo: Repository, retries: int = 3) -> None:
                self.repo = repo
                self.retries = retries

        container = Container()
        container.register_singleton(Repository)
        container.register_transient(WithDefaults)

        assert container.resolve(WithDefaults).retries == 3

    @pytest.mark.asyncio
    async def test_concurrent_singleton_resolution_constructs_once(self):
        import asyncio

        built = []

        class Expensive:
            def __init__(self) -> None:
                built.append(self)

        container = Container()
        container.register_singleton(Expensive)

        async def resolve():
            await asyncio.sleep(0)
            return container.resolve(Expensive)

        results = await asyncio.gather(*(resolve() for _ in range(10)))

        assert len(built) == 1
        assert all(r is results[0] for r in results)
