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
"""Tests for named scopes and scoped services."""

import asyncio

import pytest

from goldsmith.container import Container, ScopeError


class UnitOfWork:
    def __init__(self) -> None:
        self.disposed = False

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def container() -> Container:
    c = Container()
    c.register_scoped(UnitOfWork)
    return c


class TestScopes:
    @pytest.mark.asyncio
    async def test_same_instance_within_scope(self, container):
        async def work():
            return container.resolve(UnitOfWork), container.resolve(UnitOfWork)

        a, b = await container.with_scope("request-1", work)
        assert a is b

    @pytest.mark.asyncio
    async def test_distinct_instances_across_scopes(self, container):
        async def work():
            return container.resolve(UnitOfWork)

        first = await container.with_scope("request-1", work)
        second = await container.with_scope("request-2", work)
        again = await container.with_scope("request-1", work)

        assert first is not second
        assert again is first

    @pytest.mark.asyncio
    async def test_previous_scope_restored_after_nesting(self, container):
        seen = []

        async def inner():
            seen.append(container.current_scope.id)

        async def outer():
            seen.append(container.current_scope.id)
            await container.with_scope("inner", inner)
            seen.append(container.current_scope.id)

        await container.with_scope("outer", outer)

        assert seen == ["outer", "inner", "outer"]
        assert container.current_scope is None

    @pytest.mark.asyncio
    async def test_scope_restored_on_error(self, container):
        async def boom():
            raise RuntimeError("fail")

        with pytest.raises(RuntimeError):
            await container.with_scope("s", boom)
        assert container.current_scope is None

    @pytest.mark.asyncio
    async def test_concurrent_tasks_do_not_share_scope(self, container):
        async def work(name):
            async def body():
                await asyncio.sleep(0)
                return container.current_scope.id, container.resolve(UnitOfWork)

            return await container.with_scope(name, body)

        (id_a, uow_a), (id_b, uow_b) = await asyncio.gather(work("a"), work("b"))

        assert (id_a, id_b) == ("a", "b")
        assert uow_a is not uow_b

    def test_create_scope_reuses_live_id(self, container):
        scope = container.create_scope("job-7")
        assert container.create_scope("job-7") is scope
        assert container.get_scope("job-7") is scope
        assert container.create_scope().id != scope.id

    @pytest.mark.asyncio
    async def test_dispose_scope_tears_down_instances(self, container):
        async def work():
            return container.resolve(UnitOfWork)

        uow = await container.with_scope("request-1", work)
        scope = container.get_scope("request-1")
        await scope.dispose()

        assert uow.disposed is True
        assert container.get_scope("request-1") is None

    @pytest.mark.asyncio
    async def test_resolving_in_disposed_current_scope_fails(self, container):
        async def work():
            await container.current_scope.dispose()
            return container.resolve(UnitOfWork)

        with pytest.raises(ScopeError):
            await container.with_scope("short-lived", work)
