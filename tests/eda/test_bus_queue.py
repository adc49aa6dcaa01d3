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
"""Tests for queued delivery, retry and ordering on the EventBus."""

import asyncio
from datetime import timedelta

import pytest

from goldsmith.eda import DomainEvent, EventBus, EventBusProperties


def event(event_type: str, name: str) -> DomainEvent:
    return DomainEvent(type=event_type, aggregate_id=name, data={"name": name})


def make_bus(errors: list, max_retries: int = 3) -> EventBus:
    return EventBus(
        EventBusProperties(max_retries=max_retries, retry_delay=timedelta(0)),
        error_handler=lambda error, evt: errors.append((error, evt)),
    )


class TestQueuedPublish:
    @pytest.mark.asyncio
    async def test_publish_does_not_wait_for_handlers(self):
        bus = make_bus([])
        received = []
        bus.subscribe("x", lambda evt: received.append(evt.data["name"]))

        await bus.publish(event("x", "A"))
        assert received == []

        await bus.flush()
        assert received == ["A"]

    @pytest.mark.asyncio
    async def test_events_drain_in_fifo_order(self):
        bus = make_bus([])
        received = []
        bus.subscribe("x", lambda evt: received.append(evt.data["name"]))

        for name in "ABC":
            await bus.publish(event("x", name))
        await bus.flush()

        assert received == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_retried_event_is_delivered_before_backlog(self):
        bus = make_bus([])
        log = []
        failures = {"A": 1}

        async def handler(evt):
            name = evt.data["name"]
            if failures.get(name, 0) > 0:
                failures[name] -= 1
                log.append(f"{name}-failed")
                raise RuntimeError("transient")
            log.append(name)

        bus.subscribe("x", handler)
        await bus.publish(event("x", "A"))
        await bus.publish(event("x", "B"))
        await bus.flush()

        assert log == ["A-failed", "A", "B"]

    @pytest.mark.asyncio
    async def test_sequential_delivery_between_events(self):
        bus = make_bus([])
        log = []

        async def slow(evt):
            log.append(f"start-{evt.data['name']}")
            await asyncio.sleep(0.01)
            log.append(f"end-{evt.data['name']}")

        bus.subscribe("x", slow)
        await bus.publish(event("x", "A"))
        await bus.publish(event("x", "B"))
        await bus.flush()

        assert log == ["start-A", "end-A", "start-B", "end-B"]

    @pytest.mark.asyncio
    async def test_exhausted_retries_reach_error_handler_once(self):
        errors = []
        bus = make_bus(errors, max_retries=2)
        attempts = 0

        async def always_fails(evt):
            nonlocal attempts
            attempts += 1
            raise ValueError(f"attempt {attempts}")

        bus.subscribe("x", always_fails)
        await bus.publish(event("x", "A"))
        await bus.flush()

        assert attempts == 3
        assert len(errors) == 1
        error, failed = errors[0]
        assert str(error) == "attempt 3"
        assert failed.data["name"] == "A"
        assert bus.get_stats().queue_size == 0

    @pytest.mark.asyncio
    async def test_one_failing_handler_retries_whole_event(self):
        bus = make_bus([])
        good_calls = 0
        bad_calls = 0

        async def good(evt):
            nonlocal good_calls
            good_calls += 1

        async def bad_once(evt):
            nonlocal bad_calls
            bad_calls += 1
            if bad_calls == 1:
                raise RuntimeError("once")

        bus.subscribe("x", good)
        bus.subscribe("x", bad_once)
        await bus.publish(event("x", "A"))
        await bus.flush()

        assert bad_calls == 2
        assert good_calls == 2

    @pytest.mark.asyncio
    async def test_broken_error_handler_does_not_stop_draining(self):
        def explode(error, evt):
            raise RuntimeError("error handler broke")

        bus = EventBus(EventBusProperties(max_retries=0, retry_delay=timedelta(0)), error_handler=explode)
        received = []

        async def handler(evt):
            if evt.data["name"] == "A":
                raise ValueError("bad")
            received.append(evt.data["name"])

        bus.subscribe("x", handler)
        await bus.publish(event("x", "A"))
        await bus.publish(event("x", "B"))
        await bus.flush()

        assert received == ["B"]

    @pytest.mark.asyncio
    async def test_dispose_cancels_pending_delivery(self):
        bus = EventBus(EventBusProperties(max_retries=3, retry_delay=timedelta(seconds=30)))

        async def failing(evt):
            raise RuntimeError("down")

        bus.subscribe("x", failing)
        await bus.publish(event("x", "A"))
        await asyncio.sleep(0)

        await bus.dispose()

        stats = bus.get_stats()
        assert stats.queue_size == 0
        assert stats.subscription_count == 0
