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
"""In-process event bus with queued delivery and retry."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import uuid
from collections import deque
from dataclasses import dataclass

import structlog

from goldsmith.eda.properties import EventBusProperties
from goldsmith.eda.types import (
    DomainEvent,
    ErrorHandler,
    EventBusStats,
    EventSubscription,
    Handler,
)

logger = structlog.get_logger("goldsmith.eda")


def log_event_error(error: Exception, event: DomainEvent) -> None:
    """Default error handler: log and drop."""
    logger.error(
        "event_handling_failed",
        event_type=event.type,
        event_id=event.id,
        error=str(error),
        error_type=type(error).__name__,
    )


@dataclass
class _QueuedEvent:
    event: DomainEvent
    retry_count: int = 0


class EventBus:
    """Publish/subscribe bus keyed by event type.

    ``publish`` enqueues and returns; a single drain task delivers queued
    events strictly one after another. Handlers of one event run
    concurrently and are all awaited before the next event starts. When any
    handler fails, the event is retried up to ``max_retries`` times, each
    retry going to the front of the queue after a linear backoff of
    ``retry_delay * retry_count``. Once retries are exhausted the error
    handler is called with the last error and the event is dropped.

    ``publish_sync`` delivers immediately, bypassing the queue, and reports
    each failing handler to the error handler without retrying.
    """

    def __init__(
        self,
        properties: EventBusProperties | None = None,
        *,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        properties = properties or EventBusProperties()
        self._max_retries = properties.max_retries
        self._retry_delay = properties.retry_delay
        self._error_handler = error_handler or log_event_error
        self._subscriptions: dict[str, dict[str, EventSubscription]] = {}
        self._queue: deque[_QueuedEvent] = deque()
        self._drain_task: asyncio.Task[None] | None = None

    def subscribe(self, event_type: str, handler: Handler) -> EventSubscription:
        """Register *handler* for *event_type*.

        *handler* is a callable taking the event, or an object with a
        ``handle(event)`` method; either may be sync or async.
        """
        subscription_id = str(uuid.uuid4())
        subscription = EventSubscription(
            id=subscription_id,
            event_type=event_type,
            handler=handler,
            _unsubscribe=lambda: self.unsubscribe(event_type, subscription_id),
        )
        self._subscriptions.setdefault(event_type, {})[subscription_id] = subscription
        logger.debug("event_subscribed", event_type=event_type, subscription_id=subscription_id)
        return subscription

    def unsubscribe(self, event_type: str, subscription_id: str) -> bool:
        subscriptions = self._subscriptions.get(event_type)
        if subscriptions is None or subscriptions.pop(subscription_id, None) is None:
            return False
        if not subscriptions:
            del self._subscriptions[event_type]
        logger.debug("event_unsubscribed", event_type=event_type, subscription_id=subscription_id)
        return True

    async def publish(self, event: DomainEvent) -> None:
        """Enqueue *event* for background delivery; does not wait for handlers."""
        self._queue.append(_QueuedEvent(event))
        logger.debug("event_published", event_type=event.type, event_id=event.id, queue_size=len(self._queue))
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self._drain())

    async def publish_sync(self, event: DomainEvent) -> None:
        """Deliver *event* to the current subscribers and wait for all of them."""
        for error in await self._dispatch(event):
            self._report(error, event)

    async def flush(self) -> None:
        """Wait until the queue has been drained."""
        while self._drain_task is not None and not self._drain_task.done():
            await self._drain_task

    def get_subscribers(self, event_type: str) -> list[EventSubscription]:
        return list(self._subscriptions.get(event_type, {}).values())

    def clear(self) -> None:
        """Drop all subscriptions and all queued events."""
        self._subscriptions.clear()
        self._queue.clear()

    def get_stats(self) -> EventBusStats:
        return EventBusStats(
            subscription_count=sum(len(subs) for subs in self._subscriptions.values()),
            event_type_count=len(self._subscriptions),
            queue_size=len(self._queue),
            event_types=list(self._subscriptions),
        )

    async def dispose(self) -> None:
        """Stop the drain task and forget subscriptions and queued events."""
        task, self._drain_task = self._drain_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.clear()

    async def _drain(self) -> None:
        while self._queue:
            item = self._queue.popleft()
            errors = await self._dispatch(item.event)
            if not errors:
                continue

            if item.retry_count < self._max_retries:
                item.retry_count += 1
                delay = self._retry_delay.total_seconds() * item.retry_count
                logger.warning(
                    "event_retry_scheduled",
                    event_type=item.event.type,
                    event_id=item.event.id,
                    attempt=item.retry_count,
                    max_retries=self._max_retries,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                self._queue.appendleft(item)
            else:
                logger.error(
                    "event_retries_exhausted",
                    event_type=item.event.type,
                    event_id=item.event.id,
                    max_retries=self._max_retries,
                )
                self._report(errors[-1], item.event)

    async def _dispatch(self, event: DomainEvent) -> list[Exception]:
        """Run every handler for *event* concurrently; return the failures."""
        subscriptions = self.get_subscribers(event.type)
        if not subscriptions:
            return []

        results = await asyncio.gather(
            *(self._invoke(sub.handler, event) for sub in subscriptions),
            return_exceptions=True,
        )

        errors: list[Exception] = []
        for sub, result in zip(subscriptions, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "event_handler_failed",
                    event_type=event.type,
                    subscription_id=sub.id,
                    error=str(result),
                )
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result
        return errors

    @staticmethod
    async def _invoke(handler: Handler, event: DomainEvent) -> None:
        handle = getattr(handler, "handle", None)
        result = handle(event) if callable(handle) else handler(event)  # type: ignore[operator]
        if inspect.isawaitable(result):
            await result

    def _report(self, error: Exception, event: DomainEvent) -> None:
        try:
            self._error_handler(error, event)
        except Exception:
            logger.exception("event_error_handler_failed", event_type=event.type, event_id=event.id)
