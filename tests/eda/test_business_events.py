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
"""Tests for business event factories and default handlers."""

from datetime import UTC, datetime

import pytest

from goldsmith.eda import DEFAULT_HANDLERS, EventBus, EventTypes, events, handlers, register_default_handlers


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict]] = []

    def info(self, event: str, **kw) -> None:
        self.records.append(("info", event, kw))

    def warning(self, event: str, **kw) -> None:
        self.records.append(("warning", event, kw))


@pytest.fixture
def recorder(monkeypatch) -> RecordingLogger:
    recorder = RecordingLogger()
    monkeypatch.setattr(handlers, "logger", recorder)
    return recorder


class TestFactories:
    def test_receipt_created(self):
        evt = events.receipt_created("r-1", receipt_id="r-1", client_id="c-9", amount=250.0)
        assert evt.type == EventTypes.RECEIPT_CREATED == "receipt.created"
        assert evt.aggregate_id == "r-1"
        assert evt.version == 1
        assert dict(evt.data) == {"receipt_id": "r-1", "client_id": "c-9", "amount": 250.0}

    def test_each_factory_sets_its_type(self):
        when = datetime(2026, 3, 1, tzinfo=UTC)
        built = [
            events.receipt_completed("r", receipt_id="r", client_id="c", amount=1.0, completed_at=when),
            events.quotation_created("q", quotation_id="q", client_id="c", amount=1.0),
            events.quotation_accepted("q", quotation_id="q", client_id="c", amount=1.0, accepted_at=when),
            events.payment_processed("p", payment_id="p", receipt_id="r", amount=1.0, method="card"),
            events.client_registered("c", client_id="c", email="a@b.test", name="Ana"),
            events.product_stock_low("p", product_id="p", current_stock=1, threshold=5),
        ]
        assert [e.type for e in built] == [
            "receipt.completed",
            "quotation.created",
            "quotation.accepted",
            "payment.processed",
            "client.registered",
            "product.stock.low",
        ]

    def test_factories_create_unique_ids(self):
        a = events.client_registered("c", client_id="c", email="a@b.test", name="Ana")
        b = events.client_registered("c", client_id="c", email="a@b.test", name="Ana")
        assert a.id != b.id


class TestDefaultHandlers:
    def test_register_default_handlers(self):
        bus = EventBus()
        subscriptions = register_default_handlers(bus)

        assert len(subscriptions) == len(DEFAULT_HANDLERS)
        assert EventTypes.QUOTATION_CREATED not in bus.get_stats().event_types
        assert len(bus.get_subscribers(EventTypes.PRODUCT_STOCK_LOW)) == 1

    @pytest.mark.asyncio
    async def test_stock_low_is_logged_as_warning(self, recorder):
        bus = EventBus()
        register_default_handlers(bus)

        await bus.publish_sync(events.product_stock_low("p-1", product_id="p-1", current_stock=2, threshold=5))

        assert recorder.records == [
            ("warning", "product_stock_low", {"product_id": "p-1", "current_stock": 2, "threshold": 5}),
        ]

    @pytest.mark.asyncio
    async def test_receipt_created_is_logged(self, recorder):
        bus = EventBus()
        register_default_handlers(bus)

        await bus.publish_sync(events.receipt_created("r-1", receipt_id="r-1", client_id="c-1", amount=5.0))

        assert recorder.records == [("info", "receipt_created", {"receipt_id": "r-1", "client_id": "c-1"})]
