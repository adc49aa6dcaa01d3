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
"""Default handlers that record business events in the log."""

from __future__ import annotations

import structlog

from goldsmith.eda.bus import EventBus
from goldsmith.eda.events import EventTypes
from goldsmith.eda.types import DomainEvent, EventHandlerFunction, EventSubscription

logger = structlog.get_logger("goldsmith.eda.handlers")


async def on_receipt_created(event: DomainEvent) -> None:
    logger.info("receipt_created", receipt_id=event.data["receipt_id"], client_id=event.data["client_id"])


async def on_receipt_completed(event: DomainEvent) -> None:
    logger.info("receipt_completed", receipt_id=event.data["receipt_id"])


async def on_quotation_accepted(event: DomainEvent) -> None:
    logger.info("quotation_accepted", quotation_id=event.data["quotation_id"])


async def on_payment_processed(event: DomainEvent) -> None:
    logger.info(
        "payment_processed",
        payment_id=event.data["payment_id"],
        receipt_id=event.data["receipt_id"],
    )


async def on_client_registered(event: DomainEvent) -> None:
    logger.info("client_registered", client_id=event.data["client_id"])


async def on_product_stock_low(event: DomainEvent) -> None:
    logger.warning(
        "product_stock_low",
        product_id=event.data["product_id"],
        current_stock=event.data["current_stock"],
        threshold=event.data["threshold"],
    )


DEFAULT_HANDLERS: dict[str, EventHandlerFunction] = {
    EventTypes.RECEIPT_CREATED: on_receipt_created,
    EventTypes.RECEIPT_COMPLETED: on_receipt_completed,
    EventTypes.QUOTATION_ACCEPTED: on_quotation_accepted,
    EventTypes.PAYMENT_PROCESSED: on_payment_processed,
    EventTypes.CLIENT_REGISTERED: on_client_registered,
    EventTypes.PRODUCT_STOCK_LOW: on_product_stock_low,
}


def register_default_handlers(bus: EventBus) -> list[EventSubscription]:
    """Subscribe every entry of :data:`DEFAULT_HANDLERS` on *bus*."""
    return [bus.subscribe(event_type, handler) for event_type, handler in DEFAULT_HANDLERS.items()]
