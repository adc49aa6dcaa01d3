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
"""Business event types and factories."""

from __future__ import annotations

from datetime import datetime

from goldsmith.eda.types import DomainEvent


class EventTypes:
    RECEIPT_CREATED = "receipt.created"
    RECEIPT_COMPLETED = "receipt.completed"
    QUOTATION_CREATED = "quotation.created"
    QUOTATION_ACCEPTED = "quotation.accepted"
    PAYMENT_PROCESSED = "payment.processed"
    CLIENT_REGISTERED = "client.registered"
    PRODUCT_STOCK_LOW = "product.stock.low"


def receipt_created(aggregate_id: str, *, receipt_id: str, client_id: str, amount: float) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.RECEIPT_CREATED,
        aggregate_id=aggregate_id,
        data={"receipt_id": receipt_id, "client_id": client_id, "amount": amount},
    )


def receipt_completed(
    aggregate_id: str, *, receipt_id: str, client_id: str, amount: float, completed_at: datetime
) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.RECEIPT_COMPLETED,
        aggregate_id=aggregate_id,
        data={"receipt_id": receipt_id, "client_id": client_id, "amount": amount, "completed_at": completed_at},
    )


def quotation_created(aggregate_id: str, *, quotation_id: str, client_id: str, amount: float) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.QUOTATION_CREATED,
        aggregate_id=aggregate_id,
        data={"quotation_id": quotation_id, "client_id": client_id, "amount": amount},
    )


def quotation_accepted(
    aggregate_id: str, *, quotation_id: str, client_id: str, amount: float, accepted_at: datetime
) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.QUOTATION_ACCEPTED,
        aggregate_id=aggregate_id,
        data={"quotation_id": quotation_id, "client_id": client_id, "amount": amount, "accepted_at": accepted_at},
    )


def payment_processed(
    aggregate_id: str, *, payment_id: str, receipt_id: str, amount: float, method: str
) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.PAYMENT_PROCESSED,
        aggregate_id=aggregate_id,
        data={"payment_id": payment_id, "receipt_id": receipt_id, "amount": amount, "method": method},
    )


def client_registered(aggregate_id: str, *, client_id: str, email: str, name: str) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.CLIENT_REGISTERED,
        aggregate_id=aggregate_id,
        data={"client_id": client_id, "email": email, "name": name},
    )


def product_stock_low(aggregate_id: str, *, product_id: str, current_stock: int, threshold: int) -> DomainEvent:
    return DomainEvent(
        type=EventTypes.PRODUCT_STOCK_LOW,
        aggregate_id=aggregate_id,
        data={"product_id": product_id, "current_stock": current_stock, "threshold": threshold},
    )
