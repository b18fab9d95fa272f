"""Domain events for the Orders bounded context.

Payload fields are JSON primitives so events round-trip through the
outbox unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class _OrderEvent(DomainEvent):
    topic: ClassVar[str] = "orders"

    order_number: str
    user_id: int


@dataclass(frozen=True, kw_only=True)
class OrderPlaced(_OrderEvent):
    """Raised when an order is placed and its stock reserved."""

    customer_name: str
    total_amount: str
    item_count: int


@dataclass(frozen=True, kw_only=True)
class PaymentConfirmed(_OrderEvent):
    """Raised when payment is confirmed and stock deducted."""

    total_amount: str
    payment_method: str


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(_OrderEvent):
    """Raised on staff-driven fulfilment transitions."""

    old_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(_OrderEvent):
    """Raised when an order is cancelled (with or without refund)."""

    cancelled_by: str
    reason: str = ""
    refunded: bool = False
    previous_status: Optional[str] = None
