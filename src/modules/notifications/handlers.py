"""Event handlers turning relayed domain events into notifications."""

from __future__ import annotations

import structlog

from modules.inventory.events import LowStockDetected
from modules.notifications.constants import STATUS_NOTIFICATION_KINDS, OrderNotificationKind
from modules.notifications.dispatcher import NotificationDispatcher
from modules.notifications.dtos import (
    LowStockNotificationDTO,
    OrderNotificationDTO,
    OrderNotificationOptions,
)
from modules.notifications.repositories.django_repository import NotificationDjangoRepository
from modules.orders.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentConfirmed,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


def _dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(NotificationDjangoRepository())


def _order_data(event, customer_name: str = "Customer") -> OrderNotificationDTO:
    return OrderNotificationDTO(
        id=event.aggregate_id,
        order_number=event.order_number,
        user_id=event.user_id,
        customer_name=customer_name,
    )


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        _dispatcher().notify_order_event(
            OrderNotificationKind.ORDER_PLACED,
            _order_data(event, customer_name=event.customer_name),
        )


class PaymentConfirmedHandler(IEventHandler[PaymentConfirmed]):
    def handle(self, event: PaymentConfirmed) -> None:
        _dispatcher().notify_order_event(
            OrderNotificationKind.PAYMENT_CONFIRMED, _order_data(event)
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        kind = STATUS_NOTIFICATION_KINDS.get(event.new_status)
        if kind is None:
            logger.debug("notifications.status_not_notified", new_status=event.new_status)
            return
        _dispatcher().notify_order_event(kind, _order_data(event))


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        _dispatcher().notify_order_event(
            OrderNotificationKind.ORDER_CANCELLED,
            _order_data(event),
            OrderNotificationOptions(cancelled_by=event.cancelled_by, reason=event.reason),
        )


class LowStockDetectedHandler(IEventHandler[LowStockDetected]):
    def handle(self, event: LowStockDetected) -> None:
        _dispatcher().notify_low_stock(
            LowStockNotificationDTO(
                id=event.aggregate_id,
                name=event.product_name,
                stock_available=event.stock_available,
            )
        )


order_placed_handler = OrderPlacedHandler()
payment_confirmed_handler = PaymentConfirmedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
low_stock_detected_handler = LowStockDetectedHandler()
