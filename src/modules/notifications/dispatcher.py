"""Notification dispatcher.

Turns order and stock events into in-app notifications for the buyer and
for staff (every active ``is_staff`` user).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from modules.notifications.constants import (
    BUYER_ORDER_LINK,
    STAFF_INVENTORY_LINK,
    STAFF_ORDER_LINK,
    NotificationType,
    OrderNotificationKind,
    RelatedModel,
)
from modules.notifications.dtos import (
    LowStockNotificationDTO,
    NotificationDataDTO,
    OrderNotificationDTO,
    OrderNotificationOptions,
)

if TYPE_CHECKING:
    from modules.notifications.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)

BUYER = "buyer"
STAFF = "staff"


class NotificationDispatcher:
    def __init__(self, repository: INotificationRepository) -> None:
        self._repo = repository

    def notify_order_event(
        self,
        kind: str,
        order: OrderNotificationDTO,
        options: Optional[OrderNotificationOptions] = None,
    ) -> int:
        """Create the notifications for an order event.

        Returns the number of notifications created.
        """
        options = options or OrderNotificationOptions()
        created = 0
        for audience, data in self._order_messages(kind, order, options):
            created += self._send(audience, order.user_id, data)
        logger.info(
            "notifications.order_event_dispatched",
            kind=kind,
            order_id=str(order.id),
            created=created,
        )
        return created

    def notify_low_stock(self, product: LowStockNotificationDTO) -> int:
        created = self._send(
            STAFF,
            None,
            NotificationDataDTO(
                type=NotificationType.ALERT,
                title="Low Stock Alert",
                message=(
                    f'Product "{product.name}" is running low '
                    f"({product.stock_available} units left)"
                ),
                link=STAFF_INVENTORY_LINK,
                related_id=product.id,
                related_model=RelatedModel.PRODUCT,
            ),
        )
        logger.info(
            "notifications.low_stock_dispatched", product_id=str(product.id), created=created
        )
        return created

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _send(self, audience: str, buyer_id: Optional[int], data: NotificationDataDTO) -> int:
        if audience == STAFF:
            user_ids = self._repo.staff_user_ids()
        else:
            user_ids = [buyer_id] if buyer_id is not None else []
        if not user_ids:
            return 0
        return self._repo.create_for_users(user_ids, data)

    def _order_messages(
        self,
        kind: str,
        order: OrderNotificationDTO,
        options: OrderNotificationOptions,
    ) -> List[Tuple[str, NotificationDataDTO]]:
        number = order.order_number

        def buyer(type_: str, title: str, message: str) -> Tuple[str, NotificationDataDTO]:
            return BUYER, NotificationDataDTO(
                type=type_,
                title=title,
                message=message,
                link=BUYER_ORDER_LINK.format(id=order.id),
                related_id=order.id,
                related_model=RelatedModel.ORDER,
            )

        def staff(type_: str, title: str, message: str) -> Tuple[str, NotificationDataDTO]:
            return STAFF, NotificationDataDTO(
                type=type_,
                title=title,
                message=message,
                link=STAFF_ORDER_LINK.format(id=order.id),
                related_id=order.id,
                related_model=RelatedModel.ORDER,
            )

        if kind == OrderNotificationKind.ORDER_PLACED:
            return [
                staff(
                    NotificationType.ORDER,
                    "New Order Received",
                    f"Order #{number} placed by {order.customer_name or 'Customer'}",
                )
            ]
        if kind == OrderNotificationKind.PAYMENT_CONFIRMED:
            return [
                buyer(
                    NotificationType.PAYMENT,
                    "Payment Confirmed",
                    f"Payment for Order #{number} has been confirmed",
                )
            ]
        if kind == OrderNotificationKind.ORDER_ACCEPTED:
            return [
                buyer(
                    NotificationType.ORDER,
                    "Order Accepted",
                    f"Your Order #{number} has been accepted and is being processed",
                )
            ]
        if kind == OrderNotificationKind.ORDER_SHIPPED:
            return [
                buyer(NotificationType.ORDER, "Order Shipped", f"Your Order #{number} is on the way!")
            ]
        if kind == OrderNotificationKind.ORDER_DELIVERED:
            return [
                buyer(
                    NotificationType.ORDER,
                    "Order Delivered",
                    f"Your Order #{number} has been delivered",
                )
            ]
        if kind == OrderNotificationKind.ORDER_CANCELLED:
            by_customer = options.cancelled_by == "customer"
            message = f"Your Order #{number} has been cancelled"
            if not by_customer:
                message += " by the seller"
            if options.reason:
                message += f". Reason: {options.reason}"
            messages = [buyer(NotificationType.ALERT, "Order Cancelled", message)]
            if by_customer:
                messages.append(
                    staff(
                        NotificationType.ALERT,
                        "Order Cancelled",
                        f"Order #{number} was cancelled by the customer",
                    )
                )
            return messages

        logger.warning("notifications.unknown_order_event", kind=kind)
        return []
