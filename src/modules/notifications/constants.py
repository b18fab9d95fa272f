"""Notification constants: types, order event kinds and message limits."""

from django.db import models


class NotificationType(models.TextChoices):
    ORDER = "order", "Order"
    PRODUCT = "product", "Product"
    PAYMENT = "payment", "Payment"
    SYSTEM = "system", "System"
    ALERT = "alert", "Alert"


class RelatedModel(models.TextChoices):
    ORDER = "Order", "Order"
    PRODUCT = "Product", "Product"
    USER = "User", "User"


class OrderNotificationKind(models.TextChoices):
    ORDER_PLACED = "order_placed", "Order placed"
    PAYMENT_CONFIRMED = "payment_confirmed", "Payment confirmed"
    ORDER_ACCEPTED = "order_accepted", "Order accepted"
    ORDER_SHIPPED = "order_shipped", "Order shipped"
    ORDER_DELIVERED = "order_delivered", "Order delivered"
    ORDER_CANCELLED = "order_cancelled", "Order cancelled"


# Order status reached through a staff update -> buyer notification kind.
STATUS_NOTIFICATION_KINDS = {
    "accepted": OrderNotificationKind.ORDER_ACCEPTED,
    "in_transit": OrderNotificationKind.ORDER_SHIPPED,
    "delivered": OrderNotificationKind.ORDER_DELIVERED,
}

TITLE_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500

BUYER_ORDER_LINK = "/dashboard/retailer/orders/{id}"
STAFF_ORDER_LINK = "/dashboard/admin/orders/{id}"
STAFF_INVENTORY_LINK = "/dashboard/admin/inventory"
