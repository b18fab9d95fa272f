"""Inventory domain constants."""

from django.db import models


class ActionType(models.TextChoices):
    ADD = "ADD", "Stock added"
    ADJUST = "ADJUST", "Stock adjusted"
    RESERVE = "RESERVE", "Stock reserved for order"
    RELEASE = "RELEASE", "Reserved stock released"
    DEDUCT = "DEDUCT", "Stock deducted (order confirmed)"
    DAMAGED = "DAMAGED", "Stock marked as damaged/expired"


DEFAULT_REASONS: dict[str, str] = {
    ActionType.ADD: "Stock received from supplier",
    ActionType.RESERVE: "Stock reserved for order",
    ActionType.RELEASE: "Order cancelled",
    ActionType.DEDUCT: "Order confirmed - stock deducted",
}

# Operations that cannot proceed without an explicit reason.
REASON_REQUIRED: dict[str, str] = {
    ActionType.ADJUST: "Reason is required for stock adjustment",
    ActionType.DAMAGED: "Reason is required for damaged stock",
}

# Operations that must reference the order they act on.
ORDER_BOUND_ACTIONS: frozenset[str] = frozenset(
    {ActionType.RESERVE, ActionType.RELEASE, ActionType.DEDUCT}
)

REASON_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 1000

PRODUCT_LOGS_DEFAULT_LIMIT = 20
ALL_LOGS_DEFAULT_LIMIT = 50
STOCK_LIST_DEFAULT_LIMIT = 20
