"""Order domain constants.

Defines status choices and the valid status transitions of the order
state machine.  Stock effects per transition:

- ``pending_payment``: every line reserved at creation.
- ``-> paid``: reserved stock deducted (payment confirmation).
- ``pending_payment -> cancelled``: reserved stock released.
- ``paid|accepted -> cancelled``: refund workflow, stock added back.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PAID = "paid", "Paid"
    ACCEPTED = "accepted", "Accepted"
    IN_TRANSIT = "in_transit", "In transit"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SUBMITTED = "submitted", "Submitted"
    CONFIRMED = "confirmed", "Confirmed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"
    PARTIALLY_REFUNDED = "partially_refunded", "Partially refunded"


class PaymentMethod(models.TextChoices):
    UPI = "upi", "UPI"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    RAZORPAY = "razorpay", "Razorpay"


class CancelledBy(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    STAFF = "staff", "Staff"
    SYSTEM = "system", "System"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.ACCEPTED, OrderStatus.CANCELLED},
    OrderStatus.ACCEPTED: {OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Statuses reachable through the generic staff status update.
STAFF_STATUS_UPDATES: set[str] = {
    OrderStatus.ACCEPTED,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
}

# Stock is still reserved (not yet deducted) only before payment.
RESERVED_STATES: set[str] = {OrderStatus.PENDING_PAYMENT}

# Stock already deducted; cancelling requires the refund workflow.
REFUNDABLE_STATES: set[str] = {OrderStatus.PAID, OrderStatus.ACCEPTED}

# Payment states against which a gateway refund can be recorded.
REFUND_RECORDABLE: set[str] = {PaymentStatus.CONFIRMED, PaymentStatus.PARTIALLY_REFUNDED}

# Statuses counted as revenue in order statistics.
REVENUE_STATES: set[str] = {
    OrderStatus.PAID,
    OrderStatus.ACCEPTED,
    OrderStatus.IN_TRANSIT,
    OrderStatus.DELIVERED,
}

PAYMENT_SUBMITTABLE: set[str] = {PaymentStatus.PENDING, PaymentStatus.FAILED}
PAYMENT_CONFIRMABLE: set[str] = {
    PaymentStatus.PENDING,
    PaymentStatus.SUBMITTED,
    PaymentStatus.FAILED,
}

ORDER_NUMBER_MAX_RETRIES = 5
ORDER_NUMBER_SEQUENCE_DIGITS = 5

CUSTOMER_NOTES_MAX_LENGTH = 500
INTERNAL_NOTES_MAX_LENGTH = 1000
CANCELLATION_REASON_MAX_LENGTH = 500

REQUIRED_ADDRESS_FIELDS = ("name", "phone", "street")
ADDRESS_FIELDS = ("name", "phone", "street", "city", "district", "state", "pincode")
