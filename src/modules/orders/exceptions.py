"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
rendered by ``api_exception_handler``.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class OrderNotFound(DomainError):
    """The requested order does not exist or has been soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found"


class IllegalTransition(DomainError):
    """The requested status change is not allowed from the current status."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Order status transition not allowed"

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot change order status from {current} to {target}")


class InvalidPaymentMethod(DomainError):
    default_message = "Invalid payment method"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, attr="payment_method")


class InvalidAddress(DomainError):
    default_message = "Shipping address is incomplete"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, attr="shipping_address")


class PaymentReconciliationRequired(DomainError):
    """Payment was captured but reserved stock could not be deducted.

    The order is flagged ``requires_reconciliation`` for staff follow-up.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Payment received but stock could not be deducted; order flagged for reconciliation"


class RefundNotAllowed(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Refunds can only be recorded against a confirmed payment"


class DuplicateConfirmation(DomainError):
    """Signal type for a repeated payment confirmation.

    Never raised to callers: ``confirm_payment`` logs its code and returns the already
    confirmed order instead.
    """

    status_code = status.HTTP_409_CONFLICT
    default_message = "Payment already confirmed"


class EmployeeNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Employee not found"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, attr="employee_id")
