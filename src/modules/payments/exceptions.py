"""Payment domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class PaymentError(DomainError):
    """Base class for payment gateway errors."""


class SignatureMismatch(PaymentError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Payment verification failed. Invalid signature."


class InvalidWebhookPayload(PaymentError):
    default_message = "Webhook body is not valid JSON"
