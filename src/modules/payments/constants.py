"""Payment gateway constants."""

from django.db import models


class GatewayEventType(models.TextChoices):
    PAYMENT_CAPTURED = "payment.captured", "Payment captured"
    PAYMENT_FAILED = "payment.failed", "Payment failed"
    REFUND_CREATED = "refund.created", "Refund created"


SIGNATURE_HEADER = "X-Razorpay-Signature"

# Gateway amounts are integers in the smallest currency unit.
PAISE_PER_RUPEE = 100
