"""Razorpay gateway adapter.

Verifies checkout and webhook signatures and normalizes webhook payloads
into ``GatewayEvent``.  Creating gateway orders and initiating refunds
happen outside this service.
"""

from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from pydantic import BaseModel, ConfigDict

from modules.payments.constants import PAISE_PER_RUPEE, GatewayEventType

logger = structlog.get_logger(__name__)


class GatewayEvent(BaseModel):
    """Gateway-agnostic view of a webhook notification.

    ``amount`` is in rupees.  ``refund_ref`` is the gateway refund id for
    refund events.  ``order_id`` is our own order id when the
    gateway echoes it back in the payment notes.
    """

    model_config = ConfigDict(frozen=True)

    type: GatewayEventType
    order_ref: str = ""
    payment_ref: str = ""
    refund_ref: str = ""
    amount: Optional[Decimal] = None
    order_id: Optional[str] = None


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway:
    def __init__(
        self,
        key_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ) -> None:
        self._key_secret = settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        self._webhook_secret = (
            settings.RAZORPAY_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
        )

    def verify_signature(self, order_ref: str, payment_ref: str, signature: str) -> bool:
        """Check the checkout signature ``HMAC(order_ref|payment_ref)``."""
        if not (self._key_secret and order_ref and payment_ref and signature):
            return False
        expected = _hmac_sha256(self._key_secret, f"{order_ref}|{payment_ref}".encode())
        return hmac.compare_digest(expected, signature)

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        """Check the webhook signature computed over the raw request body.

        Without a configured webhook secret every webhook is rejected.
        """
        if not self._webhook_secret:
            logger.error("payments.webhook_secret_missing")
            return False
        if not signature:
            return False
        return hmac.compare_digest(_hmac_sha256(self._webhook_secret, body), signature)

    def normalize_webhook(self, payload: Dict[str, Any]) -> Optional[GatewayEvent]:
        """Translate a webhook payload; ``None`` for unsupported events."""
        event_type = payload.get("event", "")
        body = payload.get("payload") or {}

        if event_type in (GatewayEventType.PAYMENT_CAPTURED, GatewayEventType.PAYMENT_FAILED):
            entity = (body.get("payment") or {}).get("entity") or {}
            return GatewayEvent(
                type=event_type,
                order_ref=entity.get("order_id") or "",
                payment_ref=entity.get("id") or "",
                amount=_rupees(entity.get("amount")),
                order_id=_note_order_id(entity),
            )

        if event_type == GatewayEventType.REFUND_CREATED:
            entity = (body.get("refund") or {}).get("entity") or {}
            return GatewayEvent(
                type=event_type,
                payment_ref=entity.get("payment_id") or "",
                refund_ref=entity.get("id") or "",
                amount=_rupees(entity.get("amount")),
                order_id=_note_order_id(entity),
            )

        logger.info("payments.webhook_ignored", event_type=event_type)
        return None


def _rupees(paise: Any) -> Optional[Decimal]:
    if paise is None:
        return None
    return Decimal(str(paise)) / PAISE_PER_RUPEE


def _note_order_id(entity: Dict[str, Any]) -> Optional[str]:
    notes = entity.get("notes")
    if not isinstance(notes, dict):
        return None
    return notes.get("order_id") or notes.get("orderId")
