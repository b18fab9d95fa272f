"""Unit tests for the Razorpay gateway adapter."""

from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal

import pytest

from modules.payments.constants import GatewayEventType
from modules.payments.gateway import RazorpayGateway

pytestmark = pytest.mark.unit

KEY_SECRET = "key_secret"
WEBHOOK_SECRET = "webhook_secret"


def _sign(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


@pytest.fixture()
def gateway():
    return RazorpayGateway(key_secret=KEY_SECRET, webhook_secret=WEBHOOK_SECRET)


class TestCheckoutSignature:
    def test_valid_signature(self, gateway):
        signature = _sign(KEY_SECRET, b"order_abc|pay_xyz")
        assert gateway.verify_signature("order_abc", "pay_xyz", signature)

    def test_signature_for_other_payment_rejected(self, gateway):
        signature = _sign(KEY_SECRET, b"order_abc|pay_other")
        assert not gateway.verify_signature("order_abc", "pay_xyz", signature)

    @pytest.mark.parametrize(
        "order_ref,payment_ref,signature",
        [("", "pay_xyz", "sig"), ("order_abc", "", "sig"), ("order_abc", "pay_xyz", "")],
    )
    def test_missing_values_rejected(self, gateway, order_ref, payment_ref, signature):
        assert not gateway.verify_signature(order_ref, payment_ref, signature)

    def test_missing_key_secret_rejects_everything(self):
        gateway = RazorpayGateway(key_secret="", webhook_secret=WEBHOOK_SECRET)
        signature = _sign("", b"order_abc|pay_xyz")
        assert not gateway.verify_signature("order_abc", "pay_xyz", signature)

    def test_defaults_come_from_settings(self, settings):
        settings.RAZORPAY_KEY_SECRET = "from_settings"
        gateway = RazorpayGateway()
        assert gateway.verify_signature(
            "order_abc", "pay_xyz", _sign("from_settings", b"order_abc|pay_xyz")
        )


class TestWebhookSignature:
    def test_valid_signature(self, gateway):
        body = b'{"event": "payment.captured"}'
        assert gateway.verify_webhook_signature(body, _sign(WEBHOOK_SECRET, body))

    def test_tampered_body_rejected(self, gateway):
        signature = _sign(WEBHOOK_SECRET, b'{"event": "payment.captured"}')
        assert not gateway.verify_webhook_signature(b'{"event": "payment.failed"}', signature)

    def test_missing_signature_rejected(self, gateway):
        assert not gateway.verify_webhook_signature(b"{}", "")

    def test_fails_closed_without_secret(self):
        gateway = RazorpayGateway(key_secret=KEY_SECRET, webhook_secret="")
        assert not gateway.verify_webhook_signature(b"{}", _sign("", b"{}"))


class TestNormalizeWebhook:
    def test_payment_captured(self, gateway):
        payload = {
            "event": "payment.captured",
            "payload": {
                "payment": {
                    "entity": {
                        "id": "pay_xyz",
                        "order_id": "order_abc",
                        "amount": 59000,
                        "notes": {"order_id": "0192c0de-0000-7000-8000-000000000001"},
                    }
                }
            },
        }
        event = gateway.normalize_webhook(payload)
        assert event.type == GatewayEventType.PAYMENT_CAPTURED
        assert event.order_ref == "order_abc"
        assert event.payment_ref == "pay_xyz"
        assert event.amount == Decimal("590")
        assert event.order_id == "0192c0de-0000-7000-8000-000000000001"

    def test_payment_failed_without_notes(self, gateway):
        payload = {
            "event": "payment.failed",
            "payload": {"payment": {"entity": {"id": "pay_xyz", "order_id": "order_abc"}}},
        }
        event = gateway.normalize_webhook(payload)
        assert event.type == GatewayEventType.PAYMENT_FAILED
        assert event.amount is None
        assert event.order_id is None

    def test_camel_case_note_is_accepted(self, gateway):
        payload = {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {"id": "pay_1", "notes": {"orderId": "abc"}}}},
        }
        assert gateway.normalize_webhook(payload).order_id == "abc"

    def test_refund_created(self, gateway):
        payload = {
            "event": "refund.created",
            "payload": {
                "refund": {"entity": {"id": "rfnd_1", "payment_id": "pay_xyz", "amount": 10050}}
            },
        }
        event = gateway.normalize_webhook(payload)
        assert event.type == GatewayEventType.REFUND_CREATED
        assert event.payment_ref == "pay_xyz"
        assert event.order_ref == ""
        assert event.refund_ref == "rfnd_1"
        assert event.amount == Decimal("100.50")

    def test_unsupported_event(self, gateway):
        assert gateway.normalize_webhook({"event": "order.paid", "payload": {}}) is None
