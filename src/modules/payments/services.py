"""Payment service layer (Use Cases).

Translates gateway callbacks into order lifecycle operations:

- checkout verification -> ``OrderService.confirm_payment``
- ``payment.captured`` -> ``confirm_payment``
- ``payment.failed`` -> ``mark_payment_failed``
- ``refund.created`` -> ``record_refund``

Signatures are always checked before any order is touched.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

import structlog

from modules.orders.dtos import GatewayRefsDTO
from modules.orders.exceptions import (
    IllegalTransition,
    OrderNotFound,
    PaymentReconciliationRequired,
    RefundNotAllowed,
)
from modules.payments.constants import GatewayEventType
from modules.payments.dtos import VerifyPaymentDTO, WebhookResultDTO
from modules.payments.exceptions import InvalidWebhookPayload, SignatureMismatch

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.payments.gateway import GatewayEvent, RazorpayGateway

logger = structlog.get_logger(__name__)


class PaymentService:
    def __init__(
        self,
        order_service: OrderService,
        order_repository: IOrderRepository,
        gateway: RazorpayGateway,
    ) -> None:
        self._orders = order_service
        self._order_repo = order_repository
        self._gateway = gateway

    def verify_payment(self, dto: VerifyPaymentDTO, user_id: Any = None) -> Order:
        """Verify a checkout callback and confirm the order's payment.

        ``user_id`` restricts the look-up to the buyer's own orders.

        Raises:
            OrderNotFound: no matching order.
            SignatureMismatch: bad signature, or the gateway order belongs
                to another order.
        """
        order = self._resolve_for_verification(dto, user_id)
        log = logger.bind(order_id=str(order.id), gateway_order_id=dto.gateway_order_id)

        if order.gateway_order_id and order.gateway_order_id != dto.gateway_order_id:
            log.warning("payments.gateway_order_mismatch")
            raise SignatureMismatch("Payment does not belong to this order")

        refs = GatewayRefsDTO(
            gateway_order_id=dto.gateway_order_id,
            gateway_payment_id=dto.gateway_payment_id,
            gateway_signature=dto.gateway_signature,
        )
        if not self._gateway.verify_signature(
            dto.gateway_order_id, dto.gateway_payment_id, dto.gateway_signature
        ):
            log.warning("payments.signature_mismatch")
            self._orders.mark_payment_failed(order.id, refs, reason="Invalid signature")
            raise SignatureMismatch()

        order = self._orders.confirm_payment(order.id, refs)
        log.info("payments.verified", payment_status=order.payment_status)
        return order

    def handle_webhook(self, body: bytes, signature: str) -> WebhookResultDTO:
        """Verify, normalize and route a gateway webhook.

        Unsupported events and unknown orders are acknowledged without
        effect so the gateway stops retrying them.

        Raises:
            SignatureMismatch: webhook signature is invalid.
        """
        if not self._gateway.verify_webhook_signature(body, signature):
            logger.warning("payments.webhook_signature_mismatch")
            raise SignatureMismatch("Invalid webhook signature")

        try:
            payload = json.loads(body or b"{}")
        except ValueError as exc:
            raise InvalidWebhookPayload() from exc
        if not isinstance(payload, dict):
            raise InvalidWebhookPayload()

        event = self._gateway.normalize_webhook(payload)
        if event is None:
            return WebhookResultDTO(
                event=str(payload.get("event", "")),
                processed=False,
                message="Unhandled event type",
            )

        log = logger.bind(event_type=event.type.value, order_ref=event.order_ref)
        order = self._resolve_for_event(event)
        if order is None:
            log.warning("payments.webhook_order_not_found", payment_ref=event.payment_ref)
            return WebhookResultDTO(
                event=event.type.value, processed=False, message="Order not found"
            )

        refs = GatewayRefsDTO(
            gateway_order_id=event.order_ref, gateway_payment_id=event.payment_ref
        )
        try:
            if event.type == GatewayEventType.PAYMENT_CAPTURED:
                self._orders.confirm_payment(order.id, refs)
            elif event.type == GatewayEventType.PAYMENT_FAILED:
                self._orders.mark_payment_failed(order.id, refs, reason="Reported by gateway")
            else:
                self._orders.record_refund(order.id, event.amount or 0, event.refund_ref)
        except (IllegalTransition, PaymentReconciliationRequired, RefundNotAllowed) as exc:
            log.warning("payments.webhook_rejected", order_id=str(order.id), code=exc.error_code)
            return WebhookResultDTO(
                event=event.type.value,
                processed=False,
                order_id=str(order.id),
                message=exc.message,
            )

        log.info("payments.webhook_processed", order_id=str(order.id))
        return WebhookResultDTO(event=event.type.value, processed=True, order_id=str(order.id))

    def get_payment_status(self, order_id: Any, user_id: Any = None) -> Order:
        return self._orders.get_order(order_id, user_id=user_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_for_verification(self, dto: VerifyPaymentDTO, user_id: Any) -> Order:
        if dto.order_id is not None:
            return self._orders.get_order(dto.order_id, user_id=user_id)
        order = self._order_repo.get_by_gateway_order_id(dto.gateway_order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise OrderNotFound("Order not found for this payment")
        return order

    def _resolve_for_event(self, event: GatewayEvent) -> Optional[Order]:
        if event.order_id:
            order = self._order_repo.get_by_id(event.order_id)
            if order is not None:
                return order
        if event.order_ref:
            order = self._order_repo.get_by_gateway_order_id(event.order_ref)
            if order is not None:
                return order
        return self._order_repo.get_by_gateway_payment_id(event.payment_ref)
