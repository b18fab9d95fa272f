"""Order service layer (Use Cases).

Orchestrates the order lifecycle.  Every transition is one unit of work:
the order row is locked first, the transition is validated against the
state machine, the stock effect is applied line by line (products in
ascending primary-key order) through the inventory engine, and the
history record plus domain event are written before commit.  A failure
at any step rolls back the whole transition.

Stock effects:
- create_order: RESERVE every line.
- confirm_payment: DEDUCT every line.
- cancel_order (pending payment only): RELEASE every line.
- refund_and_restock (paid / accepted): ADD every line back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

import structlog
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone

from modules.cart.exceptions import EmptyCart
from modules.core.unit_of_work import UnitOfWork
from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.inventory.exceptions import InventoryError, StockWriteConflict
from modules.orders.constants import (
    CANCELLATION_REASON_MAX_LENGTH,
    INTERNAL_NOTES_MAX_LENGTH,
    PAYMENT_CONFIRMABLE,
    PAYMENT_SUBMITTABLE,
    REFUNDABLE_STATES,
    REFUND_RECORDABLE,
    REQUIRED_ADDRESS_FIELDS,
    RESERVED_STATES,
    STAFF_STATUS_UPDATES,
    CancelledBy,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.dtos import InvoiceDTO, OrderStatsDTO
from modules.orders.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentConfirmed,
)
from modules.orders.exceptions import (
    DuplicateConfirmation,
    EmployeeNotFound,
    IllegalTransition,
    InvalidAddress,
    InvalidPaymentMethod,
    OrderNotFound,
    PaymentReconciliationRequired,
    RefundNotAllowed,
)
from modules.orders.totals import compute_totals
from modules.products.pricing import money

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.inventory.services import InventoryService
    from modules.orders.dtos import AddressDTO, CreateOrderDTO, GatewayRefsDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _actor_id(actor: Any) -> Optional[int]:
    return getattr(actor, "pk", actor)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the inventory engine via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        customer_repository: ICustomerRepository,
        inventory_service: InventoryService,
        unit_of_work: Optional[UnitOfWork] = None,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._customer_repo = customer_repository
        self._inventory = inventory_service
        self._uow = unit_of_work or UnitOfWork()

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def create_order(self, user_id: Any, dto: CreateOrderDTO) -> Order:
        """Place an order from the user's cart and reserve its stock.

        Steps (one unit of work):
        1. Load the cart and the customer snapshot.
        2. Validate and price every line (bulk pricing, GST).
        3. Persist the order and its items.
        4. Reserve each line, products in ascending PK order.
        5. Clear the cart, record history and ``OrderPlaced``.

        Raises:
            InvalidPaymentMethod: unknown payment method.
            InvalidAddress: shipping address lacks name, phone or street.
            EmptyCart: nothing to order.
            CustomerNotFound / InactiveCustomer: buyer cannot order.
            InactiveProduct / OrderQuantityOutOfRange: a line is not orderable.
            InsufficientStock: a line cannot be reserved; nothing is kept.
        """
        if dto.payment_method not in PaymentMethod.values:
            raise InvalidPaymentMethod(
                f"Payment method must be one of: {', '.join(PaymentMethod.values)}"
            )
        _require_address(dto.shipping_address)
        log = logger.bind(user_id=user_id)

        def place() -> Order:
            cart_items = self._cart_repo.items(user_id)
            if not cart_items:
                raise EmptyCart()

            profile = self._customer_repo.get_by_user(user_id)
            if profile is not None and not profile.is_active:
                raise InactiveCustomer()
            snapshot = self._customer_repo.snapshot_for_user(user_id)
            if snapshot is None:
                raise CustomerNotFound()

            lines = []
            for cart_item in sorted(cart_items, key=lambda i: i.product_id):
                product = cart_item.product
                product.check_orderable(cart_item.quantity)
                lines.append((product, cart_item.quantity, product.quote(cart_item.quantity)))

            totals = compute_totals(
                [quote for _, _, quote in lines],
                dto.shipping_address.state,
                settings.ORDER_SHIPPING_CHARGE,
            )
            order = self._order_repo.create(
                {
                    "user_id": user_id,
                    "customer_snapshot": snapshot,
                    "shipping_address": dto.shipping_address.as_json(),
                    "billing_address": (dto.billing_address or dto.shipping_address).as_json(),
                    "payment_method": dto.payment_method,
                    "customer_notes": dto.customer_notes,
                    "expected_delivery_date": dto.expected_delivery_date,
                    "subtotal": totals.subtotal,
                    "total_discount": totals.total_discount,
                    "cgst": totals.cgst,
                    "sgst": totals.sgst,
                    "igst": totals.igst,
                    "total_gst": totals.total_gst,
                    "shipping_charges": totals.shipping_charges,
                    "round_off": totals.round_off,
                    "total_amount": totals.total_amount,
                },
                [
                    {
                        "product": product,
                        "product_snapshot": _product_snapshot(product),
                        "quantity": quantity,
                        "price_per_unit": quote.price_per_unit,
                        "discount_percent": quote.discount_percent,
                        "subtotal": quote.subtotal,
                        "gst_amount": quote.gst_amount,
                        "total": quote.total,
                    }
                    for product, quantity, quote in lines
                ],
            )

            for product, quantity, _ in lines:
                self._inventory.reserve_stock(product.id, quantity, order.id, actor=user_id)

            self._cart_repo.clear(user_id)
            self._order_repo.add_history(
                order, None, OrderStatus.PENDING_PAYMENT, "Order placed", user_id
            )
            order.add_domain_event(
                OrderPlaced(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    user_id=order.user_id,
                    customer_name=snapshot.get("name") or "Customer",
                    total_amount=str(order.total_amount),
                    item_count=len(lines),
                )
            )
            return self._order_repo.save(order)

        order = self._uow.run(place)
        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(order.id)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def submit_payment(
        self,
        order_id: Any,
        user_id: Any,
        method: Optional[str] = None,
        reference: str = "",
    ) -> Order:
        """Buyer reports a manual payment (UPI / bank transfer).

        No stock effect; staff confirm it afterwards.

        Raises:
            OrderNotFound: missing or not owned by ``user_id``.
            InvalidPaymentMethod: unknown method.
            IllegalTransition: order is not awaiting payment.
        """
        if method is not None and method not in PaymentMethod.values:
            raise InvalidPaymentMethod()

        def submit() -> Order:
            order = self._lock(order_id, user_id=user_id)
            if order.status != OrderStatus.PENDING_PAYMENT or (
                order.payment_status not in PAYMENT_SUBMITTABLE
            ):
                raise IllegalTransition(
                    order.status,
                    OrderStatus.PAID,
                    f"Payment cannot be submitted for an order that is "
                    f"{order.status} with payment {order.payment_status}",
                )
            if method:
                order.payment_method = method
            order.payment_reference = (reference or "").strip()[:100]
            order.payment_status = PaymentStatus.SUBMITTED
            order.payment_submitted_at = timezone.now()
            note = f"Payment submitted via {order.get_payment_method_display()}"
            if order.payment_reference:
                note += f" (ref: {order.payment_reference})"
            self._order_repo.add_history(order, order.status, order.status, note, user_id)
            return self._order_repo.save(order)

        order = self._uow.run(submit)
        logger.info("order.payment_submitted", order_id=str(order.id))
        return order

    def confirm_payment(
        self,
        order_id: Any,
        gateway_refs: Optional[GatewayRefsDTO] = None,
        actor: Any = None,
    ) -> Order:
        """Confirm payment and deduct the reserved stock (idempotent).

        The order row is locked before the duplicate check, inside the same
        transaction as the deductions, so concurrent confirmations cannot
        both deduct.

        Raises:
            OrderNotFound: order does not exist.
            IllegalTransition: order is not awaiting payment.
            PaymentReconciliationRequired: a deduction failed; the order is
                flagged and nothing else is written.
        """
        actor_id = _actor_id(actor)

        def confirm() -> Order:
            order = self._lock(order_id)
            log = logger.bind(order_id=str(order.id), order_number=order.order_number)
            if order.payment_status == PaymentStatus.CONFIRMED:
                log.info(
                    "order.duplicate_payment_confirmation",
                    code=DuplicateConfirmation().error_code,
                )
                return order
            if order.status != OrderStatus.PENDING_PAYMENT or (
                order.payment_status not in PAYMENT_CONFIRMABLE
            ):
                raise IllegalTransition(order.status, OrderStatus.PAID)

            for item in _by_product(order):
                self._inventory.deduct_stock(item.product_id, item.quantity, order.id, actor=actor_id)

            old_status = order.status
            order.status = OrderStatus.PAID
            order.payment_status = PaymentStatus.CONFIRMED
            order.paid_at = timezone.now()
            order.payment_confirmed_by_id = actor_id
            if gateway_refs is not None:
                for field, value in gateway_refs.as_fields().items():
                    setattr(order, field, value)
            order.assign_invoice_number()

            self._order_repo.add_history(
                order, old_status, OrderStatus.PAID, "Payment confirmed", actor_id
            )
            order.add_domain_event(
                PaymentConfirmed(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    user_id=order.user_id,
                    total_amount=str(order.total_amount),
                    payment_method=order.payment_method,
                )
            )
            order = self._order_repo.save(order)
            log.info("order.payment_confirmed", invoice_number=order.invoice_number)
            return order

        try:
            return self._uow.run(confirm)
        except StockWriteConflict:
            raise
        except InventoryError as exc:
            note = f"Stock deduction failed at payment confirmation: {exc.message}"
            self._uow.run(lambda: self._order_repo.flag_reconciliation(order_id, note))
            raise PaymentReconciliationRequired() from exc

    def mark_payment_failed(
        self,
        order_id: Any,
        gateway_refs: Optional[GatewayRefsDTO] = None,
        reason: str = "",
    ) -> Order:
        """Record a failed payment attempt; no stock effect.

        A no-op on orders whose payment is already confirmed or that are no
        longer awaiting payment.
        """

        def fail() -> Order:
            order = self._lock(order_id)
            if (
                order.payment_status == PaymentStatus.CONFIRMED
                or order.status != OrderStatus.PENDING_PAYMENT
            ):
                logger.info(
                    "order.payment_failure_ignored",
                    order_id=str(order.id),
                    status=order.status,
                    payment_status=order.payment_status,
                )
                return order
            order.payment_status = PaymentStatus.FAILED
            if gateway_refs is not None:
                for field, value in gateway_refs.as_fields().items():
                    setattr(order, field, value)
            note = "Payment failed" + (f": {reason}" if reason else "")
            self._order_repo.add_history(order, order.status, order.status, note)
            return self._order_repo.save(order)

        order = self._uow.run(fail)
        logger.info("order.payment_failed", order_id=str(order.id), reason=reason)
        return order

    def record_refund(self, order_id: Any, amount: Decimal, refund_ref: str = "") -> Order:
        """Record a refund notified by the payment gateway; no stock effect.

        A refund whose ``refund_ref`` was already recorded is a no-op, and
        ``amount_refunded`` never exceeds the order total.

        Raises:
            OrderNotFound: order does not exist.
            RefundNotAllowed: payment is not confirmed or partially
                refunded, or the amount is not positive.
        """
        amount = money(Decimal(amount))

        def refund() -> Order:
            order = self._lock(order_id)
            if refund_ref and refund_ref in order.gateway_refund_ids:
                logger.info(
                    "order.duplicate_refund_ignored",
                    order_id=str(order.id),
                    refund_ref=refund_ref,
                )
                return order
            if order.payment_status not in REFUND_RECORDABLE:
                raise RefundNotAllowed(
                    f"Cannot record a refund while payment is {order.payment_status}"
                )
            if amount <= 0:
                raise RefundNotAllowed("Refund amount must be greater than zero")

            order.amount_refunded = min(order.amount_refunded + amount, order.total_amount)
            order.payment_status = (
                PaymentStatus.REFUNDED
                if order.amount_refunded >= order.total_amount
                else PaymentStatus.PARTIALLY_REFUNDED
            )
            if refund_ref:
                order.gateway_refund_ids = [*order.gateway_refund_ids, refund_ref]
            self._order_repo.add_history(
                order, order.status, order.status, f"Refund of Rs. {amount} recorded"
            )
            return self._order_repo.save(order)

        order = self._uow.run(refund)
        logger.info(
            "order.refund_recorded",
            order_id=str(order.id),
            amount=str(amount),
            payment_status=order.payment_status,
        )
        return order

    # ------------------------------------------------------------------
    # Fulfilment
    # ------------------------------------------------------------------

    def update_status(
        self,
        order_id: Any,
        new_status: str,
        note: str = "",
        actor: Any = None,
    ) -> Order:
        """Staff-driven transition to accepted, in_transit or delivered.

        A no-op when the order is already in ``new_status``.  ``paid`` and
        ``cancelled`` have dedicated operations and are rejected here.

        Raises:
            OrderNotFound: order does not exist.
            IllegalTransition: transition not allowed.
        """
        actor_id = _actor_id(actor)

        def transition() -> Order:
            order = self._lock(order_id)
            if order.status == new_status:
                return order
            log = logger.bind(
                order_id=str(order.id), current_status=order.status, new_status=new_status
            )
            if new_status not in STAFF_STATUS_UPDATES or not order.can_transition_to(new_status):
                log.warning("order.invalid_transition")
                raise IllegalTransition(order.status, new_status)

            old_status = order.status
            order.status = new_status
            if new_status == OrderStatus.DELIVERED:
                order.actual_delivery_date = timezone.now()
            if note:
                order.internal_notes = _append_note(order.internal_notes, note)

            label = OrderStatus(new_status).label
            self._order_repo.add_history(
                order, old_status, new_status, note or f"Status changed to {label}", actor_id
            )
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    user_id=order.user_id,
                    old_status=old_status,
                    new_status=new_status,
                )
            )
            order = self._order_repo.save(order)
            log.info("order.status_updated")
            return order

        return self._uow.run(transition)

    def cancel_order(
        self,
        order_id: Any,
        actor: Any = None,
        reason: str = "",
        cancelled_by: str = CancelledBy.CUSTOMER,
        user_id: Any = None,
    ) -> Order:
        """Cancel an unpaid order and release its reserved stock.

        Paid or accepted orders must go through ``refund_and_restock``.
        Cancelling an already cancelled order is a no-op.  ``user_id``
        restricts the operation to the buyer's own orders.

        Raises:
            OrderNotFound: order does not exist (or is not the buyer's).
            IllegalTransition: stock is no longer reserved.
        """
        actor_id = _actor_id(actor)
        reason = (reason or "").strip()[:CANCELLATION_REASON_MAX_LENGTH]

        def cancel() -> Order:
            order = self._lock(order_id, user_id=user_id)
            if order.status == OrderStatus.CANCELLED:
                return order
            if order.status not in RESERVED_STATES:
                message = None
                if order.status in REFUNDABLE_STATES:
                    message = (
                        f"Order is {order.status}; paid orders are cancelled "
                        f"through the refund workflow"
                    )
                raise IllegalTransition(order.status, OrderStatus.CANCELLED, message)

            for item in _by_product(order):
                self._inventory.release_stock(
                    item.product_id,
                    item.quantity,
                    order.id,
                    actor=actor_id,
                    reason=reason or None,
                )
            return self._close(
                order, actor_id, reason, cancelled_by, refunded=False
            )

        return self._uow.run(cancel)

    def refund_and_restock(self, order_id: Any, actor: Any = None, reason: str = "") -> Order:
        """Cancel a paid or accepted order, refund it and restock its lines.

        Each line goes back on the shelf as a ledger ADD referencing the
        order.

        Raises:
            OrderNotFound: order does not exist.
            IllegalTransition: order is not paid or accepted.
        """
        actor_id = _actor_id(actor)
        reason = (reason or "").strip()[:CANCELLATION_REASON_MAX_LENGTH]

        def refund() -> Order:
            order = self._lock(order_id)
            if order.status not in REFUNDABLE_STATES:
                raise IllegalTransition(
                    order.status,
                    OrderStatus.CANCELLED,
                    f"Only paid or accepted orders can be refunded (order is {order.status})",
                )
            for item in _by_product(order):
                self._inventory.add_stock(
                    item.product_id,
                    item.quantity,
                    actor=actor_id,
                    reason=f"Restocked from refunded order {order.order_number}",
                    order_id=order.id,
                )
            order.payment_status = PaymentStatus.REFUNDED
            order.amount_refunded = order.total_amount
            return self._close(order, actor_id, reason, CancelledBy.STAFF, refunded=True)

        return self._uow.run(refund)

    def assign_employee(self, order_id: Any, employee_id: Any, actor: Any = None) -> Order:
        """Assign a staff member to handle the order (no status change).

        Raises:
            EmployeeNotFound: ``employee_id`` is not an active staff user.
            IllegalTransition: the order is closed.
        """
        employee = (
            get_user_model()
            .objects.filter(pk=employee_id, is_staff=True, is_active=True)
            .first()
        )
        if employee is None:
            raise EmployeeNotFound()

        def assign() -> Order:
            order = self._lock(order_id)
            if order.is_terminal:
                raise IllegalTransition(
                    order.status, order.status, f"Cannot assign a {order.status} order"
                )
            order.assigned_employee = employee
            name = employee.get_full_name() or employee.get_username()
            self._order_repo.add_history(
                order, order.status, order.status, f"Assigned to {name}", _actor_id(actor)
            )
            return self._order_repo.save(order)

        order = self._uow.run(assign)
        logger.info("order.employee_assigned", order_id=str(order.id), employee_id=employee_id)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, user_id: Any = None) -> Order:
        """Raises ``OrderNotFound`` if missing or not owned by ``user_id``."""
        order = self._order_repo.get_by_id(order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise OrderNotFound()
        return order

    def list_orders(self, filters: Optional[dict] = None) -> "models.QuerySet[Order]":
        return self._order_repo.list(filters)

    def list_user_orders(self, user_id: Any) -> "models.QuerySet[Order]":
        return self._order_repo.list({"user_id": user_id})

    def list_employee_orders(self, employee_id: Any) -> "models.QuerySet[Order]":
        return self._order_repo.list({"assigned_employee_id": employee_id})

    def list_pending_payment_orders(self) -> "models.QuerySet[Order]":
        return self._order_repo.list(
            {
                "status": OrderStatus.PENDING_PAYMENT,
                "payment_status__in": [PaymentStatus.PENDING, PaymentStatus.SUBMITTED],
            }
        ).order_by("created_at")

    def get_invoice_data(self, order_id: Any, user_id: Any = None) -> InvoiceDTO:
        return InvoiceDTO.from_entity(self.get_order(order_id, user_id=user_id))

    def get_order_stats(self) -> OrderStatsDTO:
        return OrderStatsDTO(**self._order_repo.stats())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock(self, order_id: Any, user_id: Any = None) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise OrderNotFound()
        return order

    def _close(
        self,
        order: Order,
        actor_id: Optional[int],
        reason: str,
        cancelled_by: str,
        refunded: bool,
    ) -> Order:
        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.cancelled_at = timezone.now()
        order.cancelled_by = cancelled_by
        order.cancellation_reason = reason

        note = "Order refunded and cancelled" if refunded else "Order cancelled"
        if reason:
            note = f"{note}: {reason}"
        self._order_repo.add_history(order, old_status, OrderStatus.CANCELLED, note, actor_id)
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                order_number=order.order_number,
                user_id=order.user_id,
                cancelled_by=cancelled_by,
                reason=reason,
                refunded=refunded,
                previous_status=old_status,
            )
        )
        order = self._order_repo.save(order)
        logger.info(
            "order.cancelled",
            order_id=str(order.id),
            previous_status=old_status,
            cancelled_by=cancelled_by,
            refunded=refunded,
        )
        return order


def _require_address(address: AddressDTO) -> None:
    missing = [field for field in REQUIRED_ADDRESS_FIELDS if not getattr(address, field)]
    if missing:
        raise InvalidAddress(f"Shipping address is missing: {', '.join(missing)}")


def _product_snapshot(product: Any) -> dict:
    return {
        "name": product.name,
        "sku": product.sku,
        "category": product.category,
        "brand": product.brand,
        "unit": product.unit,
        "hsn_code": product.hsn_code,
        "gst_rate": product.gst_rate,
    }


def _by_product(order: Order) -> List[Any]:
    return sorted(order.items.all(), key=lambda item: item.product_id)


def _append_note(existing: str, note: str) -> str:
    combined = f"{existing}\n{note}" if existing else note
    return combined[-INTERNAL_NOTES_MAX_LENGTH:]
