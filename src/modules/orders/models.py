"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- Invalid status transitions rejected (enforced at service layer).
- Each status change generates a history record (old/new status,
  timestamp, user, note); history rows are append-only.
- Order number is a daily sequence ``<PREFIX>-YYYYMMDD-NNNNN``; a
  collision on insert retries with the next number.
- Customer, product and address data are snapshotted at creation so
  later edits never rewrite a placed order.
- Totals are written once at creation (see ``modules.orders.totals``).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    CUSTOMER_NOTES_MAX_LENGTH,
    INTERNAL_NOTES_MAX_LENGTH,
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_NUMBER_SEQUENCE_DIGITS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    CancelledBy,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money_field(**kwargs: Any) -> models.DecimalField:
    kwargs.setdefault("default", Decimal("0.00"))
    return models.DecimalField(max_digits=12, decimal_places=2, **kwargs)


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier generated on first
    save.  The UUIDv7 ``id`` is used for all internal references and API
    look-ups.  Gateway references (``gateway_*``) are stored on the order
    so webhooks can be matched back to it.
    """

    order_number = models.CharField(max_length=32, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer_snapshot = models.JSONField(default=dict)
    shipping_address = models.JSONField(default=dict)
    billing_address = models.JSONField(default=dict, blank=True)

    subtotal = _money_field()
    total_discount = _money_field()
    cgst = _money_field()
    sgst = _money_field()
    igst = _money_field()
    total_gst = _money_field()
    shipping_charges = _money_field()
    round_off = _money_field()
    total_amount = _money_field()
    amount_refunded = _money_field()
    # Gateway refund ids already applied to ``amount_refunded``.
    gateway_refund_ids = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING_PAYMENT,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_reference = models.CharField(max_length=100, blank=True, default="")
    payment_submitted_at = models.DateTimeField(null=True, blank=True)
    gateway_order_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True, default="")
    gateway_signature = models.CharField(max_length=256, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_confirmed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    invoice_number = models.CharField(max_length=32, unique=True, null=True, blank=True)
    invoice_date = models.DateTimeField(null=True, blank=True)

    assigned_employee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_orders",
    )
    customer_notes = models.TextField(max_length=CUSTOMER_NOTES_MAX_LENGTH, blank=True, default="")
    internal_notes = models.TextField(max_length=INTERNAL_NOTES_MAX_LENGTH, blank=True, default="")
    expected_delivery_date = models.DateField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.CharField(max_length=500, blank=True, default="")
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(
        max_length=10, choices=CancelledBy.choices, blank=True, default=""
    )

    requires_reconciliation = models.BooleanField(default=False)
    reconciliation_note = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["payment_status"], name="orders_payment_status_idx"),
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Number generation
    # ------------------------------------------------------------------

    @classmethod
    def next_number(cls, field: str, prefix: str, offset: int = 0) -> str:
        """Next ``<prefix>-YYYYMMDD-NNNNN`` value of ``field`` for today."""
        stem = f"{prefix}-{timezone.localdate():%Y%m%d}-"
        last: Optional[str] = (
            cls.objects.filter(**{f"{field}__startswith": stem})
            .order_by(f"-{field}")
            .values_list(field, flat=True)
            .first()
        )
        sequence = int(last.rsplit("-", 1)[1]) if last else 0
        return f"{stem}{sequence + 1 + offset:0{ORDER_NUMBER_SEQUENCE_DIGITS}d}"

    def assign_invoice_number(self) -> str:
        """Draw the invoice number; it is re-drawn on save if already taken."""
        if not self.invoice_number:
            self.invoice_number = self.next_number(
                "invoice_number", settings.INVOICE_NUMBER_PREFIX
            )
            self.invoice_date = timezone.now()
            self._invoice_number_unsaved = True
        return self.invoice_number

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.billing_address:
            self.billing_address = self.shipping_address
        if not self.order_number:
            self.order_number = self.next_number("order_number", settings.ORDER_NUMBER_PREFIX)
            self._save_numbered("order_number", settings.ORDER_NUMBER_PREFIX, args, kwargs)
        elif getattr(self, "_invoice_number_unsaved", False):
            self._save_numbered("invoice_number", settings.INVOICE_NUMBER_PREFIX, args, kwargs)
        else:
            super().save(*args, **kwargs)
        self._invoice_number_unsaved = False

    def _save_numbered(self, field: str, prefix: str, args: tuple, kwargs: dict) -> None:
        """Save inside a savepoint, re-drawing ``field`` when another order took it."""
        for attempt in range(ORDER_NUMBER_MAX_RETRIES):
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                taken = getattr(self, field)
                logger.warning(
                    "order.number_collision", field=field, number=taken, attempt=attempt + 1
                )
                number = self.next_number(field, prefix)
                if number == taken:
                    number = self.next_number(field, prefix, offset=attempt + 1)
                setattr(self, field, number)
        raise RuntimeError(
            f"Failed to generate unique {field} after {ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Priced order line.

    ``product_snapshot`` and the price fields are frozen at creation; they
    never change even if the product is edited later.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_snapshot = models.JSONField(default=dict)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_snapshot.get('name', self.product_id)} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status changes and notes.

    ``user`` is nullable: ``None`` means the change was performed by the
    system (e.g. a gateway webhook).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    note = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValueError("Order status history is append-only.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
