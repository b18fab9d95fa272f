"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Concurrency
control on order transitions uses ``select_for_update()``; the service
acquires the lock before reading the status it validates.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from modules.core.outbox import record_event
from modules.orders.constants import OrderStatus, REVENUE_STATES
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_MONEY = models.DecimalField(max_digits=14, decimal_places=2)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Create an order with its items atomically.

        ``items`` are dicts of ``OrderItem`` field values (``product``,
        ``product_snapshot``, ``quantity`` and the priced amounts).
        """
        order = Order(**data)
        order.save()
        OrderItem.objects.bulk_create(OrderItem(order=order, **item) for item in items)
        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> "models.QuerySet[Order]":
        return (
            Order.objects.alive()
            .select_related("user", "assigned_employee")
            .prefetch_related("items__product", "status_history")
        )

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Lock the order row (SELECT FOR UPDATE).

        Items are prefetched after the lock so the caller can iterate
        over them while the row is held.
        """
        try:
            order = (
                Order.objects.select_for_update()
                .filter(id=id, deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None
        if order is not None:
            models.prefetch_related_objects([order], "items__product")
        return order

    def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Order]:
        if not gateway_order_id:
            return None
        return Order.objects.alive().filter(gateway_order_id=gateway_order_id).first()

    def get_by_gateway_payment_id(self, gateway_payment_id: str) -> Optional[Order]:
        if not gateway_payment_id:
            return None
        return Order.objects.alive().filter(gateway_payment_id=gateway_payment_id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List orders with optional ORM look-ups, e.g.
        ``{"status": "paid"}`` or ``{"user_id": 3}``.
        """
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and write its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            record_event(event)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    def add_history(
        self,
        order: Order,
        old_status: Optional[str],
        new_status: str,
        note: str = "",
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            note=note,
            user_id=user_id,
        )
        logger.info(
            "order.history_added",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    @transaction.atomic
    def flag_reconciliation(self, id: Any, note: str) -> None:
        Order.objects.filter(id=id).update(requires_reconciliation=True, reconciliation_note=note)
        logger.error("order.reconciliation_required", order_id=str(id), note=note)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        queryset = Order.objects.alive()
        by_status = {status: 0 for status in OrderStatus.values}
        for row in queryset.values("status").annotate(count=Count("id")).order_by():
            by_status[row["status"]] = row["count"]

        totals = queryset.aggregate(
            revenue=Coalesce(
                Sum("total_amount", filter=Q(status__in=REVENUE_STATES)),
                Decimal("0"),
                output_field=_MONEY,
            ),
            pending_payment_amount=Coalesce(
                Sum("total_amount", filter=Q(status=OrderStatus.PENDING_PAYMENT)),
                Decimal("0"),
                output_field=_MONEY,
            ),
            requires_reconciliation=Count("id", filter=Q(requires_reconciliation=True)),
        )
        return {
            "total_orders": sum(by_status.values()),
            "by_status": by_status,
            **totals,
        }
