"""Django ORM implementation of the inventory repositories.

Concurrency control on the stock record combines ``select_for_update()``
(honoured by PostgreSQL/MySQL) with a conditional UPDATE on the previous
values, so backends that ignore row locks (SQLite) still refuse a write
computed from a stale read.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from modules.inventory.models import StockLedgerEntry
from modules.inventory.repositories.interfaces import ILedgerRepository, IStockRepository
from modules.inventory.stock import StockLevel
from modules.products.constants import ProductStatus
from modules.products.models import Product

logger = structlog.get_logger(__name__)


def _active_products():
    return Product.objects.alive().filter(status=ProductStatus.ACTIVE).annotate(
        available=F("stock_total") - F("stock_reserved")
    )


class StockDjangoRepository(IStockRepository):
    """Stock record access backed by Django ORM."""

    def get_for_update(self, product_id: Any) -> Optional[Product]:
        try:
            return (
                Product.objects.select_for_update()
                .filter(id=product_id, deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def compare_and_swap(
        self, product_id: Any, expected: StockLevel, new: StockLevel
    ) -> bool:
        updated = Product.objects.filter(
            id=product_id,
            stock_total=expected.total,
            stock_reserved=expected.reserved,
        ).update(
            stock_total=new.total,
            stock_reserved=new.reserved,
            updated_at=timezone.now(),
        )
        return updated == 1

    def low_stock(self, limit: int) -> List[Product]:
        return list(
            _active_products()
            .filter(available__lte=F("low_stock_threshold"))
            .order_by("available", "name")[:limit]
        )

    def out_of_stock(self, limit: int) -> List[Product]:
        return list(_active_products().filter(available__lte=0).order_by("name")[:limit])

    def product_totals(self) -> Dict[str, Any]:
        stock_value = ExpressionWrapper(
            F("stock_total") * F("price"),
            output_field=DecimalField(max_digits=18, decimal_places=2),
        )
        totals = _active_products().aggregate(
            total_products=Count("id"),
            total_stock_value=Coalesce(
                Sum(stock_value),
                Decimal("0"),
                output_field=DecimalField(max_digits=18, decimal_places=2),
            ),
            total_stock_units=Coalesce(Sum("stock_total"), 0),
            total_reserved=Coalesce(Sum("stock_reserved"), 0),
            out_of_stock=Count("id", filter=Q(available__lte=0)),
            low_stock=Count(
                "id",
                filter=Q(available__gt=0, available__lte=F("low_stock_threshold")),
            ),
        )
        return totals


class LedgerDjangoRepository(ILedgerRepository):
    """Append-only stock ledger backed by Django ORM."""

    def append(self, **fields: Any) -> StockLedgerEntry:
        entry = StockLedgerEntry(**fields)
        entry.save()
        return entry

    def query(
        self, filters: Dict[str, Any], offset: int, limit: int
    ) -> Tuple[List[StockLedgerEntry], int]:
        """Supported filter keys: ``product_id``, ``action_type``,
        ``performed_by``, ``order_id``, ``start_date``, ``end_date``.
        """
        queryset = StockLedgerEntry.objects.select_related(
            "product", "performed_by", "order"
        )
        lookups = {
            "product_id": "product_id",
            "action_type": "action_type",
            "performed_by": "performed_by_id",
            "order_id": "order_id",
            "start_date": "created_at__gte",
            "end_date": "created_at__lte",
        }
        for key, lookup in lookups.items():
            value = filters.get(key)
            if value not in (None, ""):
                queryset = queryset.filter(**{lookup: value})

        total = queryset.count()
        entries = list(queryset.order_by("-created_at", "-id")[offset : offset + limit])
        return entries, total

    def count_since(self, since: datetime) -> int:
        return StockLedgerEntry.objects.filter(created_at__gte=since).count()

    def breakdown_since(self, since: datetime) -> Dict[str, Dict[str, int]]:
        rows = (
            StockLedgerEntry.objects.filter(created_at__gte=since)
            .values("action_type")
            .annotate(count=Count("id"), total_quantity=Sum("quantity"))
            .order_by("action_type")
        )
        return {
            row["action_type"]: {
                "count": row["count"],
                "total_quantity": row["total_quantity"] or 0,
            }
            for row in rows
        }
