"""Stock ledger entry model.

Business rules implemented:
- One entry per stock mutation, written in the same transaction as the
  product's stock record update.
- Entries are append-only: updating or deleting an existing row raises.
- ``new_stock_total - previous_stock_total`` equals the signed quantity
  for ADD, ADJUST and DAMAGED (DAMAGED is stored negative); RESERVE,
  RELEASE and DEDUCT record the positive magnitude applied.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.inventory.constants import NOTES_MAX_LENGTH, REASON_MAX_LENGTH, ActionType
from modules.inventory.exceptions import LedgerEntryImmutable


class StockLedgerQuerySet(models.QuerySet):
    def update(self, **kwargs: Any) -> int:
        raise LedgerEntryImmutable()

    def delete(self) -> tuple[int, dict[str, int]]:
        raise LedgerEntryImmutable()


class StockLedgerEntry(BaseModel):
    """Immutable audit record of one stock mutation."""

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    action_type = models.CharField(max_length=10, choices=ActionType.choices)
    quantity = models.IntegerField()
    previous_stock_total = models.PositiveIntegerField()
    previous_stock_reserved = models.PositiveIntegerField()
    new_stock_total = models.PositiveIntegerField()
    new_stock_reserved = models.PositiveIntegerField()
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_ledger_entries",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_ledger_entries",
    )
    reason = models.CharField(max_length=REASON_MAX_LENGTH, blank=True, default="")
    notes = models.TextField(max_length=NOTES_MAX_LENGTH, blank=True, default="")

    objects = StockLedgerQuerySet.as_manager()

    class Meta:
        db_table = "stock_ledger_entries"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "-created_at"], name="ledger_product_created_idx"),
            models.Index(fields=["action_type", "-created_at"], name="ledger_action_created_idx"),
            models.Index(fields=["performed_by", "-created_at"], name="ledger_actor_created_idx"),
            models.Index(fields=["order"], name="ledger_order_idx"),
            models.Index(fields=["-created_at"], name="ledger_created_idx"),
        ]

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def previous_stock_available(self) -> int:
        return self.previous_stock_total - self.previous_stock_reserved

    @property
    def new_stock_available(self) -> int:
        return self.new_stock_total - self.new_stock_reserved

    @property
    def action_description(self) -> str:
        return ActionType(self.action_type).label

    # ------------------------------------------------------------------
    # Append-only persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise LedgerEntryImmutable()
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> tuple[int, dict[str, int]]:
        raise LedgerEntryImmutable()

    def __str__(self) -> str:
        return f"{self.action_type} {self.quantity:+d} on {self.product_id}"
