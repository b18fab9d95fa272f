"""Inventory DTOs.

- ``StockMutationResult``: output of every mutation ``{product, entry}``.
- ``LedgerQueryDTO``: validated filters and paging for ledger reads.
- ``LedgerEntryDTO`` / ``LedgerPageDTO``: ledger read model.
- ``InventoryStatsDTO``: dashboard aggregates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from modules.inventory.constants import ActionType

if TYPE_CHECKING:
    from modules.inventory.models import StockLedgerEntry
    from modules.products.models import Product


@dataclass(frozen=True)
class StockMutationResult:
    product: Product
    entry: StockLedgerEntry


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class LedgerQueryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: Optional[UUID] = None
    action_type: Optional[ActionType] = None
    performed_by: Optional[int] = None
    order_id: Optional[UUID] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=200)

    @model_validator(mode="after")
    def date_range_is_ordered(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be before end_date.")
        return self

    def filters(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"page", "limit"}, exclude_none=True)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class LedgerEntryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    product_name: str
    action_type: str
    action_description: str
    quantity: int
    previous_stock_total: int
    previous_stock_reserved: int
    previous_stock_available: int
    new_stock_total: int
    new_stock_reserved: int
    new_stock_available: int
    performed_by: Optional[int]
    order_id: Optional[UUID]
    reason: str
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: StockLedgerEntry) -> LedgerEntryDTO:
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            product_name=entry.product.name,
            action_type=entry.action_type,
            action_description=entry.action_description,
            quantity=entry.quantity,
            previous_stock_total=entry.previous_stock_total,
            previous_stock_reserved=entry.previous_stock_reserved,
            previous_stock_available=entry.previous_stock_available,
            new_stock_total=entry.new_stock_total,
            new_stock_reserved=entry.new_stock_reserved,
            new_stock_available=entry.new_stock_available,
            performed_by=entry.performed_by_id,
            order_id=entry.order_id,
            reason=entry.reason,
            notes=entry.notes,
            created_at=entry.created_at,
        )


class PaginationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int
    total_pages: int


class LedgerPageDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    logs: List[LedgerEntryDTO]
    pagination: PaginationDTO


class ProductStockStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_products: int
    total_stock_value: Decimal
    total_stock_units: int
    total_reserved: int
    out_of_stock: int
    low_stock: int


class ActionBreakdownDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int
    total_quantity: int


class InventoryStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    products: ProductStockStatsDTO
    recent_activity_count: int
    action_breakdown: Dict[str, ActionBreakdownDTO]
