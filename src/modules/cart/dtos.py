"""Cart DTOs.

``CartDTO`` is the priced read model of a cart: every line is quoted with
the product's current bulk pricing, and lines whose quantity exceeds the
available stock are reported as ``stock_issues``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from modules.products.pricing import money

if TYPE_CHECKING:
    from modules.cart.models import CartItem


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    sku: str
    unit: str
    quantity: int
    price_per_unit: Decimal
    discount_percent: Decimal
    tier_applied: str
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal

    @classmethod
    def from_entity(cls, item: CartItem) -> CartLineDTO:
        product = item.product
        quote = product.quote(item.quantity)
        return cls(
            product_id=product.id,
            product_name=product.name,
            sku=product.sku,
            unit=product.unit,
            quantity=item.quantity,
            price_per_unit=quote.price_per_unit,
            discount_percent=quote.discount_percent,
            tier_applied=quote.tier_applied,
            subtotal=quote.subtotal,
            gst_amount=quote.gst_amount,
            total=quote.total,
        )


class StockIssueDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    product_name: str
    requested_quantity: int
    available_stock: int


class CartDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[CartLineDTO]
    item_count: int
    subtotal: Decimal
    estimated_gst: Decimal
    estimated_total: Decimal
    stock_issues: List[StockIssueDTO]
    can_checkout: bool

    @classmethod
    def from_items(cls, items: List[CartItem]) -> CartDTO:
        lines = [CartLineDTO.from_entity(item) for item in items]
        issues = [
            StockIssueDTO(
                product_id=item.product.id,
                product_name=item.product.name,
                requested_quantity=item.quantity,
                available_stock=item.product.stock_available,
            )
            for item in items
            if item.product.stock_available < item.quantity
        ]
        subtotal = money(sum((line.subtotal for line in lines), Decimal("0")))
        gst = money(sum((line.gst_amount for line in lines), Decimal("0")))
        return cls(
            items=lines,
            item_count=len(lines),
            subtotal=subtotal,
            estimated_gst=gst,
            estimated_total=subtotal + gst,
            stock_issues=issues,
            can_checkout=bool(lines) and not issues,
        )
