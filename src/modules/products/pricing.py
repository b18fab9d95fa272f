"""Bulk-pricing quotes.

A product may carry quantity tiers; the tier with the highest
``min_quantity`` whose range covers the ordered quantity wins.  Without a
matching tier the product's wholesale ``price`` applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

if TYPE_CHECKING:
    from modules.products.models import Product

CENT = Decimal("0.01")


def money(value: Decimal | int | str) -> Decimal:
    """Round to paise using commercial rounding."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceQuote:
    quantity: int
    base_price: Decimal
    price_per_unit: Decimal
    discount_percent: Decimal
    tier_applied: str
    gst_rate: int
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal

    @property
    def savings(self) -> Decimal:
        return money((self.base_price - self.price_per_unit) * self.quantity)


def find_tier(tiers: Sequence[Dict[str, Any]], quantity: int) -> Optional[Dict[str, Any]]:
    for tier in sorted(tiers, key=lambda t: int(t["min_quantity"]), reverse=True):
        max_quantity = tier.get("max_quantity")
        if quantity >= int(tier["min_quantity"]) and (
            max_quantity is None or quantity <= int(max_quantity)
        ):
            return tier
    return None


def quote_price(product: Product, quantity: int) -> PriceQuote:
    base_price = Decimal(product.price)
    tier = find_tier(product.bulk_pricing or [], quantity)

    if tier is None:
        price_per_unit = base_price
        discount_percent = Decimal("0")
        tier_applied = "base"
    else:
        price_per_unit = Decimal(str(tier["price_per_unit"]))
        discount_percent = Decimal(str(tier.get("discount_percent") or 0))
        tier_applied = f"{tier['min_quantity']}+ units"

    subtotal = money(price_per_unit * quantity)
    gst_amount = money(subtotal * product.gst_rate / Decimal(100))
    return PriceQuote(
        quantity=quantity,
        base_price=base_price,
        price_per_unit=money(price_per_unit),
        discount_percent=discount_percent,
        tier_applied=tier_applied,
        gst_rate=product.gst_rate,
        subtotal=subtotal,
        gst_amount=gst_amount,
        total=subtotal + gst_amount,
    )
