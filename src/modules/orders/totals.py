"""Order totals and GST split.

Totals are computed once, when the order is placed, from the priced lines
(see ``modules.products.pricing``)::

    total_amount = subtotal + total_gst + shipping_charges + round_off

``total_amount`` is rounded to whole rupees and ``round_off`` records the
difference.  GST is split into CGST + SGST when the goods ship inside the
seller's state, otherwise it is charged as IGST.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from django.conf import settings

from modules.products.pricing import PriceQuote, money

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    total_discount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_gst: Decimal
    shipping_charges: Decimal
    round_off: Decimal
    total_amount: Decimal


def is_intra_state(shipping_state: Optional[str], seller_state: Optional[str] = None) -> bool:
    seller_state = seller_state or settings.SELLER_STATE
    return (shipping_state or "").strip().lower() == seller_state.strip().lower()


def compute_totals(
    quotes: Sequence[PriceQuote],
    shipping_state: Optional[str],
    shipping_charges: Decimal = ZERO,
    seller_state: Optional[str] = None,
) -> OrderTotals:
    subtotal = money(sum((q.subtotal for q in quotes), ZERO))
    total_gst = money(sum((q.gst_amount for q in quotes), ZERO))
    total_discount = money(sum((q.savings for q in quotes), ZERO))
    shipping_charges = money(shipping_charges)

    if is_intra_state(shipping_state, seller_state):
        cgst = money(total_gst / 2)
        sgst = total_gst - cgst
        igst = ZERO
    else:
        cgst = sgst = ZERO
        igst = total_gst

    before_round = subtotal + total_gst + shipping_charges
    total_amount = before_round.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return OrderTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        total_gst=total_gst,
        shipping_charges=shipping_charges,
        round_off=money(total_amount - before_round),
        total_amount=money(total_amount),
    )
