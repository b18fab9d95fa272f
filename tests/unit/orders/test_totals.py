"""Unit tests for order totals, the GST split and rupee round-off."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.totals import compute_totals, is_intra_state
from modules.products.pricing import PriceQuote

pytestmark = pytest.mark.unit

SELLER_STATE = "Maharashtra"


def _quote(subtotal: str, gst: str, base_price: str | None = None, quantity: int = 1) -> PriceQuote:
    subtotal = Decimal(subtotal)
    gst = Decimal(gst)
    price = subtotal / quantity
    return PriceQuote(
        quantity=quantity,
        base_price=Decimal(base_price) if base_price else price,
        price_per_unit=price,
        discount_percent=Decimal("0"),
        tier_applied="base",
        gst_rate=5,
        subtotal=subtotal,
        gst_amount=gst,
        total=subtotal + gst,
    )


class TestIntraState:
    def test_same_state_ignores_case_and_spaces(self):
        assert is_intra_state(" maharashtra ", SELLER_STATE)

    def test_other_state(self):
        assert not is_intra_state("Telangana", SELLER_STATE)

    def test_missing_state_is_inter_state(self):
        assert not is_intra_state(None, SELLER_STATE)


class TestComputeTotals:
    def test_intra_state_splits_cgst_and_sgst(self):
        totals = compute_totals([_quote("533.00", "26.65")], "Maharashtra", seller_state=SELLER_STATE)
        assert totals.cgst == Decimal("13.33")
        assert totals.sgst == Decimal("13.32")
        assert totals.igst == Decimal("0.00")
        assert totals.cgst + totals.sgst == totals.total_gst

    def test_inter_state_charges_igst(self):
        totals = compute_totals([_quote("533.00", "26.65")], "Telangana", seller_state=SELLER_STATE)
        assert totals.igst == Decimal("26.65")
        assert totals.cgst == totals.sgst == Decimal("0.00")

    def test_total_rounds_up_to_whole_rupees(self):
        totals = compute_totals([_quote("533.00", "26.65")], "Maharashtra", seller_state=SELLER_STATE)
        assert totals.total_amount == Decimal("560.00")
        assert totals.round_off == Decimal("0.35")

    def test_total_rounds_down_to_whole_rupees(self):
        totals = compute_totals([_quote("100.00", "18.40")], "Maharashtra", seller_state=SELLER_STATE)
        assert totals.total_amount == Decimal("118.00")
        assert totals.round_off == Decimal("-0.40")

    def test_shipping_is_part_of_the_total(self):
        totals = compute_totals(
            [_quote("533.00", "26.65")],
            "Maharashtra",
            shipping_charges=Decimal("50"),
            seller_state=SELLER_STATE,
        )
        assert totals.shipping_charges == Decimal("50.00")
        assert totals.total_amount == Decimal("610.00")

    def test_sums_lines_and_discounts(self):
        quotes = [
            _quote("900.00", "162.00", base_price="100.00", quantity=10),
            _quote("500.00", "25.00"),
        ]
        totals = compute_totals(quotes, "Telangana", seller_state=SELLER_STATE)
        assert totals.subtotal == Decimal("1400.00")
        assert totals.total_gst == Decimal("187.00")
        assert totals.total_discount == Decimal("100.00")
        assert totals.total_amount == Decimal("1587.00")
        assert totals.round_off == Decimal("0.00")

    def test_identity_holds(self):
        totals = compute_totals([_quote("1234.56", "61.73")], "Goa", seller_state=SELLER_STATE)
        assert totals.total_amount == (
            totals.subtotal + totals.total_gst + totals.shipping_charges + totals.round_off
        )
