"""Unit tests for bulk-pricing quotes."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.products.models import Product
from modules.products.pricing import find_tier, money

pytestmark = pytest.mark.unit

TIERS = [
    {"min_quantity": 10, "max_quantity": 49, "price_per_unit": "90.00", "discount_percent": "10"},
    {"min_quantity": 50, "max_quantity": None, "price_per_unit": "85.00", "discount_percent": "15"},
]


@pytest.fixture()
def product():
    return Product(
        sku="FERT-UREA-45",
        name="Neem Coated Urea",
        price=Decimal("100.00"),
        gst_rate=18,
        bulk_pricing=TIERS,
    )


class TestQuote:
    def test_base_price_below_first_tier(self, product):
        quote = product.quote(5)
        assert quote.tier_applied == "base"
        assert quote.price_per_unit == Decimal("100.00")
        assert quote.subtotal == Decimal("500.00")
        assert quote.gst_amount == Decimal("90.00")
        assert quote.total == Decimal("590.00")
        assert quote.savings == Decimal("0.00")

    def test_bounded_tier(self, product):
        quote = product.quote(10)
        assert quote.tier_applied == "10+ units"
        assert quote.price_per_unit == Decimal("90.00")
        assert quote.discount_percent == Decimal("10")
        assert quote.subtotal == Decimal("900.00")
        assert quote.gst_amount == Decimal("162.00")
        assert quote.savings == Decimal("100.00")

    def test_open_ended_tier_wins_for_large_quantities(self, product):
        quote = product.quote(60)
        assert quote.tier_applied == "50+ units"
        assert quote.subtotal == Decimal("5100.00")

    def test_zero_rated_product(self, product):
        product.gst_rate = 0
        quote = product.quote(3)
        assert quote.gst_amount == Decimal("0.00")
        assert quote.total == quote.subtotal

    def test_gst_is_rounded_to_paise(self):
        product = Product(sku="PEST-1", name="Imidacloprid", price=Decimal("266.50"), gst_rate=5)
        quote = product.quote(1)
        assert quote.gst_amount == Decimal("13.33")


class TestFindTier:
    def test_no_tier_matches(self):
        assert find_tier(TIERS, 9) is None

    def test_upper_bound_is_inclusive(self):
        assert find_tier(TIERS, 49)["min_quantity"] == 10

    def test_empty_tiers(self):
        assert find_tier([], 100) is None


def test_money_rounds_half_up():
    assert money(Decimal("2.345")) == Decimal("2.35")
    assert money(Decimal("2.344")) == Decimal("2.34")
