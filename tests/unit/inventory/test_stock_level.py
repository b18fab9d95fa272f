"""Unit tests for the ``StockLevel`` value object.

Covers:
- Each of the six operations on the happy path.
- Every rejection rule (quantity, negative stock, reserved floor, pools).
- Operations return a new level and never mutate the original.
"""

from __future__ import annotations

import pytest

from modules.inventory.exceptions import (
    BelowReserved,
    InsufficientAvailable,
    InsufficientStock,
    InvalidQuantity,
    NegativeStock,
    OverDeduct,
    OverRelease,
)
from modules.inventory.stock import StockLevel

pytestmark = pytest.mark.unit


class TestStockLevelInvariants:
    def test_available_is_total_minus_reserved(self):
        assert StockLevel(total=50, reserved=45).available == 5

    @pytest.mark.parametrize("total,reserved", [(-1, 0), (5, -1), (5, 6)])
    def test_rejects_inconsistent_levels(self, total, reserved):
        with pytest.raises(ValueError):
            StockLevel(total=total, reserved=reserved)

    def test_operations_do_not_mutate_original(self):
        level = StockLevel(total=10, reserved=2)
        level.reserve(3)
        assert level == StockLevel(total=10, reserved=2)

    def test_labels_do_not_affect_equality(self):
        assert StockLevel(10, 2, product_name="Urea") == StockLevel(10, 2, product_name="DAP")


class TestAdd:
    def test_increases_total_only(self):
        assert StockLevel(10, 2).add(5) == StockLevel(15, 2)

    @pytest.mark.parametrize("quantity", [0, -3, True, 2.5])
    def test_rejects_non_positive_or_non_integer(self, quantity):
        with pytest.raises(InvalidQuantity):
            StockLevel(10, 2).add(quantity)


class TestAdjust:
    def test_positive_delta(self):
        assert StockLevel(10, 2).adjust(4) == StockLevel(14, 2)

    def test_negative_delta(self):
        assert StockLevel(10, 2).adjust(-8) == StockLevel(2, 2)

    def test_zero_delta_rejected(self):
        with pytest.raises(InvalidQuantity):
            StockLevel(10, 2).adjust(0)

    def test_negative_result_rejected(self):
        with pytest.raises(NegativeStock):
            StockLevel(total=15, reserved=5).adjust(-20)

    def test_below_reserved_rejected(self):
        with pytest.raises(BelowReserved):
            StockLevel(total=10, reserved=8).adjust(-5)


class TestReserve:
    def test_moves_units_into_reserved(self):
        assert StockLevel(50, 0).reserve(45) == StockLevel(50, 45)

    def test_insufficient_available(self):
        level = StockLevel(total=10, reserved=5, product_name="Neem Urea", unit="bag")
        with pytest.raises(InsufficientStock) as exc_info:
            level.reserve(10)
        assert exc_info.value.available == 5
        assert exc_info.value.message == 'Insufficient stock for "Neem Urea". Available: 5 bag'

    def test_can_reserve_exactly_available(self):
        assert StockLevel(10, 4).reserve(6) == StockLevel(10, 10)


class TestRelease:
    def test_returns_units_to_available(self):
        assert StockLevel(10, 6).release(4) == StockLevel(10, 2)

    def test_over_release_rejected(self):
        with pytest.raises(OverRelease):
            StockLevel(10, 3).release(4)


class TestDeduct:
    def test_consumes_reserved_units(self):
        assert StockLevel(50, 45).deduct(45) == StockLevel(5, 0)

    def test_over_deduct_rejected(self):
        with pytest.raises(OverDeduct):
            StockLevel(10, 3).deduct(4)


class TestMarkDamaged:
    def test_removes_unreserved_units(self):
        assert StockLevel(30, 10).mark_damaged(5) == StockLevel(25, 10)

    def test_cannot_touch_reserved_pool(self):
        with pytest.raises(InsufficientAvailable) as exc_info:
            StockLevel(total=30, reserved=25, unit="kg").mark_damaged(8)
        assert "Only 5 kg available" in exc_info.value.message
