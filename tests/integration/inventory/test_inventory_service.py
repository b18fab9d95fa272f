"""Integration tests for the inventory engine.

Covers:
- The six mutations write the stock record and exactly one ledger entry.
- Rejected mutations write nothing.
- Low-stock detection through the outbox.
- Ledger immutability.
- Compare-and-swap conflicts.
- Ledger, stats and stock-list queries.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from modules.core.models import OutboxEvent
from modules.inventory.constants import ActionType
from modules.inventory.dtos import LedgerQueryDTO
from modules.inventory.exceptions import (
    InsufficientAvailable,
    InsufficientStock,
    InvalidQuantity,
    LedgerEntryImmutable,
    MissingReason,
    NegativeStock,
    StockWriteConflict,
)
from modules.inventory.models import StockLedgerEntry
from modules.inventory.repositories.django_repository import StockDjangoRepository
from modules.inventory.stock import StockLevel
from modules.orders.models import Order
from modules.products.exceptions import ProductNotFound
from modules.products.models import Product

pytestmark = pytest.mark.integration


@pytest.fixture()
def order(buyer):
    """Bare order row for ledger entries that must reference one."""
    return Order.objects.create(user=buyer, payment_method="upi")


def _stock(product, reload):
    product = reload(product)
    return product.stock_total, product.stock_reserved


def _ledger(product):
    return StockLedgerEntry.objects.filter(product=product)


class TestAddStock:
    def test_add_writes_record_and_one_entry(self, inventory_service, make_product, staff_user, reload):
        product = make_product(stock=0)

        result = inventory_service.add_stock(
            product.id, 25, actor=staff_user, notes="Invoice 42"
        )

        assert _stock(product, reload) == (25, 0)
        entry = result.entry
        assert _ledger(product).count() == 1
        assert entry.action_type == ActionType.ADD
        assert entry.quantity == 25
        assert (entry.previous_stock_total, entry.new_stock_total) == (0, 25)
        assert entry.performed_by_id == staff_user.pk
        assert entry.reason == "Stock received from supplier"
        assert entry.notes == "Invoice 42"

    def test_missing_product(self, inventory_service):
        with pytest.raises(ProductNotFound):
            inventory_service.add_stock("0192c0de-0000-7000-8000-000000000001", 5)

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_non_positive_quantity_writes_nothing(self, inventory_service, make_product, quantity):
        product = make_product(stock=10)
        with pytest.raises(InvalidQuantity):
            inventory_service.add_stock(product.id, quantity)
        assert _ledger(product).count() == 1


class TestAdjustStock:
    def test_reason_is_required(self, inventory_service, make_product, reload):
        product = make_product(stock=10)
        with pytest.raises(MissingReason):
            inventory_service.adjust_stock(product.id, -2, reason="   ")
        assert _stock(product, reload) == (10, 0)

    def test_negative_adjustment(self, inventory_service, make_product, reload):
        product = make_product(stock=10)

        entry = inventory_service.adjust_stock(product.id, -3, reason="Recount").entry

        assert _stock(product, reload) == (7, 0)
        assert entry.quantity == -3
        assert entry.new_stock_total - entry.previous_stock_total == entry.quantity

    def test_adjust_below_zero_rejected_before_any_write(
        self, inventory_service, make_product, order, reload
    ):
        product = make_product(stock=15)
        inventory_service.reserve_stock(product.id, 5, order.id)

        with pytest.raises(NegativeStock):
            inventory_service.adjust_stock(product.id, -20, reason="Recount")

        assert _stock(product, reload) == (15, 5)
        assert not _ledger(product).filter(action_type=ActionType.ADJUST).exists()


class TestOrderBoundMutations:
    def test_reserve_then_deduct(self, inventory_service, make_product, order, reload):
        product = make_product(stock=50, low_stock_threshold=10)

        reserve = inventory_service.reserve_stock(product.id, 45, order.id).entry
        assert _stock(product, reload) == (50, 45)
        assert reserve.order_id == order.id
        assert reserve.new_stock_available == 5

        deduct = inventory_service.deduct_stock(product.id, 45, order.id).entry
        assert _stock(product, reload) == (5, 0)
        assert deduct.action_type == ActionType.DEDUCT
        assert deduct.previous_stock_reserved == 45
        assert deduct.new_stock_reserved == 0

    def test_reserve_more_than_available_leaves_product_unchanged(
        self, inventory_service, make_product, order, reload
    ):
        product = make_product(stock=5)

        with pytest.raises(InsufficientStock):
            inventory_service.reserve_stock(product.id, 10, order.id)

        assert _stock(product, reload) == (5, 0)
        assert _ledger(product).count() == 1

    def test_order_reference_is_required(self, inventory_service, make_product):
        product = make_product(stock=5)
        with pytest.raises(ValueError):
            inventory_service.reserve_stock(product.id, 1, None)

    def test_release(self, inventory_service, make_product, order, reload):
        product = make_product(stock=20)
        inventory_service.reserve_stock(product.id, 8, order.id)

        entry = inventory_service.release_stock(product.id, 8, order.id).entry

        assert _stock(product, reload) == (20, 0)
        assert entry.reason == "Order cancelled"


class TestMarkDamaged:
    def test_reason_is_required(self, inventory_service, make_product):
        product = make_product(stock=10)
        with pytest.raises(MissingReason):
            inventory_service.mark_damaged(product.id, 2)

    def test_damaged_is_stored_negative(self, inventory_service, make_product, reload):
        product = make_product(stock=30)

        entry = inventory_service.mark_damaged(product.id, 4, reason="Torn bags").entry

        assert _stock(product, reload) == (26, 0)
        assert entry.quantity == -4
        assert entry.new_stock_total - entry.previous_stock_total == -4

    def test_cannot_damage_reserved_units(self, inventory_service, make_product, order, reload):
        product = make_product(stock=30)
        inventory_service.reserve_stock(product.id, 25, order.id)

        with pytest.raises(InsufficientAvailable):
            inventory_service.mark_damaged(product.id, 8, reason="Expired")

        assert _stock(product, reload) == (30, 25)


class TestLowStockDetection:
    def _low_stock_events(self, product):
        return OutboxEvent.objects.filter(
            event_type="LowStockDetected", aggregate_id=str(product.id)
        )

    def test_reserve_reaching_threshold_records_event(
        self, inventory_service, make_product, order
    ):
        product = make_product(stock=50, low_stock_threshold=10)

        inventory_service.reserve_stock(product.id, 45, order.id)

        [event] = self._low_stock_events(product)
        assert event.topic == "inventory"
        assert event.payload["stock_available"] == 5
        assert event.payload["low_stock_threshold"] == 10

    def test_no_event_while_above_threshold(self, inventory_service, make_product, order):
        product = make_product(stock=50, low_stock_threshold=10)
        inventory_service.reserve_stock(product.id, 30, order.id)
        assert not self._low_stock_events(product).exists()

    def test_adding_stock_never_alerts(self, inventory_service, make_product):
        product = make_product(stock=2, low_stock_threshold=10)
        inventory_service.add_stock(product.id, 1)
        assert not self._low_stock_events(product).exists()

    def test_failed_mutation_records_no_event(self, inventory_service, make_product, order):
        product = make_product(stock=12, low_stock_threshold=10)
        with pytest.raises(InsufficientStock):
            inventory_service.reserve_stock(product.id, 20, order.id)
        assert not self._low_stock_events(product).exists()


class TestLedgerImmutability:
    def test_entry_cannot_be_saved_again(self, make_product):
        product = make_product(stock=5)
        entry = _ledger(product).get()
        entry.quantity = 500
        with pytest.raises(LedgerEntryImmutable):
            entry.save()

    def test_entry_cannot_be_deleted(self, make_product):
        product = make_product(stock=5)
        with pytest.raises(LedgerEntryImmutable):
            _ledger(product).get().delete()

    def test_queryset_update_and_delete_refused(self, make_product):
        product = make_product(stock=5)
        with pytest.raises(LedgerEntryImmutable):
            _ledger(product).update(quantity=1)
        with pytest.raises(LedgerEntryImmutable):
            _ledger(product).delete()


class TestCompareAndSwap:
    def test_stale_expected_level_is_refused(self, make_product, reload):
        product = make_product(stock=10)
        stale = product.stock_level
        Product.objects.filter(pk=product.pk).update(stock_total=12)

        swapped = StockDjangoRepository().compare_and_swap(
            product.pk, stale, StockLevel(total=15, reserved=0)
        )

        assert swapped is False
        assert _stock(product, reload) == (12, 0)

    def test_write_after_concurrent_change_uses_fresh_level(
        self, inventory_service, make_product, reload
    ):
        product = make_product(stock=10)
        real_get = StockDjangoRepository.get_for_update
        reads = []

        def read_then_race(self, product_id):
            row = real_get(self, product_id)
            reads.append(row.stock_level)
            if len(reads) == 1:
                Product.objects.filter(pk=product_id).update(stock_total=12)
            return row

        with patch.object(StockDjangoRepository, "get_for_update", read_then_race):
            result = inventory_service.add_stock(product.id, 5)

        assert reads == [StockLevel(total=10, reserved=0), StockLevel(total=12, reserved=0)]
        assert _stock(product, reload) == (17, 0)
        assert result.entry.previous_stock_total == 12
        assert result.entry.new_stock_total == 17

    def test_stale_write_retries_then_gives_up(self, inventory_service, make_product, reload):
        product = make_product(stock=10)

        with patch.object(StockDjangoRepository, "compare_and_swap", return_value=False) as cas:
            with pytest.raises(StockWriteConflict):
                inventory_service.add_stock(product.id, 5)

        assert cas.call_count == 3
        assert _stock(product, reload) == (10, 0)
        assert _ledger(product).count() == 1

    def test_recovers_after_one_conflict(self, inventory_service, make_product, reload):
        product = make_product(stock=10)
        real_cas = StockDjangoRepository.compare_and_swap
        calls = []

        def flaky(self, product_id, expected, new):
            calls.append(product_id)
            if len(calls) == 1:
                return False
            return real_cas(self, product_id, expected, new)

        with patch.object(StockDjangoRepository, "compare_and_swap", flaky):
            inventory_service.add_stock(product.id, 5)

        assert len(calls) == 2
        assert _stock(product, reload) == (15, 0)
        assert _ledger(product).count() == 2


class TestQueries:
    def test_logs_are_newest_first_and_paginated(self, inventory_service, make_product):
        product = make_product(stock=0)
        for quantity in (1, 2, 3):
            inventory_service.add_stock(product.id, quantity)

        page = inventory_service.get_logs(product.id, LedgerQueryDTO(limit=2))

        assert [log.quantity for log in page.logs] == [3, 2]
        assert page.pagination.total == 3
        assert page.pagination.total_pages == 2

    def test_logs_filter_by_action_type(self, inventory_service, make_product):
        product = make_product(stock=10)
        inventory_service.mark_damaged(product.id, 1, reason="Leak")

        page = inventory_service.get_logs(query=LedgerQueryDTO(action_type=ActionType.DAMAGED))

        assert [log.action_type for log in page.logs] == ["DAMAGED"]
        assert page.logs[0].action_description == "Stock marked as damaged/expired"

    def test_low_and_out_of_stock_lists(self, inventory_service, make_product):
        healthy = make_product(stock=100, low_stock_threshold=10)
        low = make_product(stock=4, low_stock_threshold=10)
        empty = make_product(stock=0)

        low_ids = {p.id for p in inventory_service.get_low_stock_products()}
        out_ids = {p.id for p in inventory_service.get_out_of_stock_products()}

        assert low_ids == {low.id, empty.id}
        assert out_ids == {empty.id}
        assert healthy.id not in low_ids

    def test_stats(self, inventory_service, make_product):
        make_product(stock=10, price="50.00", low_stock_threshold=5)
        make_product(stock=3, price="10.00", low_stock_threshold=5)
        make_product(stock=0)

        stats = inventory_service.get_stats()

        assert stats.products.total_products == 3
        assert stats.products.total_stock_units == 13
        assert stats.products.total_stock_value == 530
        assert stats.products.out_of_stock == 1
        assert stats.products.low_stock == 1
        assert stats.recent_activity_count == 2
        assert stats.action_breakdown["ADD"].count == 2
        assert stats.action_breakdown["ADD"].total_quantity == 13


class TestStockFieldGuard:
    def test_products_cannot_be_created_with_stock(self):
        with pytest.raises(ValueError):
            Product.objects.create(
                sku="SEED-9", name="Hybrid Maize", price="450.00", stock_total=20
            )
        assert not Product.objects.filter(sku="SEED-9").exists()

    def test_products_cannot_be_created_with_reservations(self):
        with pytest.raises(ValueError):
            Product(sku="SEED-8", name="Paddy", price="300.00", stock_reserved=1).save()

    def test_plain_save_leaves_stock_untouched(self, make_product, reload):
        product = make_product(stock=10)
        product.stock_total = 99
        product.name = "Renamed"
        product.save()

        product = reload(product)
        assert product.name == "Renamed"
        assert product.stock_total == 10

    def test_saving_stock_fields_explicitly_is_refused(self, make_product):
        product = make_product(stock=10)
        product.stock_total = 99
        with pytest.raises(ValueError):
            product.save(update_fields=["stock_total"])
