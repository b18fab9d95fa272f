"""Integration tests for the Product API.

Covers:
- Create with opening stock booked through the ledger
- Duplicate SKU, validation and permission failures
- Bulk-pricing quotes
- Listing, filtering and soft delete
"""

from __future__ import annotations

import pytest

from modules.inventory.constants import ActionType
from modules.inventory.models import StockLedgerEntry
from modules.products.models import Product

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"


def _payload(**overrides):
    payload = {
        "sku": "seed-paddy-1121",
        "name": "Basmati Paddy Seed 1121",
        "price": "450.00",
        "category": "seeds",
        "unit": "kg",
        "gst_rate": 5,
        "bulk_pricing": [
            {"min_quantity": 20, "max_quantity": 99, "price_per_unit": "430.00", "discount_percent": "4.44"},
            {"min_quantity": 100, "price_per_unit": "410.00", "discount_percent": "8.89"},
        ],
    }
    payload.update(overrides)
    return payload


class TestCreateProduct:
    def test_create_books_opening_stock(self, staff_client, staff_user):
        response = staff_client.post(PRODUCTS_URL, _payload(initial_stock=200), format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["sku"] == "SEED-PADDY-1121"
        assert body["stock_total"] == 200
        assert body["stock_reserved"] == 0
        assert body["low_stock_threshold"] == 10

        [entry] = StockLedgerEntry.objects.filter(product_id=body["id"])
        assert entry.action_type == ActionType.ADD
        assert entry.quantity == 200
        assert entry.reason == "Opening stock"
        assert entry.performed_by_id == staff_user.pk

    def test_create_without_stock_writes_no_ledger(self, staff_client):
        response = staff_client.post(PRODUCTS_URL, _payload(), format="json")

        assert response.status_code == 201
        assert response.json()["stock_total"] == 0
        assert not StockLedgerEntry.objects.exists()

    def test_duplicate_sku(self, staff_client):
        staff_client.post(PRODUCTS_URL, _payload(), format="json")

        response = staff_client.post(PRODUCTS_URL, _payload(sku="SEED-PADDY-1121"), format="json")

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "ProductAlreadyExists"

    @pytest.mark.parametrize(
        "field,value",
        [("price", "0"), ("gst_rate", 7), ("initial_stock", -1), ("min_order_quantity", 0)],
    )
    def test_invalid_fields(self, staff_client, field, value):
        response = staff_client.post(PRODUCTS_URL, _payload(**{field: value}), format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "validation_error"
        assert body["errors"][0]["attr"] == field

    def test_buyer_cannot_create(self, buyer_client):
        response = buyer_client.post(PRODUCTS_URL, _payload(), format="json")
        assert response.status_code == 403
        assert not Product.objects.exists()


class TestQuote:
    def test_tier_quote(self, buyer_client, staff_client):
        product_id = staff_client.post(PRODUCTS_URL, _payload(), format="json").json()["id"]

        response = buyer_client.get(f"{PRODUCTS_URL}{product_id}/quote/", {"quantity": 25})

        assert response.status_code == 200
        body = response.json()
        assert body["tier_applied"] == "20+ units"
        assert body["price_per_unit"] == "430.00"
        assert body["subtotal"] == "10750.00"
        assert body["gst_amount"] == "537.50"
        assert body["total"] == "11287.50"
        assert body["savings"] == "500.00"

    @pytest.mark.parametrize("quantity", ["", "abc", "0", "-3"])
    def test_quantity_must_be_positive(self, buyer_client, make_product, quantity):
        product = make_product()
        response = buyer_client.get(f"{PRODUCTS_URL}{product.id}/quote/", {"quantity": quantity})
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "quantity"


class TestListAndRetrieve:
    def test_list_is_paginated(self, buyer_client, make_product):
        for _ in range(3):
            make_product()

        response = buyer_client.get(PRODUCTS_URL, {"page_size": 2})

        body = response.json()
        assert body["count"] == 3
        assert body["total_pages"] == 2
        assert len(body["results"]) == 2

    def test_filter_in_stock(self, buyer_client, make_product):
        stocked = make_product(stock=5)
        make_product(stock=0)

        body = buyer_client.get(PRODUCTS_URL, {"in_stock": "true"}).json()

        assert [p["id"] for p in body["results"]] == [str(stocked.id)]

    def test_search(self, buyer_client, make_product):
        make_product(name="Hybrid Tomato Seed")
        make_product(name="Knapsack Sprayer")

        body = buyer_client.get(PRODUCTS_URL, {"search": "tomato"}).json()

        assert [p["name"] for p in body["results"]] == ["Hybrid Tomato Seed"]

    def test_retrieve_reports_stock(self, buyer_client, make_product, inventory_service):
        product = make_product(stock=12, low_stock_threshold=10)
        inventory_service.mark_damaged(product.id, 3, reason="Torn bags")

        body = buyer_client.get(f"{PRODUCTS_URL}{product.id}/").json()

        assert body["stock_total"] == 9
        assert body["stock_available"] == 9
        assert body["is_low_stock"] is True

    def test_retrieve_unknown_product(self, buyer_client):
        response = buyer_client.get(f"{PRODUCTS_URL}0192c0de-0000-7000-8000-000000000001/")
        assert response.status_code == 404


class TestUpdateAndDelete:
    def test_update_never_touches_stock(self, staff_client, make_product, reload):
        product = make_product(stock=40)

        response = staff_client.patch(
            f"{PRODUCTS_URL}{product.id}/",
            {"price": "120.00", "stock_total": 999},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["price"] == "120.00"
        assert reload(product).stock_total == 40

    def test_soft_delete(self, staff_client, buyer_client, make_product):
        product = make_product()

        response = staff_client.delete(f"{PRODUCTS_URL}{product.id}/")

        assert response.status_code == 204
        assert buyer_client.get(f"{PRODUCTS_URL}{product.id}/").status_code == 404
        assert Product.objects.get(pk=product.pk).is_deleted

    def test_buyer_cannot_delete(self, buyer_client, make_product):
        product = make_product()
        assert buyer_client.delete(f"{PRODUCTS_URL}{product.id}/").status_code == 403
