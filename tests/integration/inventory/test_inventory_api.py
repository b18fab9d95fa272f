"""Integration tests for the staff inventory endpoints."""

from __future__ import annotations

import pytest

from modules.inventory.models import StockLedgerEntry

pytestmark = pytest.mark.integration


def _url(product, operation):
    return f"/api/v1/inventory/products/{product.id}/{operation}/"


class TestStockMutationEndpoints:
    def test_add_stock(self, staff_client, make_product, staff_user):
        product = make_product(stock=10)

        response = staff_client.post(
            _url(product, "add"), {"quantity": 40, "notes": "Truck 7"}, format="json"
        )

        assert response.status_code == 201
        body = response.json()
        assert body["product"]["stock_total"] == 50
        assert body["product"]["stock_available"] == 50
        assert body["log"]["action_type"] == "ADD"
        assert body["log"]["quantity"] == 40
        assert body["log"]["performed_by"] == staff_user.pk
        assert body["log"]["reason"] == "Stock received from supplier"

    def test_buyer_is_forbidden(self, buyer_client, make_product):
        product = make_product(stock=10)
        response = buyer_client.post(_url(product, "add"), {"quantity": 5}, format="json")
        assert response.status_code == 403

    def test_anonymous_is_rejected(self, api_client, make_product):
        product = make_product(stock=10)
        response = api_client.post(_url(product, "add"), {"quantity": 5}, format="json")
        assert response.status_code == 401

    def test_adjust_without_reason(self, staff_client, make_product):
        product = make_product(stock=10)

        response = staff_client.post(_url(product, "adjust"), {"quantity": -2}, format="json")

        assert response.status_code == 400
        body = response.json()
        assert body["type"] == "client_error"
        assert body["errors"] == [
            {
                "code": "MissingReason",
                "detail": "Reason is required for stock adjustment",
                "attr": "reason",
            }
        ]

    def test_adjust_below_zero_is_a_conflict(self, staff_client, make_product, reload):
        product = make_product(stock=10)

        response = staff_client.post(
            _url(product, "adjust"), {"quantity": -11, "reason": "Recount"}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "NegativeStock"
        assert reload(product).stock_total == 10

    def test_mark_damaged(self, staff_client, make_product):
        product = make_product(stock=10)

        response = staff_client.post(
            _url(product, "damaged"),
            {"quantity": 3, "reason": "Water damage"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["log"]["quantity"] == -3
        assert response.json()["product"]["stock_total"] == 7

    def test_quantity_must_be_an_integer(self, staff_client, make_product):
        product = make_product(stock=10)
        response = staff_client.post(_url(product, "add"), {"quantity": "lots"}, format="json")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_unknown_product(self, staff_client):
        response = staff_client.post(
            "/api/v1/inventory/products/0192c0de-0000-7000-8000-000000000001/add/",
            {"quantity": 5},
            format="json",
        )
        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "ProductNotFound"


class TestInventoryReads:
    def test_product_logs(self, staff_client, make_product, inventory_service):
        product = make_product(stock=10)
        inventory_service.add_stock(product.id, 5)

        response = staff_client.get(_url(product, "logs"))

        assert response.status_code == 200
        body = response.json()
        assert [log["quantity"] for log in body["logs"]] == [5, 10]
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 2, "total_pages": 1}

    def test_global_logs_filtered_by_action(self, staff_client, make_product, inventory_service):
        product = make_product(stock=10)
        inventory_service.adjust_stock(product.id, 2, reason="Found a bag")

        response = staff_client.get("/api/v1/inventory/logs/", {"action_type": "ADJUST"})

        body = response.json()
        assert body["pagination"]["limit"] == 50
        assert [log["action_type"] for log in body["logs"]] == ["ADJUST"]
        assert body["logs"][0]["product_name"] == product.name

    def test_invalid_log_filter(self, staff_client):
        response = staff_client.get("/api/v1/inventory/logs/", {"action_type": "STOLEN"})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_stats(self, staff_client, make_product):
        make_product(stock=10)

        body = staff_client.get("/api/v1/inventory/stats/").json()

        assert body["products"]["total_products"] == 1
        assert body["products"]["total_stock_units"] == 10
        assert body["action_breakdown"]["ADD"] == {"count": 1, "total_quantity": 10}

    def test_low_and_out_of_stock(self, staff_client, make_product):
        make_product(stock=100)
        low = make_product(stock=3, low_stock_threshold=5)
        empty = make_product(stock=0)

        low_body = staff_client.get("/api/v1/inventory/low-stock/").json()
        out_body = staff_client.get("/api/v1/inventory/out-of-stock/").json()

        assert [p["sku"] for p in low_body] == [empty.sku, low.sku]
        assert [p["sku"] for p in out_body] == [empty.sku]

    def test_ledger_is_untouched_by_reads(self, staff_client, make_product):
        product = make_product(stock=10)
        staff_client.get("/api/v1/inventory/stats/")
        assert StockLedgerEntry.objects.filter(product=product).count() == 1
