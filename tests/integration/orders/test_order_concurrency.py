"""Concurrent checkout and confirmation from separate threads.

Each thread opens its own database connection.  On PostgreSQL the
competing writers meet on row locks; on the file-backed SQLite test
database they queue on the database write lock.  Either way exactly one
writer may win.
"""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest
from django.db import connection

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.customers.models import Customer
from modules.inventory.constants import ActionType
from modules.inventory.exceptions import InsufficientStock
from modules.inventory.models import StockLedgerEntry
from modules.orders.constants import OrderStatus
from modules.orders.dtos import AddressDTO, CreateOrderDTO
from modules.orders.views import build_order_service
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = [
    pytest.mark.integration,
    pytest.mark.django_db(transaction=True),
]

ADDRESS = AddressDTO(name="Buyer", phone="9000000000", street="APMC Yard", state="Maharashtra")


def _run_concurrently(*targets):
    errors = []
    barrier = threading.Barrier(len(targets))

    def wrap(target):
        def run():
            try:
                barrier.wait()
                target()
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
            finally:
                connection.close()

        return run

    threads = [threading.Thread(target=wrap(target)) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return errors


@pytest.fixture()
def buyers(django_user_model):
    users = []
    for name in ("first", "second"):
        user = django_user_model.objects.create_user(username=name, password="testpass123")
        Customer.objects.create(user=user, name=name.title(), email=f"{name}@example.com")
        users.append(user)
    return users


def test_last_units_are_reserved_once(buyers, inventory_service):
    product = Product.objects.create(sku="CONC-001", name="Drip Kit", price=Decimal("500.00"))
    inventory_service.add_stock(product.id, 5)
    cart_service = CartService(CartDjangoRepository(), ProductDjangoRepository())
    for user in buyers:
        cart_service.add_item(user.pk, product.id, 5)

    def checkout(user):
        return lambda: build_order_service().create_order(
            user.pk, CreateOrderDTO(payment_method="upi", shipping_address=ADDRESS)
        )

    errors = _run_concurrently(*(checkout(user) for user in buyers))

    assert len(errors) == 1
    assert isinstance(errors[0], InsufficientStock)
    product.refresh_from_db()
    assert (product.stock_total, product.stock_reserved) == (5, 5)
    assert StockLedgerEntry.objects.filter(action_type=ActionType.RESERVE).count() == 1


def test_concurrent_confirmations_deduct_once(buyers, inventory_service):
    product = Product.objects.create(sku="CONC-002", name="Sprayer", price=Decimal("900.00"))
    inventory_service.add_stock(product.id, 10)
    CartService(CartDjangoRepository(), ProductDjangoRepository()).add_item(
        buyers[0].pk, product.id, 4
    )
    order = build_order_service().create_order(
        buyers[0].pk, CreateOrderDTO(payment_method="upi", shipping_address=ADDRESS)
    )

    def confirm():
        build_order_service().confirm_payment(order.id)

    errors = _run_concurrently(confirm, confirm)

    assert errors == []
    order.refresh_from_db()
    product.refresh_from_db()
    assert order.status == OrderStatus.PAID
    assert (product.stock_total, product.stock_reserved) == (6, 0)
    assert StockLedgerEntry.objects.filter(action_type=ActionType.DEDUCT).count() == 1
