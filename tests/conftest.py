import itertools
from decimal import Decimal

import pytest

from django.core.cache import cache

from rest_framework.test import APIClient

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.customers.models import Customer
from modules.inventory.repositories.django_repository import (
    LedgerDjangoRepository,
    StockDjangoRepository,
)
from modules.inventory.services import InventoryService
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import AddressDTO, CreateOrderDTO
from modules.orders.views import build_order_service
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

BUYER_GSTIN = "27ABCDE1234F1Z5"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture()
def buyer(django_user_model):
    """Retailer with a complete customer profile."""
    user = django_user_model.objects.create_user(
        username="krishi",
        password="testpass123",
        email="krishi@example.com",
        first_name="Ramesh",
        last_name="Patil",
    )
    Customer.objects.create(
        user=user,
        name="Ramesh Patil",
        email=user.email,
        phone="9876543210",
        business_name="Krishi Seva Kendra",
        gstin=BUYER_GSTIN,
    )
    return user


@pytest.fixture()
def other_buyer(django_user_model):
    return django_user_model.objects.create_user(
        username="annadata", password="testpass123", email="annadata@example.com"
    )


@pytest.fixture()
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="manager",
        password="testpass123",
        first_name="Store",
        last_name="Manager",
        is_staff=True,
    )


@pytest.fixture()
def buyer_client(buyer):
    client = APIClient()
    client.force_authenticate(user=buyer)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def inventory_service():
    return InventoryService(StockDjangoRepository(), LedgerDjangoRepository())


@pytest.fixture()
def cart_service():
    return CartService(CartDjangoRepository(), ProductDjangoRepository())


@pytest.fixture()
def order_service():
    return build_order_service()


# ---------------------------------------------------------------------------
# Catalog and orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product(inventory_service):
    """Factory: create a product and book ``stock`` units as opening stock."""
    counter = itertools.count(1)

    def _make(stock=100, price="100.00", gst_rate=18, **fields):
        number = next(counter)
        fields.setdefault("sku", f"TEST-{number:03d}")
        fields.setdefault("name", f"Test Product {number}")
        product = Product.objects.create(price=Decimal(price), gst_rate=gst_rate, **fields)
        if stock:
            product = inventory_service.add_stock(
                product.id, stock, reason="Opening stock"
            ).product
        return product

    return _make


@pytest.fixture()
def shipping_address():
    return AddressDTO(
        name="Ramesh Patil",
        phone="9876543210",
        street="Market Yard, Shop 12",
        city="Pune",
        state="Maharashtra",
        pincode="411001",
    )


@pytest.fixture()
def place_order(cart_service, order_service, buyer, shipping_address):
    """Factory: fill the buyer's cart with ``lines`` and check out."""

    def _place(lines, user=None, address=None, payment_method=PaymentMethod.UPI):
        user = user or buyer
        for product, quantity in lines:
            cart_service.add_item(user.pk, product.id, quantity)
        dto = CreateOrderDTO(
            payment_method=payment_method,
            shipping_address=address or shipping_address,
        )
        return order_service.create_order(user.pk, dto)

    return _place


@pytest.fixture()
def reload():
    """Re-read a model instance from the database."""

    def _reload(instance):
        return type(instance).objects.get(pk=instance.pk)

    return _reload
