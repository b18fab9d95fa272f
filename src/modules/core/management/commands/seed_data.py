from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

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
from modules.products.constants import ProductCategory, Unit
from modules.products.dtos import CreateProductDTO, PriceTierDTO
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

SEED_PRODUCTS = [
    # sku, name, category, brand, unit, hsn, gst, price, stock, tiers
    ("SEED-PADDY-1121", "Basmati Paddy Seed 1121", ProductCategory.SEEDS, "Mahyco", Unit.KG, "1006", 0, "95.00", 800,
     [(10, 49, "90.00", "5"), (50, None, "85.00", "10")]),
    ("SEED-COT-BT2", "BT Cotton Seed BG-II", ProductCategory.SEEDS, "Rasi", Unit.PACKET, "1207", 0, "864.00", 300, []),
    ("FERT-UREA-45", "Neem Coated Urea 45kg", ProductCategory.FERTILIZERS, "IFFCO", Unit.BAG, "3102", 5, "266.50", 500,
     [(20, None, "260.00", "2.44")]),
    ("FERT-DAP-50", "DAP 18-46-0 50kg", ProductCategory.FERTILIZERS, "Coromandel", Unit.BAG, "3105", 5, "1350.00", 250, []),
    ("PEST-IMIDA-250", "Imidacloprid 17.8% SL 250ml", ProductCategory.PESTICIDES, "Bayer", Unit.BOTTLE, "3808", 18, "410.00", 120,
     [(12, None, "385.00", "6.1")]),
    ("PEST-GLY-1L", "Glyphosate 41% SL 1L", ProductCategory.PESTICIDES, "Dhanuka", Unit.BOTTLE, "3808", 18, "520.00", 8, []),
    ("TOOL-SPRAY-16", "Knapsack Sprayer 16L", ProductCategory.TOOLS, "Kisan Kraft", Unit.PIECE, "8424", 12, "1850.00", 40, []),
    ("EQP-DRIP-KIT", "Drip Irrigation Kit 1 Acre", ProductCategory.EQUIPMENT, "Jain", Unit.BOX, "8424", 12, "14500.00", 6, []),
]

SEED_RETAILERS = [
    ("krishi", "Ramesh Patil", "Krishi Seva Kendra", "27ABCDE1234F1Z5", "Maharashtra", "Pune"),
    ("annadata", "Suresh Reddy", "Annadata Agro Agencies", "36FGHIJ5678K1Z2", "Telangana", "Warangal"),
    ("hariyali", "Meena Joshi", "Hariyali Krishi Bhandar", "", "Maharashtra", "Nashik"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        staff = self._seed_staff()
        retailers = self._seed_retailers()
        products = self._seed_products(staff)
        orders_created = self._seed_orders(retailers, products, staff)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"retailers={len(retailers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_staff(self):
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
        staff, created = User.objects.get_or_create(
            username="manager", defaults={"is_staff": True, "first_name": "Store Manager"}
        )
        if created:
            staff.set_password("manager123")
            staff.save()
        return staff

    def _seed_retailers(self) -> list:
        self.stdout.write("Creating retailers...")
        User = get_user_model()
        retailers = []
        for username, name, business, gstin, state, city in SEED_RETAILERS:
            user, created = User.objects.get_or_create(
                username=username, defaults={"email": f"{username}@example.com"}
            )
            if created:
                user.set_password(f"{username}123")
                user.save()
            Customer.objects.get_or_create(
                user=user,
                defaults={
                    "name": name,
                    "email": user.email,
                    "phone": f"98{random.randint(10000000, 99999999)}",
                    "business_name": business,
                    "gstin": gstin,
                },
            )
            retailers.append((user, name, state, city))
        return retailers

    def _seed_products(self, staff) -> list[Product]:
        self.stdout.write("Creating products with opening stock...")
        service = ProductService(
            ProductDjangoRepository(),
            InventoryService(StockDjangoRepository(), LedgerDjangoRepository()),
        )
        products = []
        for sku, name, category, brand, unit, hsn, gst, price, stock, tiers in SEED_PRODUCTS:
            existing = Product.objects.alive().filter(sku=sku).first()
            if existing is not None:
                products.append(existing)
                continue
            dto = CreateProductDTO(
                sku=sku,
                name=name,
                category=category,
                brand=brand,
                unit=unit,
                hsn_code=hsn,
                gst_rate=gst,
                price=Decimal(price),
                initial_stock=stock,
                bulk_pricing=[
                    PriceTierDTO(
                        min_quantity=low,
                        max_quantity=high,
                        price_per_unit=Decimal(tier_price),
                        discount_percent=Decimal(discount),
                    )
                    for low, high, tier_price, discount in tiers
                ],
            )
            products.append(service.create_product(dto, actor=staff))
        return products

    def _seed_orders(self, retailers, products, staff) -> int:
        self.stdout.write("Placing orders...")
        carts = CartService(CartDjangoRepository(), ProductDjangoRepository())
        orders = build_order_service()
        created = 0
        for user, name, state, city in retailers:
            for product in random.sample(products[:5], 2):
                carts.add_item(user.pk, product.id, max(product.min_order_quantity, random.randint(1, 12)))
            order = orders.create_order(
                user.pk,
                CreateOrderDTO(
                    payment_method=random.choice([PaymentMethod.UPI, PaymentMethod.BANK_TRANSFER]),
                    shipping_address=AddressDTO(
                        name=name,
                        phone="9876543210",
                        street="Market Yard, Shop 12",
                        city=city,
                        state=state,
                        pincode="411001",
                    ),
                ),
            )
            created += 1
            if random.random() < 0.6:
                orders.confirm_payment(order.id, actor=staff)
        return created
