"""Product service layer (Use Cases).

Orchestrates business logic for the Product aggregate, delegating
persistence to the injected ``IProductRepository``.

Business rules enforced here:
- SKU must be unique.
- Price must be greater than zero and GST rate a valid slab (DTO).
- Opening stock is booked through the inventory engine, never written
  directly, so every unit on hand has a ledger entry.
- Soft delete via repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import models, transaction

from modules.products.exceptions import ProductAlreadyExists, ProductNotFound
from modules.products.models import Product

if TYPE_CHECKING:
    from modules.inventory.services import InventoryService
    from modules.products.dtos import CreateProductDTO, UpdateProductDTO
    from modules.products.pricing import PriceQuote
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

OPENING_STOCK_REASON = "Opening stock"

_CATALOG_FIELDS = (
    "name",
    "description",
    "price",
    "category",
    "brand",
    "unit",
    "hsn_code",
    "gst_rate",
    "min_order_quantity",
    "max_order_quantity",
    "low_stock_threshold",
    "status",
)


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` and the ``InventoryService`` via
    constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        inventory_service: Optional[InventoryService] = None,
    ) -> None:
        self._repo = repository
        self._inventory = inventory_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO, actor: Any = None) -> Product:
        """Create a new product, booking any opening stock as an ADD.

        Raises:
            ProductAlreadyExists: if SKU is already taken.
        """
        log = logger.bind(sku=dto.sku)

        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            sku=dto.sku,
            name=dto.name,
            description=dto.description,
            price=dto.price,
            category=dto.category,
            brand=dto.brand,
            unit=dto.unit,
            hsn_code=dto.hsn_code,
            gst_rate=dto.gst_rate,
            bulk_pricing=[tier.as_json() for tier in dto.bulk_pricing],
            min_order_quantity=dto.min_order_quantity,
            max_order_quantity=dto.max_order_quantity,
        )
        if dto.low_stock_threshold is not None:
            product.low_stock_threshold = dto.low_stock_threshold
        product = self._repo.save(product)

        if dto.initial_stock > 0:
            if self._inventory is None:
                raise RuntimeError("Opening stock requires an inventory service.")
            result = self._inventory.add_stock(
                product.id, dto.initial_stock, actor=actor, reason=OPENING_STOCK_REASON
            )
            product = result.product

        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update catalog fields; stock is never touched here.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound()

        for field in _CATALOG_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)
        if dto.bulk_pricing is not None:
            product.bulk_pricing = [tier.as_json() for tier in dto.bulk_pricing]

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Product]":
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Raises ``ProductNotFound`` for missing or deleted products."""
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound()
        return product

    def quote(self, id: str, quantity: int) -> PriceQuote:
        """Bulk-pricing quote for ``quantity`` units."""
        return self.get_product(id).quote(quantity)
