"""Product catalog entry with its stock record.

Business rules implemented:
- SKU is unique and normalised to uppercase.
- Inactive products cannot be ordered (enforced at service layer).
- Wholesale price must be greater than zero; GST rate is one of 0/5/12/18/28.
- ``0 <= stock_reserved <= stock_total`` (database CHECK constraints).
- Stock fields are written only by the inventory engine: new rows start at
  zero stock and ``save()`` on an existing row never includes them.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel
from modules.inventory.stock import StockLevel
from modules.products.constants import (
    DEFAULT_GST_RATE,
    GST_RATES,
    STOCK_FIELDS,
    ProductCategory,
    ProductStatus,
    Unit,
)
from modules.products.exceptions import InactiveProduct, OrderQuantityOutOfRange
from modules.products.pricing import PriceQuote, quote_price

logger = structlog.get_logger(__name__)


def _default_low_stock_threshold() -> int:
    return settings.LOW_STOCK_DEFAULT_THRESHOLD


class Product(SoftDeleteModel):
    """Product aggregate root.

    ``stock_available`` is derived (``stock_total - stock_reserved``) and
    never stored.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(
        max_length=20,
        choices=ProductCategory.choices,
        default=ProductCategory.OTHERS,
    )
    brand = models.CharField(max_length=120, blank=True, default="")
    unit = models.CharField(max_length=10, choices=Unit.choices, default=Unit.PIECE)
    hsn_code = models.CharField(max_length=8, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    gst_rate = models.PositiveSmallIntegerField(
        choices=[(rate, f"{rate}%") for rate in GST_RATES],
        default=DEFAULT_GST_RATE,
    )
    bulk_pricing = models.JSONField(default=list, blank=True)
    min_order_quantity = models.PositiveIntegerField(default=1)
    max_order_quantity = models.PositiveIntegerField(null=True, blank=True)
    stock_total = models.PositiveIntegerField(default=0)
    stock_reserved = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(
        default=_default_low_stock_threshold
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_total__gte=0),
                name="products_stock_total_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_reserved__gte=0),
                name="products_stock_reserved_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_reserved__lte=models.F("stock_total")),
                name="products_reserved_within_total",
            ),
        ]

    # ------------------------------------------------------------------
    # Stock record
    # ------------------------------------------------------------------

    @property
    def stock_available(self) -> int:
        return self.stock_total - self.stock_reserved

    @property
    def stock_level(self) -> StockLevel:
        return StockLevel(
            total=self.stock_total,
            reserved=self.stock_reserved,
            product_name=self.name,
            unit=self.unit,
        )

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    @property
    def is_low_stock(self) -> bool:
        return self.stock_available <= self.low_stock_threshold

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def quote(self, quantity: int) -> PriceQuote:
        return quote_price(self, quantity)

    def check_orderable(self, quantity: int) -> None:
        """Raise unless ``quantity`` of this product may be ordered.

        Raises:
            InactiveProduct: product is inactive or deleted.
            OrderQuantityOutOfRange: outside min/max order quantity.
        """
        if not self.is_active:
            raise InactiveProduct(f'Product "{self.name}" is not available')
        if quantity < self.min_order_quantity:
            raise OrderQuantityOutOfRange(
                f"Minimum order quantity for this product is "
                f"{self.min_order_quantity} {self.unit}"
            )
        if self.max_order_quantity is not None and quantity > self.max_order_quantity:
            raise OrderQuantityOutOfRange(
                f"Maximum order quantity for this product is "
                f"{self.max_order_quantity} {self.unit}"
            )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if (
            self.max_order_quantity is not None
            and self.max_order_quantity < self.min_order_quantity
        ):
            raise ValidationError(
                {"max_order_quantity": "Maximum order quantity is below the minimum."}
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()

        if is_new:
            if self.stock_total or self.stock_reserved:
                raise ValueError(
                    "Products are created without stock; book opening stock "
                    "through the inventory engine."
                )
        else:
            update_fields = kwargs.get("update_fields")
            if update_fields is None:
                kwargs["update_fields"] = [
                    f.name
                    for f in self._meta.concrete_fields
                    if not f.primary_key and f.name not in STOCK_FIELDS
                ]
            elif STOCK_FIELDS.intersection(update_fields):
                raise ValueError(
                    "Stock fields are managed by the inventory engine and "
                    "cannot be saved directly."
                )

        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                name=self.name,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
