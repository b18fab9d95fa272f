"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``PriceTierDTO``: one bulk-pricing tier.
- ``CreateProductDTO``: input for product creation (optional opening stock).
- ``UpdateProductDTO``: partial update of catalog fields (never stock).
- ``PriceQuoteDTO``: output of a bulk-pricing quote.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.products.constants import GST_RATES, ProductCategory, ProductStatus, Unit

if TYPE_CHECKING:
    from modules.products.pricing import PriceQuote


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class PriceTierDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_quantity: int = Field(ge=1)
    max_quantity: Optional[int] = None
    price_per_unit: Decimal = Field(gt=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    @model_validator(mode="after")
    def range_is_ordered(self):
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError("max_quantity must be >= min_quantity.")
        return self

    def as_json(self) -> dict:
        return {
            "min_quantity": self.min_quantity,
            "max_quantity": self.max_quantity,
            "price_per_unit": str(self.price_per_unit),
            "discount_percent": str(self.discount_percent),
        }


class _CatalogFields(BaseModel):
    @field_validator("price", check_fields=False)
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("gst_rate", check_fields=False)
    @classmethod
    def gst_rate_must_be_a_slab(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in GST_RATES:
            raise ValueError(f"GST rate must be one of {GST_RATES}.")
        return v


class CreateProductDTO(_CatalogFields):
    """Immutable DTO for product creation requests.

    ``initial_stock`` is booked through the inventory engine as an ADD so
    the ledger starts complete.
    """

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    price: Decimal
    description: str = ""
    category: ProductCategory = ProductCategory.OTHERS
    brand: str = ""
    unit: Unit = Unit.PIECE
    hsn_code: str = ""
    gst_rate: int = 18
    bulk_pricing: List[PriceTierDTO] = Field(default_factory=list)
    min_order_quantity: int = Field(default=1, ge=1)
    max_order_quantity: Optional[int] = Field(default=None, ge=1)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    initial_stock: int = Field(default=0, ge=0)

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()


class UpdateProductDTO(_CatalogFields):
    """Immutable DTO for catalog updates.

    All fields are optional; only supplied fields are written.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category: Optional[ProductCategory] = None
    brand: Optional[str] = None
    unit: Optional[Unit] = None
    hsn_code: Optional[str] = None
    gst_rate: Optional[int] = None
    bulk_pricing: Optional[List[PriceTierDTO]] = None
    min_order_quantity: Optional[int] = Field(default=None, ge=1)
    max_order_quantity: Optional[int] = Field(default=None, ge=1)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    status: Optional[ProductStatus] = None


# ---------------------------------------------------------------------------
# Output DTO
# ---------------------------------------------------------------------------


class PriceQuoteDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    quantity: int
    price_per_unit: Decimal
    discount_percent: Decimal
    tier_applied: str
    gst_rate: int
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal
    savings: Decimal

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> PriceQuoteDTO:
        return cls(
            quantity=quote.quantity,
            price_per_unit=quote.price_per_unit,
            discount_percent=quote.discount_percent,
            tier_applied=quote.tier_applied,
            gst_rate=quote.gst_rate,
            subtotal=quote.subtotal,
            gst_amount=quote.gst_amount,
            total=quote.total,
            savings=quote.savings,
        )
