"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are
the contracts between the API layer (DRF Serializers) and the Service
layer.  DTOs are immutable (``frozen=True``).

- ``AddressDTO``: shipping / billing address.
- ``CreateOrderDTO``: checkout input (items come from the cart).
- ``GatewayRefsDTO``: payment gateway references attached on confirmation.
- ``InvoiceDTO``: invoice read model.
- ``OrderStatsDTO``: order counts and revenue.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.conf import settings
from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import ADDRESS_FIELDS, CUSTOMER_NOTES_MAX_LENGTH

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    street: str = ""
    city: str = ""
    district: str = ""
    state: str = ""
    pincode: str = ""

    @field_validator(*ADDRESS_FIELDS, mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    def as_json(self) -> Dict[str, str]:
        return self.model_dump()


class CreateOrderDTO(BaseModel):
    """Immutable DTO for checkout requests.

    Payment method and address completeness are validated by the service
    so that they surface as ``InvalidPaymentMethod`` / ``InvalidAddress``.
    """

    model_config = ConfigDict(frozen=True)

    payment_method: str
    shipping_address: AddressDTO
    billing_address: Optional[AddressDTO] = None
    customer_notes: str = ""
    expected_delivery_date: Optional[date] = None

    @field_validator("customer_notes", mode="before")
    @classmethod
    def truncate_notes(cls, v: Any) -> str:
        return ("" if v is None else str(v).strip())[:CUSTOMER_NOTES_MAX_LENGTH]


class GatewayRefsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    gateway_order_id: str = ""
    gateway_payment_id: str = ""
    gateway_signature: str = ""

    def as_fields(self) -> Dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value}


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class InvoiceLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    hsn_code: str
    quantity: int
    unit: str
    rate: Decimal
    gst_rate: int
    gst_amount: Decimal
    amount: Decimal


class InvoicePartyDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    gstin: str = ""
    address: Any = None
    phone: str = ""


class InvoiceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    invoice_number: Optional[str]
    invoice_date: Optional[datetime]
    order_number: str
    order_date: datetime
    seller: InvoicePartyDTO
    buyer: InvoicePartyDTO
    shipping_address: Dict[str, Any]
    items: List[InvoiceLineDTO]
    subtotal: Decimal
    total_discount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_gst: Decimal
    shipping_charges: Decimal
    round_off: Decimal
    total_amount: Decimal
    payment_status: str
    payment_method: str

    @classmethod
    def from_entity(cls, order: Order) -> InvoiceDTO:
        """Assumes ``items`` are prefetched."""
        customer = order.customer_snapshot or {}
        return cls(
            invoice_number=order.invoice_number,
            invoice_date=order.invoice_date,
            order_number=order.order_number,
            order_date=order.created_at,
            seller=InvoicePartyDTO(
                name=settings.BUSINESS_NAME,
                gstin=settings.BUSINESS_GSTIN,
                address=settings.BUSINESS_ADDRESS,
                phone=settings.BUSINESS_PHONE,
            ),
            buyer=InvoicePartyDTO(
                name=customer.get("business_name") or customer.get("name") or "",
                gstin=customer.get("gstin") or "",
                address=order.billing_address,
                phone=customer.get("phone") or "",
            ),
            shipping_address=order.shipping_address,
            items=[
                InvoiceLineDTO(
                    name=item.product_snapshot.get("name", ""),
                    hsn_code=item.product_snapshot.get("hsn_code", ""),
                    quantity=item.quantity,
                    unit=item.product_snapshot.get("unit", ""),
                    rate=item.price_per_unit,
                    gst_rate=item.product_snapshot.get("gst_rate", 0),
                    gst_amount=item.gst_amount,
                    amount=item.total,
                )
                for item in order.items.all()
            ],
            subtotal=order.subtotal,
            total_discount=order.total_discount,
            cgst=order.cgst,
            sgst=order.sgst,
            igst=order.igst,
            total_gst=order.total_gst,
            shipping_charges=order.shipping_charges,
            round_off=order.round_off,
            total_amount=order.total_amount,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
        )


class OrderStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    by_status: Dict[str, int]
    revenue: Decimal
    pending_payment_amount: Decimal
    requires_reconciliation: int = Field(default=0)
