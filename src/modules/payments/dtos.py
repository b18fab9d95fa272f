"""Payment DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VerifyPaymentDTO(BaseModel):
    """Checkout callback data returned by the gateway to the buyer."""

    model_config = ConfigDict(frozen=True)

    order_id: Optional[UUID] = None
    gateway_order_id: str = Field(min_length=1)
    gateway_payment_id: str = Field(min_length=1)
    gateway_signature: str = Field(min_length=1)


class WebhookResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: str
    processed: bool
    order_id: Optional[str] = None
    message: str = ""
