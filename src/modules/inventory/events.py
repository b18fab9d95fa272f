"""Domain events for the Inventory bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class LowStockDetected(DomainEvent):
    """Available stock fell to or below the product's low-stock threshold."""

    topic: ClassVar[str] = "inventory"

    product_name: str
    sku: str
    unit: str
    stock_available: int
    low_stock_threshold: int
