"""Inventory repository interfaces.

``IStockRepository`` is the only write path to a product's stock record.
``ILedgerRepository`` appends and queries stock ledger entries.  The
inventory service depends exclusively on these contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from modules.inventory.models import StockLedgerEntry
    from modules.inventory.stock import StockLevel
    from modules.products.models import Product


class IStockRepository(ABC):
    @abstractmethod
    def get_for_update(self, product_id: Any) -> Optional[Product]:
        """Fetch an alive product with a row-level lock."""

    @abstractmethod
    def compare_and_swap(
        self, product_id: Any, expected: StockLevel, new: StockLevel
    ) -> bool:
        """Write ``new`` only if the stored record still equals ``expected``."""

    @abstractmethod
    def low_stock(self, limit: int) -> List[Product]:
        """Active products with available stock at or below threshold."""

    @abstractmethod
    def out_of_stock(self, limit: int) -> List[Product]:
        """Active products with no available stock."""

    @abstractmethod
    def product_totals(self) -> Dict[str, Any]:
        """Aggregate stock figures over active products."""


class ILedgerRepository(ABC):
    @abstractmethod
    def append(self, **fields: Any) -> StockLedgerEntry:
        """Create one ledger entry."""

    @abstractmethod
    def query(
        self, filters: Dict[str, Any], offset: int, limit: int
    ) -> Tuple[List[StockLedgerEntry], int]:
        """Return one page of entries (newest first) and the total count."""

    @abstractmethod
    def count_since(self, since: datetime) -> int:
        """Number of entries created at or after ``since``."""

    @abstractmethod
    def breakdown_since(self, since: datetime) -> Dict[str, Dict[str, int]]:
        """Per-action ``{count, total_quantity}`` since ``since``."""
