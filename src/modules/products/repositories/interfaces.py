"""Product repository interface.

Extends ``IRepository[Product]`` with catalog look-ups.  Note the absence
of any stock setter: stock fields are written exclusively through
``IStockRepository`` in the inventory context.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List alive products with optional filters."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""
