"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the Order
aggregate: atomic creation with items, row locking, status history and
gateway look-ups.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db import models

    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    ``save`` also writes the aggregate's pending domain events to the
    outbox, in the caller's transaction.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]) -> Order:
        """Create an order with its items."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def get_by_gateway_order_id(self, gateway_order_id: str) -> Optional[Order]:
        """Retrieve an order by its payment gateway order reference."""

    @abstractmethod
    def get_by_gateway_payment_id(self, gateway_payment_id: str) -> Optional[Order]:
        """Retrieve an order by its payment gateway payment reference."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        old_status: Optional[str],
        new_status: str,
        note: str = "",
        user_id: Optional[int] = None,
    ) -> OrderStatusHistory:
        """Append one record to the order's audit trail."""

    @abstractmethod
    def flag_reconciliation(self, id: Any, note: str) -> None:
        """Mark an order as needing manual payment reconciliation."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List alive orders with optional ORM look-ups."""

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        """Order counts per status and revenue figures."""
