"""Inventory engine exceptions.

Each failure carries its HTTP classification (see ``DomainError``).  A
raised error always means no stock row and no ledger row were written.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status

from modules.core.exceptions import DomainError


class InventoryError(DomainError):
    """Base class for stock-rule violations."""

    status_code = status.HTTP_409_CONFLICT


class InvalidQuantity(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Quantity must be positive"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, attr="quantity")


class MissingReason(InventoryError):
    """A reason is mandatory for ADJUST and DAMAGED."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Reason is required"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, attr="reason")


class NegativeStock(InventoryError):
    default_message = "Adjustment would result in negative stock"


class BelowReserved(InventoryError):
    default_message = "Cannot reduce stock below reserved amount"


class InsufficientStock(InventoryError):
    """Not enough available stock to reserve."""

    def __init__(self, product_name: str, available: int, unit: str) -> None:
        self.product_name = product_name
        self.available = available
        self.unit = unit
        super().__init__(
            f'Insufficient stock for "{product_name}". Available: {available} {unit}'
        )


class OverRelease(InventoryError):
    default_message = "Cannot release more stock than reserved"


class OverDeduct(InventoryError):
    default_message = "Cannot deduct more stock than reserved"


class InsufficientAvailable(InventoryError):
    """Damaged stock must come out of the unreserved pool."""

    def __init__(self, requested: int, available: int, unit: str) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot mark {requested} as damaged. "
            f"Only {available} {unit} available (not reserved)"
        )


class StockWriteConflict(InventoryError):
    """The compare-and-swap update kept losing to concurrent writers."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Stock record is busy, please retry"


class LedgerEntryImmutable(InventoryError):
    """Stock ledger entries are append-only."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Stock ledger entries cannot be modified or deleted"
