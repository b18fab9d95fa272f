"""Product stock record value object.

``StockLevel`` is the only place where stock arithmetic happens.  Each of
the six operations validates its precondition and returns a *new* level;
nothing mutates in place, so a rejected operation cannot leave a
half-applied record behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from modules.inventory.exceptions import (
    BelowReserved,
    InsufficientAvailable,
    InsufficientStock,
    InvalidQuantity,
    NegativeStock,
    OverDeduct,
    OverRelease,
)


@dataclass(frozen=True)
class StockLevel:
    total: int
    reserved: int
    product_name: str = field(default="product", compare=False)
    unit: str = field(default="units", compare=False)

    def __post_init__(self) -> None:
        if self.total < 0 or self.reserved < 0 or self.reserved > self.total:
            raise ValueError(
                f"Invalid stock level: total={self.total}, reserved={self.reserved}"
            )

    @property
    def available(self) -> int:
        return self.total - self.reserved

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add(self, quantity: int) -> StockLevel:
        _require_positive(quantity)
        return replace(self, total=self.total + quantity)

    def adjust(self, delta: int) -> StockLevel:
        if not _is_int(delta) or delta == 0:
            raise InvalidQuantity("Adjustment quantity must be non-zero")
        new_total = self.total + delta
        if new_total < 0:
            raise NegativeStock()
        if new_total < self.reserved:
            raise BelowReserved()
        return replace(self, total=new_total)

    def reserve(self, quantity: int) -> StockLevel:
        _require_positive(quantity)
        if self.available < quantity:
            raise InsufficientStock(self.product_name, self.available, self.unit)
        return replace(self, reserved=self.reserved + quantity)

    def release(self, quantity: int) -> StockLevel:
        _require_positive(quantity)
        if self.reserved < quantity:
            raise OverRelease()
        return replace(self, reserved=self.reserved - quantity)

    def deduct(self, quantity: int) -> StockLevel:
        _require_positive(quantity)
        if self.reserved < quantity:
            raise OverDeduct()
        return replace(
            self, total=self.total - quantity, reserved=self.reserved - quantity
        )

    def mark_damaged(self, quantity: int) -> StockLevel:
        _require_positive(quantity)
        if self.available < quantity:
            raise InsufficientAvailable(quantity, self.available, self.unit)
        return replace(self, total=self.total - quantity)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_positive(quantity: int) -> None:
    if not _is_int(quantity) or quantity <= 0:
        raise InvalidQuantity()
