"""Inventory service layer (Use Cases).

Every stock mutation is one unit of work:

1. Lock the product row (``SELECT FOR UPDATE``).
2. Compute the new ``StockLevel`` (the value object enforces the rules).
3. Write it with a compare-and-swap update on the previous values.
4. Append exactly one ledger entry.
5. Record ``LowStockDetected`` in the outbox when the operation pushed
   available stock down to the product's threshold.

A failure at any step rolls back all of it.  Reserve, release and deduct
are called by the order lifecycle inside its own unit of work, in which
case they join the caller's transaction.
"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog
from django.conf import settings
from django.utils import timezone

from modules.core.outbox import record_event
from modules.core.unit_of_work import UnitOfWork
from modules.inventory.constants import (
    ALL_LOGS_DEFAULT_LIMIT,
    DEFAULT_REASONS,
    NOTES_MAX_LENGTH,
    ORDER_BOUND_ACTIONS,
    PRODUCT_LOGS_DEFAULT_LIMIT,
    REASON_MAX_LENGTH,
    REASON_REQUIRED,
    STOCK_LIST_DEFAULT_LIMIT,
    ActionType,
)
from modules.inventory.dtos import (
    InventoryStatsDTO,
    LedgerEntryDTO,
    LedgerPageDTO,
    LedgerQueryDTO,
    PaginationDTO,
    StockMutationResult,
)
from modules.inventory.events import LowStockDetected
from modules.inventory.exceptions import InvalidQuantity, MissingReason, StockWriteConflict
from modules.inventory.stock import StockLevel
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.inventory.repositories.interfaces import ILedgerRepository, IStockRepository
    from modules.products.models import Product

logger = structlog.get_logger(__name__)

# Every action type maps to exactly one StockLevel operation.
STOCK_OPERATIONS: Dict[str, Callable[[StockLevel, int], StockLevel]] = {
    ActionType.ADD: StockLevel.add,
    ActionType.ADJUST: StockLevel.adjust,
    ActionType.RESERVE: StockLevel.reserve,
    ActionType.RELEASE: StockLevel.release,
    ActionType.DEDUCT: StockLevel.deduct,
    ActionType.DAMAGED: StockLevel.mark_damaged,
}


def ledger_quantity(action_type: str, quantity: int) -> int:
    """Signed quantity stored on the ledger entry."""
    if action_type == ActionType.DAMAGED:
        return -quantity
    return quantity


def _actor_id(actor: Any) -> Optional[int]:
    return getattr(actor, "pk", actor)


class InventoryService:
    """Application service for stock mutations and inventory reads.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        stock_repository: IStockRepository,
        ledger_repository: ILedgerRepository,
        unit_of_work: Optional[UnitOfWork] = None,
    ) -> None:
        self._stock_repo = stock_repository
        self._ledger_repo = ledger_repository
        self._uow = unit_of_work or UnitOfWork()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_stock(
        self,
        product_id: Any,
        quantity: int,
        actor: Any = None,
        reason: Optional[str] = None,
        notes: str = "",
        order_id: Any = None,
    ) -> StockMutationResult:
        """Receive stock from a supplier, or restock a refunded order.

        Raises:
            InvalidQuantity: quantity is not a positive integer.
            ProductNotFound: product does not exist.
        """
        return self._mutate(
            ActionType.ADD,
            product_id,
            quantity,
            actor=actor,
            order_id=order_id,
            reason=reason,
            notes=notes,
        )

    def adjust_stock(
        self,
        product_id: Any,
        delta: int,
        actor: Any = None,
        reason: Optional[str] = None,
        notes: str = "",
    ) -> StockMutationResult:
        """Manual correction of the physical count by a signed ``delta``.

        Raises:
            MissingReason: no reason given.
            InvalidQuantity: delta is zero.
            NegativeStock: total would drop below zero.
            BelowReserved: total would drop below the reserved amount.
        """
        return self._mutate(
            ActionType.ADJUST, product_id, delta, actor=actor, reason=reason, notes=notes
        )

    def reserve_stock(
        self, product_id: Any, quantity: int, order_id: Any, actor: Any = None
    ) -> StockMutationResult:
        """Hold stock for an order awaiting payment.

        Raises:
            InsufficientStock: not enough available stock.
        """
        return self._mutate(
            ActionType.RESERVE, product_id, quantity, actor=actor, order_id=order_id
        )

    def release_stock(
        self,
        product_id: Any,
        quantity: int,
        order_id: Any,
        actor: Any = None,
        reason: Optional[str] = None,
    ) -> StockMutationResult:
        """Return reserved stock to the available pool.

        Raises:
            OverRelease: quantity exceeds the reserved amount.
        """
        return self._mutate(
            ActionType.RELEASE,
            product_id,
            quantity,
            actor=actor,
            order_id=order_id,
            reason=reason,
        )

    def deduct_stock(
        self, product_id: Any, quantity: int, order_id: Any, actor: Any = None
    ) -> StockMutationResult:
        """Consume reserved stock once payment is confirmed.

        Raises:
            OverDeduct: quantity exceeds the reserved amount.
        """
        return self._mutate(
            ActionType.DEDUCT, product_id, quantity, actor=actor, order_id=order_id
        )

    def mark_damaged(
        self,
        product_id: Any,
        quantity: int,
        actor: Any = None,
        reason: Optional[str] = None,
        notes: str = "",
    ) -> StockMutationResult:
        """Write off damaged or expired stock from the unreserved pool.

        Raises:
            MissingReason: no reason given.
            InsufficientAvailable: quantity exceeds available stock.
        """
        return self._mutate(
            ActionType.DAMAGED, product_id, quantity, actor=actor, reason=reason, notes=notes
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_logs(
        self, product_id: Any = None, query: Optional[LedgerQueryDTO] = None
    ) -> LedgerPageDTO:
        """Ledger entries newest first, for one product or globally."""
        query = query or LedgerQueryDTO()
        filters = query.filters()
        if product_id is not None:
            filters["product_id"] = product_id
            limit = query.limit or PRODUCT_LOGS_DEFAULT_LIMIT
        else:
            limit = query.limit or ALL_LOGS_DEFAULT_LIMIT

        offset = (query.page - 1) * limit
        entries, total = self._ledger_repo.query(filters, offset, limit)
        return LedgerPageDTO(
            logs=[LedgerEntryDTO.from_entity(entry) for entry in entries],
            pagination=PaginationDTO(
                page=query.page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if total else 0,
            ),
        )

    def get_stats(self) -> InventoryStatsDTO:
        now = timezone.now()
        recent_since = now - timedelta(hours=settings.INVENTORY_RECENT_ACTIVITY_HOURS)
        window_since = now - timedelta(days=settings.INVENTORY_STATS_WINDOW_DAYS)
        return InventoryStatsDTO(
            products=self._stock_repo.product_totals(),
            recent_activity_count=self._ledger_repo.count_since(recent_since),
            action_breakdown=self._ledger_repo.breakdown_since(window_since),
        )

    def get_low_stock_products(self, limit: int = STOCK_LIST_DEFAULT_LIMIT) -> List[Product]:
        return self._stock_repo.low_stock(limit)

    def get_out_of_stock_products(self, limit: int = STOCK_LIST_DEFAULT_LIMIT) -> List[Product]:
        return self._stock_repo.out_of_stock(limit)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mutate(
        self,
        action_type: ActionType,
        product_id: Any,
        quantity: int,
        *,
        actor: Any = None,
        order_id: Any = None,
        reason: Optional[str] = None,
        notes: str = "",
    ) -> StockMutationResult:
        if action_type in ORDER_BOUND_ACTIONS and order_id is None:
            raise ValueError(f"{action_type} must reference an order")
        _validate_quantity(action_type, quantity)
        reason = _resolve_reason(action_type, reason)
        notes = (notes or "").strip()[:NOTES_MAX_LENGTH]
        operation = STOCK_OPERATIONS[action_type]

        def write() -> StockMutationResult:
            max_retries = settings.STOCK_WRITE_MAX_RETRIES
            for attempt in range(1, max_retries + 1):
                product = self._stock_repo.get_for_update(product_id)
                if product is None:
                    raise ProductNotFound()

                previous = product.stock_level
                new = operation(previous, quantity)
                if self._stock_repo.compare_and_swap(product.pk, previous, new):
                    return self._record(
                        action_type, product, previous, new, quantity,
                        actor=actor, order_id=order_id, reason=reason, notes=notes,
                    )
                logger.warning(
                    "inventory.stock_write_conflict",
                    product_id=str(product.pk),
                    action_type=str(action_type),
                    attempt=attempt,
                )
            raise StockWriteConflict()

        return self._uow.run(write)

    def _record(
        self,
        action_type: ActionType,
        product: Product,
        previous: StockLevel,
        new: StockLevel,
        quantity: int,
        *,
        actor: Any,
        order_id: Any,
        reason: str,
        notes: str,
    ) -> StockMutationResult:
        product.stock_total = new.total
        product.stock_reserved = new.reserved

        entry = self._ledger_repo.append(
            product=product,
            action_type=action_type,
            quantity=ledger_quantity(action_type, quantity),
            previous_stock_total=previous.total,
            previous_stock_reserved=previous.reserved,
            new_stock_total=new.total,
            new_stock_reserved=new.reserved,
            performed_by_id=_actor_id(actor),
            order_id=order_id,
            reason=reason,
            notes=notes,
        )

        logger.info(
            f"inventory.stock_{action_type.lower()}",
            product_id=str(product.pk),
            order_id=str(order_id) if order_id else None,
            quantity=entry.quantity,
            stock_total=new.total,
            stock_reserved=new.reserved,
            stock_available=new.available,
        )

        if new.available < previous.available and new.available <= product.low_stock_threshold:
            record_event(
                LowStockDetected(
                    aggregate_id=product.pk,
                    product_name=product.name,
                    sku=product.sku,
                    unit=product.unit,
                    stock_available=new.available,
                    low_stock_threshold=product.low_stock_threshold,
                )
            )
            logger.info(
                "inventory.low_stock_detected",
                product_id=str(product.pk),
                stock_available=new.available,
                threshold=product.low_stock_threshold,
            )

        return StockMutationResult(product=product, entry=entry)


def _validate_quantity(action_type: str, quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity()
    if action_type == ActionType.ADJUST:
        if quantity == 0:
            raise InvalidQuantity("Adjustment quantity must be non-zero")
    elif quantity <= 0:
        raise InvalidQuantity()


def _resolve_reason(action_type: str, reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if not reason:
        if action_type in REASON_REQUIRED:
            raise MissingReason(REASON_REQUIRED[action_type])
        reason = DEFAULT_REASONS.get(action_type, "")
    return reason[:REASON_MAX_LENGTH]
