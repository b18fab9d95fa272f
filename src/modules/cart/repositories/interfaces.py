"""Cart repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from modules.cart.models import Cart, CartItem


class ICartRepository(ABC):
    @abstractmethod
    def get_or_create(self, user_id: Any) -> Cart:
        """Return the user's cart, creating an empty one if needed."""

    @abstractmethod
    def items(self, user_id: Any) -> List[CartItem]:
        """Cart lines with their products, oldest first."""

    @abstractmethod
    def get_item(self, user_id: Any, product_id: Any) -> Optional[CartItem]:
        """The line for ``product_id`` or ``None``."""

    @abstractmethod
    def save_item(self, item: CartItem) -> CartItem:
        """Insert or update one cart line."""

    @abstractmethod
    def remove_item(self, user_id: Any, product_id: Any) -> bool:
        """Delete one line; ``False`` when it did not exist."""

    @abstractmethod
    def clear(self, user_id: Any) -> int:
        """Delete every line; returns the number removed."""
