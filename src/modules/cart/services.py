"""Cart service layer (Use Cases).

Business rules enforced here:
- Only active products can be added.
- Quantities respect the product's minimum and maximum order quantity;
  adding an existing product merges into its line.
- The requested quantity must currently be available.  This is a read-only
  check: stock is reserved only when the order is placed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.cart.dtos import CartDTO
from modules.cart.exceptions import CartItemNotFound
from modules.cart.models import CartItem
from modules.inventory.exceptions import InsufficientStock
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    def get_cart(self, user_id: Any) -> CartDTO:
        return CartDTO.from_items(self._cart_repo.items(user_id))

    @transaction.atomic
    def add_item(self, user_id: Any, product_id: Any, quantity: int) -> CartDTO:
        """Add ``quantity`` of a product, merging with an existing line.

        Raises:
            ProductNotFound: product does not exist.
            InactiveProduct: product is not available.
            OrderQuantityOutOfRange: outside min/max order quantity.
            InsufficientStock: not enough stock available right now.
        """
        product = self._product(product_id)
        item = self._cart_repo.get_item(user_id, product.id)
        new_quantity = quantity + (item.quantity if item else 0)
        self._check(product, new_quantity)

        if item is None:
            cart = self._cart_repo.get_or_create(user_id)
            item = CartItem(cart=cart, product=product, quantity=new_quantity)
        else:
            item.quantity = new_quantity
        self._cart_repo.save_item(item)
        logger.info(
            "cart.item_added",
            user_id=user_id,
            product_id=str(product.id),
            quantity=new_quantity,
        )
        return self.get_cart(user_id)

    @transaction.atomic
    def update_item(self, user_id: Any, product_id: Any, quantity: int) -> CartDTO:
        """Set a line's quantity; zero or less removes the line.

        Raises:
            CartItemNotFound: product is not in the cart.
        """
        item = self._cart_repo.get_item(user_id, product_id)
        if item is None:
            raise CartItemNotFound()
        if quantity <= 0:
            return self.remove_item(user_id, product_id)

        self._check(item.product, quantity)
        item.quantity = quantity
        self._cart_repo.save_item(item)
        logger.info("cart.item_updated", user_id=user_id, product_id=str(product_id), quantity=quantity)
        return self.get_cart(user_id)

    @transaction.atomic
    def remove_item(self, user_id: Any, product_id: Any) -> CartDTO:
        if not self._cart_repo.remove_item(user_id, product_id):
            raise CartItemNotFound()
        logger.info("cart.item_removed", user_id=user_id, product_id=str(product_id))
        return self.get_cart(user_id)

    @transaction.atomic
    def clear(self, user_id: Any) -> CartDTO:
        removed = self._cart_repo.clear(user_id)
        logger.info("cart.cleared", user_id=user_id, removed=removed)
        return self.get_cart(user_id)

    # ------------------------------------------------------------------

    def _product(self, product_id: Any) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFound()
        return product

    @staticmethod
    def _check(product: Product, quantity: int) -> None:
        product.check_orderable(quantity)
        if product.stock_available < quantity:
            raise InsufficientStock(product.name, product.stock_available, product.unit)
