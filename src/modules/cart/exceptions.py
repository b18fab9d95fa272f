"""Cart domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class CartItemNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Item not found in cart"


class EmptyCart(DomainError):
    """Checkout attempted with no items in the cart."""

    default_message = "Cart is empty"
