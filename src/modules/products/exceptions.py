"""Product domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class ProductAlreadyExists(DomainError):
    """A product with the same SKU already exists."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Product already exists."


class ProductNotFound(DomainError):
    """The requested product does not exist or has been soft-deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Product not found"


class InactiveProduct(DomainError):
    """An inactive product cannot be added to a cart or ordered."""


class OrderQuantityOutOfRange(DomainError):
    """Requested quantity violates the product's min/max order quantity."""

    def __init__(self, message: str) -> None:
        super().__init__(message, attr="quantity")
