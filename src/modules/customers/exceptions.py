"""Customer domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class CustomerNotFound(DomainError):
    """The buyer placing the order does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Customer not found."


class InactiveCustomer(DomainError):
    """The retailer profile is inactive and cannot place orders."""

    default_message = "Customer is inactive."
