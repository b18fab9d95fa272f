"""Customer repository interface.

Only the look-ups the order lifecycle needs to build customer snapshots.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(ABC):
    """Repository contract for retailer profiles."""

    @abstractmethod
    def get_by_user(self, user_id: Any) -> Optional[Customer]:
        """Retrieve the profile owned by an auth user."""

    @abstractmethod
    def snapshot_for_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """Customer snapshot for ``user_id``; ``None`` if the user does not exist."""
