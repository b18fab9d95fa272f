"""Django ORM implementation of the Customer repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository


class CustomerDjangoRepository(ICustomerRepository):
    def get_by_user(self, user_id: Any) -> Optional[Customer]:
        return Customer.objects.alive().filter(user_id=user_id).first()

    def snapshot_for_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """Prefer the retailer profile; fall back to the bare auth user."""
        profile = self.get_by_user(user_id)
        if profile is not None:
            return profile.to_snapshot()

        user = get_user_model().objects.filter(pk=user_id).first()
        if user is None:
            return None
        return {
            "name": user.get_full_name() or user.get_username(),
            "email": user.email,
            "phone": "",
            "business_name": "",
            "gstin": "",
        }
