"""Retailer (buyer) profile.

Business rules implemented:
- One profile per auth user; the profile is the source of the order's
  customer snapshot.
- GSTIN, when present, must match the 15-character GSTIN layout and is
  stored upper-cased.
- Inactive retailers cannot place orders (enforced at service layer).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
- GSTIN is masked in ``__str__`` and logs.
"""

from __future__ import annotations

import re
from typing import Any, Dict

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)

GSTIN_PATTERN = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


class Customer(SoftDeleteModel):
    """Retailer profile linked one-to-one with an auth user."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="customer_profile",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254)
    phone = models.CharField(max_length=20, blank=True, default="")
    business_name = models.CharField(max_length=255, blank=True, default="")
    gstin = models.CharField(max_length=15, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_gstin(value: str) -> str:
        return re.sub(r"\s", "", value or "").upper()

    def clean(self) -> None:
        super().clean()
        self.gstin = self._normalize_gstin(self.gstin)
        if self.gstin and not GSTIN_PATTERN.match(self.gstin):
            logger.warning(
                "customer.invalid_gstin",
                gstin_suffix=self.gstin[-4:],
            )
            raise ValidationError({"gstin": "Invalid GSTIN."})

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_snapshot(self) -> Dict[str, Any]:
        """Frozen copy embedded into orders at checkout."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "business_name": self.business_name,
            "gstin": self.gstin,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        self.gstin = self._normalize_gstin(self.gstin)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        if not self.gstin:
            return self.business_name or self.name
        return f"{self.business_name or self.name} (GSTIN: ***{self.gstin[-4:]})"
