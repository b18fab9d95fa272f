"""Inventory DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.inventory.constants import NOTES_MAX_LENGTH, REASON_MAX_LENGTH
from modules.products.models import Product


class StockMutationInputSerializer(serializers.Serializer):
    """Body of the add / adjust / damaged endpoints.

    Length and sign rules are enforced by the inventory engine so that the
    API and internal callers share the same error messages.
    """

    quantity = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_reason(self, value: str) -> str:
        return value[:REASON_MAX_LENGTH]

    def validate_notes(self, value: str) -> str:
        return value[:NOTES_MAX_LENGTH]


class StockProductSerializer(serializers.ModelSerializer):
    stock_available = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "category",
            "unit",
            "stock_total",
            "stock_reserved",
            "stock_available",
            "low_stock_threshold",
        ]
        read_only_fields = fields
