"""Product DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource.

    Stock figures are read-only; they change only through the inventory
    endpoints.
    """

    stock_available = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "category",
            "brand",
            "unit",
            "hsn_code",
            "price",
            "gst_rate",
            "bulk_pricing",
            "min_order_quantity",
            "max_order_quantity",
            "stock_total",
            "stock_reserved",
            "stock_available",
            "low_stock_threshold",
            "is_low_stock",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PriceQuoteSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    price_per_unit = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2)
    tier_applied = serializers.CharField()
    gst_rate = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    gst_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
    savings = serializers.DecimalField(max_digits=14, decimal_places=2)
