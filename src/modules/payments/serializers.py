"""Payment DRF serializers (output)."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order


class PaymentStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_status",
            "payment_method",
            "total_amount",
            "invoice_number",
            "gateway_order_id",
            "gateway_payment_id",
            "paid_at",
        ]
        read_only_fields = fields
