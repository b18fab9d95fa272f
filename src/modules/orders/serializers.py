"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import CancelledBy, OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    note = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class StaffCancelOrderSerializer(CancelOrderSerializer):
    cancelled_by = serializers.ChoiceField(
        choices=[CancelledBy.STAFF, CancelledBy.SYSTEM],
        required=False,
        default=CancelledBy.STAFF,
    )


class SubmitPaymentSerializer(serializers.Serializer):
    """Buyer-reported manual payment (UPI / bank transfer)."""

    payment_method = serializers.ChoiceField(
        choices=[PaymentMethod.UPI, PaymentMethod.BANK_TRANSFER], required=False
    )
    reference = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )


class AssignEmployeeSerializer(serializers.Serializer):
    employee_id = serializers.IntegerField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items; names come from the frozen snapshot."""

    product_name = serializers.SerializerMethodField()
    product_sku = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "product_snapshot",
            "quantity",
            "price_per_unit",
            "discount_percent",
            "subtotal",
            "gst_amount",
            "total",
        ]
        read_only_fields = fields

    def get_product_name(self, obj: OrderItem) -> str:
        return obj.product_snapshot.get("name", "")

    def get_product_sku(self, obj: OrderItem) -> str:
        return obj.product_snapshot.get("sku", "")


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "note",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "customer_snapshot",
            "shipping_address",
            "billing_address",
            "status",
            "payment_status",
            "payment_method",
            "payment_reference",
            "payment_submitted_at",
            "gateway_order_id",
            "gateway_payment_id",
            "paid_at",
            "invoice_number",
            "invoice_date",
            "subtotal",
            "total_discount",
            "cgst",
            "sgst",
            "igst",
            "total_gst",
            "shipping_charges",
            "round_off",
            "total_amount",
            "amount_refunded",
            "assigned_employee_id",
            "customer_notes",
            "expected_delivery_date",
            "actual_delivery_date",
            "cancellation_reason",
            "cancelled_at",
            "cancelled_by",
            "requires_reconciliation",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class StaffOrderSerializer(OrderSerializer):
    """Adds the staff-only fields."""

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["internal_notes", "reconciliation_note"]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    customer_name = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "customer_name",
            "status",
            "payment_status",
            "payment_method",
            "total_amount",
            "requires_reconciliation",
            "created_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj: Order) -> str:
        snapshot = obj.customer_snapshot or {}
        return snapshot.get("business_name") or snapshot.get("name", "")
