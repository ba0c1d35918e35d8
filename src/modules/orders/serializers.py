"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import (
    FulfillmentStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class AddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    line1 = serializers.CharField(max_length=255)
    line2 = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)


class CheckoutSerializer(serializers.Serializer):
    """Validates the checkout payload; line items come from the cart."""

    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    shipping_address = AddressSerializer()
    billing_address = AddressSerializer(required=False)
    customer_notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=1000
    )


class UpdateOrderSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    payment_status = serializers.ChoiceField(
        choices=PaymentStatus.choices, required=False
    )
    fulfillment_status = serializers.ChoiceField(
        choices=FulfillmentStatus.choices, required=False
    )
    tracking_number = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    internal_note = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)

    def validate_status(self, value: str) -> str:
        if value == OrderStatus.CANCELLED:
            raise serializers.ValidationError(
                "Use the /cancel/ endpoint for cancellations."
            )
        return value

    def validate(self, attrs):
        if not set(attrs) - {"notes"}:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Line snapshot taken at checkout."""

    class Meta:
        model = OrderItem
        fields = ["id", "product_id", "name", "sku", "quantity", "unit_price", "total"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "notes", "created_at"]
        read_only_fields = fields


_ORDER_SUMMARY_FIELDS = [
    "id",
    "order_number",
    "customer_id",
    "status",
    "payment_status",
    "fulfillment_status",
    "total",
    "created_at",
]


class OrderSerializer(serializers.ModelSerializer):
    """Customer-facing order with items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = _ORDER_SUMMARY_FIELDS + [
            "payment_method",
            "subtotal",
            "tax",
            "shipping",
            "shipping_address",
            "billing_address",
            "customer_notes",
            "tracking_number",
            "shipped_at",
            "delivered_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class StaffOrderSerializer(OrderSerializer):
    """Adds the fields only staff may see."""

    customer_email = serializers.EmailField(source="customer.email", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + [
            "customer_email",
            "payment_reference",
            "internal_note",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    class Meta:
        model = Order
        fields = _ORDER_SUMMARY_FIELDS
        read_only_fields = fields
