from decimal import Decimal

from rest_framework import serializers

from storefront.core.serializers import UserSerializer
from storefront.inventory.serializers import InventorySerializer
from .models import ShippingAddress, Order, OrderItem


class ShippingAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingAddress
        fields = ['id', 'full_name', 'phone', 'email', 'address_line1', 'address_line2', 'city',
                  'state', 'pin_code', 'country', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class OrderItemSerializer(serializers.ModelSerializer):
    inventory = InventorySerializer(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'inventory', 'quantity', 'price', 'line_total']


class OrderSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    shipping_address = ShippingAddressSerializer(read_only=True)
    billing_address = ShippingAddressSerializer(read_only=True)
    final_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_no', 'user', 'items', 'status', 'total_amount', 'discount', 'final_amount',
                  'delivery_type', 'payment_status', 'payment_method', 'transaction_id', 'payment_gateway',
                  'paid_at', 'failure_reason', 'shipping_address', 'billing_address', 'order_date',
                  'expected_delivery_date', 'actual_delivery_date', 'cancelled_at', 'cancellation_reason',
                  'tracking_number', 'notes', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderLineSerializer(serializers.Serializer):
    inventory_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class OrderCreateSerializer(serializers.Serializer):
    items = OrderLineSerializer(many=True, allow_empty=False)
    shipping_address_id = serializers.IntegerField()
    billing_address_id = serializers.IntegerField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default='cash')
    delivery_type = serializers.ChoiceField(choices=Order.DELIVERY_CHOICES, default='standard')
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    clear_cart = serializers.BooleanField(default=False)


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES)
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    paid_at = serializers.DateTimeField(required=False)
