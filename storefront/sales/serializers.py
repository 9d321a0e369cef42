from decimal import Decimal

from rest_framework import serializers

from storefront.inventory.serializers import InventorySerializer, PricedLineSerializer
from storefront.parties.serializers import CustomerSerializer
from .models import SalesOrder, SalesOrderItem


class SalesOrderItemSerializer(serializers.ModelSerializer):
    inventory = InventorySerializer(read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = ['id', 'inventory', 'quantity', 'price']


class SalesOrderSerializer(serializers.ModelSerializer):
    customer = CustomerSerializer(read_only=True)
    items = SalesOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = SalesOrder
        fields = ['id', 'order_number', 'user', 'customer', 'items', 'sales_date',
                  'total_discount', 'total_amount', 'created_at', 'updated_at']
        read_only_fields = fields


class SalesOrderWriteSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    items = PricedLineSerializer(many=True, allow_empty=False)
    total_discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    sales_date = serializers.DateTimeField(required=False)
