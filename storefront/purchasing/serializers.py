from decimal import Decimal

from rest_framework import serializers

from storefront.inventory.serializers import InventorySerializer, PricedLineSerializer
from storefront.parties.serializers import SupplierSerializer
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    inventory = InventorySerializer(read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseOrderItem
        fields = ['id', 'inventory', 'quantity', 'price', 'line_total']

    def get_line_total(self, obj):
        return str(obj.get_line_total())


class PurchaseOrderSerializer(serializers.ModelSerializer):
    supplier = SupplierSerializer(read_only=True)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = ['id', 'order_number', 'user', 'supplier', 'items', 'purchase_date', 'status',
                  'discount', 'total_amount', 'stock_received', 'notes', 'created_at', 'updated_at']
        read_only_fields = fields


class PurchaseOrderWriteSerializer(serializers.Serializer):
    supplier_id = serializers.IntegerField()
    items = PricedLineSerializer(many=True, allow_empty=False)
    status = serializers.ChoiceField(choices=PurchaseOrder.STATUS_CHOICES, default=PurchaseOrder.STATUS_PENDING)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    purchase_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class PurchaseOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PurchaseOrder.STATUS_CHOICES)
