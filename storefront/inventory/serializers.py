from decimal import Decimal

from rest_framework import serializers

from storefront.catalog.models import Item, Size, Color
from .models import Inventory


class ItemSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Item
        fields = ['id', 'name', 'slug', 'image', 'category_id']


class SizeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Size
        fields = ['id', 'name', 'code']


class ColorSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Color
        fields = ['id', 'name', 'hex_code']


class InventorySerializer(serializers.ModelSerializer):
    """
    Write with item_id/size_id/color_id, read back nested summaries.
    stock is accepted on create only; updates go through the stock endpoints.
    """
    item_id = serializers.IntegerField()
    size_id = serializers.IntegerField()
    color_id = serializers.IntegerField()
    item = ItemSummarySerializer(read_only=True)
    size = SizeSummarySerializer(read_only=True)
    color = ColorSummarySerializer(read_only=True)
    stock = serializers.IntegerField(min_value=0, required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    attributes = serializers.DictField(required=False)

    class Meta:
        model = Inventory
        fields = ['id', 'item_id', 'size_id', 'color_id', 'item', 'size', 'color',
                  'price', 'compare_at_price', 'cost_price', 'stock', 'sku', 'barcode',
                  'tags', 'attributes', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'price': {'min_value': Decimal('0')},
            'compare_at_price': {'min_value': Decimal('0')},
            'cost_price': {'min_value': Decimal('0')},
        }


class StockSetSerializer(serializers.Serializer):
    stock = serializers.IntegerField()


class StockQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class PricedLineSerializer(serializers.Serializer):
    """One order line: a variant, how many, and the unit price agreed"""
    inventory_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))


def validate_priced_lines(raw_items):
    """Validate replacement lines on a partial update with every line field required"""
    serializer = PricedLineSerializer(data=raw_items, many=True, allow_empty=False)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data
