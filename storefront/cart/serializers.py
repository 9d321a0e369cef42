from rest_framework import serializers

from storefront.inventory.serializers import InventorySerializer
from .models import Cart, CartItem


class CartItemSerializer(serializers.ModelSerializer):
    inventory = InventorySerializer(read_only=True)
    line_total = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ['id', 'inventory', 'quantity', 'line_total', 'created_at', 'updated_at']

    def get_line_total(self, obj):
        return str(obj.inventory.price * obj.quantity)


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Cart
        fields = ['id', 'user', 'items', 'item_count', 'total_amount', 'created_at', 'updated_at']

    def get_item_count(self, obj):
        return sum(line.quantity for line in obj.items.all())


class AddToCartSerializer(serializers.Serializer):
    inventory_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class BulkAddToCartSerializer(serializers.Serializer):
    items = AddToCartSerializer(many=True, allow_empty=False)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
