from django.contrib import admin
from .models import Inventory


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['item', 'size', 'color', 'sku', 'price', 'stock', 'is_active']
    list_filter = ['is_active', 'size', 'color']
    search_fields = ['sku', 'barcode', 'item__name']
    # Stock moves through the stock endpoints so each change is audited
    readonly_fields = ['stock', 'created_at', 'updated_at']
