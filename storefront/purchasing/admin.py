from django.contrib import admin
from .models import PurchaseOrder, PurchaseOrderItem


class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['inventory', 'quantity', 'price']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'supplier', 'status', 'total_amount', 'stock_received', 'purchase_date']
    list_filter = ['status', 'stock_received']
    search_fields = ['order_number', 'supplier__name']
    readonly_fields = ['order_number', 'stock_received', 'created_at', 'updated_at']
    inlines = [PurchaseOrderItemInline]
