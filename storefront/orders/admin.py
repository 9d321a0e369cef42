from django.contrib import admin
from .models import ShippingAddress, Order, OrderItem


@admin.register(ShippingAddress)
class ShippingAddressAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'user', 'city', 'pin_code', 'is_default']
    search_fields = ['full_name', 'user__email', 'city', 'pin_code']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['inventory', 'quantity', 'price']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_no', 'user', 'status', 'payment_status', 'total_amount', 'order_date']
    list_filter = ['status', 'payment_status', 'delivery_type']
    search_fields = ['order_no', 'user__email', 'tracking_number']
    readonly_fields = ['order_no', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
