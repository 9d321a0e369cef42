from django.urls import path
from .views import (
    inventory_list_create, inventory_detail, inventory_by_item, inventory_low_stock,
    inventory_set_stock, inventory_increment_stock, inventory_decrement_stock, public_items
)

urlpatterns = [
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/low-stock/', inventory_low_stock, name='inventory-low-stock'),
    path('inventory/item/<int:item_id>/', inventory_by_item, name='inventory-by-item'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),

    # Stock endpoints
    path('inventory/<int:pk>/stock/', inventory_set_stock, name='inventory-set-stock'),
    path('inventory/<int:pk>/stock/increment/', inventory_increment_stock, name='inventory-increment-stock'),
    path('inventory/<int:pk>/stock/decrement/', inventory_decrement_stock, name='inventory-decrement-stock'),

    # Storefront (no auth)
    path('public/items/', public_items, name='public-items'),
]
