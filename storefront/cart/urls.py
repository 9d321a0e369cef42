from django.urls import path
from .views import cart_detail, cart_count, cart_add, cart_bulk_add, cart_item_detail

urlpatterns = [
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/count/', cart_count, name='cart-count'),
    path('cart/add/', cart_add, name='cart-add'),
    path('cart/bulk-add/', cart_bulk_add, name='cart-bulk-add'),
    path('cart/items/<int:inventory_id>/', cart_item_detail, name='cart-item-detail'),
]
