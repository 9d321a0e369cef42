from django.urls import path
from .views import (
    shipping_address_list_create, shipping_address_detail,
    order_list_create, order_detail, order_cancel, order_status_update, order_payment_update, order_stats
)

urlpatterns = [
    # Shipping address endpoints
    path('shipping-addresses/', shipping_address_list_create, name='shipping-address-list-create'),
    path('shipping-addresses/<int:pk>/', shipping_address_detail, name='shipping-address-detail'),

    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/stats/', order_stats, name='order-stats'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
    path('orders/<int:pk>/status/', order_status_update, name='order-status-update'),
    path('orders/<int:pk>/payment/', order_payment_update, name='order-payment-update'),
]
