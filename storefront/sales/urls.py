from django.urls import path
from .views import sales_order_list_create, sales_order_detail, sales_order_stats

urlpatterns = [
    path('sales-orders/', sales_order_list_create, name='sales-order-list-create'),
    path('sales-orders/stats/', sales_order_stats, name='sales-order-stats'),
    path('sales-orders/<int:pk>/', sales_order_detail, name='sales-order-detail'),
]
