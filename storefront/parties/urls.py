from django.urls import path
from .views import (
    customer_list_create, customer_detail, customer_stats,
    supplier_list_create, supplier_detail, supplier_stats
)

urlpatterns = [
    # Customer endpoints
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/stats/', customer_stats, name='customer-stats'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),

    # Supplier endpoints
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/stats/', supplier_stats, name='supplier-stats'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
]
