from django.urls import path
from . import views

urlpatterns = [
    path('cashfree/create-order/', views.cashfree_create_order, name='cashfree-create-order'),
    path('cashfree/order/<str:order_id>/', views.cashfree_order_status, name='cashfree-order-status'),
    path('cashfree/webhook/', views.cashfree_webhook, name='cashfree-webhook'),
    path('shiprocket/auth/login/', views.shiprocket_login, name='shiprocket-login'),
    path('shiprocket/auth/logout/', views.shiprocket_logout, name='shiprocket-logout'),
    path('shiprocket/pickup/add/', views.shiprocket_add_pickup, name='shiprocket-add-pickup'),
    path('shiprocket/pickup/list/', views.shiprocket_list_pickups, name='shiprocket-list-pickups'),
]
