from django.urls import path
from .views import (
    register, login, token_refresh, logout, user_me, change_password,
    auth_user_list, user_list_create, user_status, audit_log_list
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', login, name='login'),
    path('auth/refresh/', token_refresh, name='token-refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/change-password/', change_password, name='change-password'),
    path('auth/users/', auth_user_list, name='auth-user-list'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/status/', user_status, name='user-status'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
]
