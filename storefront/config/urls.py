"""
URL configuration for the storefront backend.

Every app is mounted under /api/. Unknown /api/ paths fall through to
route_not_found so they get the same JSON error body as everything else.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

from storefront.core.views import health, route_not_found

admin.site.site_header = "Storefront Admin"
admin.site.site_title = "Storefront Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health, name='health'),
    path('api/', include('storefront.core.urls')),
    path('api/', include('storefront.catalog.urls')),
    path('api/', include('storefront.inventory.urls')),
    path('api/', include('storefront.cart.urls')),
    path('api/', include('storefront.orders.urls')),
    path('api/', include('storefront.sales.urls')),
    path('api/', include('storefront.purchasing.urls')),
    path('api/', include('storefront.parties.urls')),
    path('api/', include('storefront.uploads.urls')),
    path('api/', include('storefront.integrations.urls')),
    re_path(r'^api/.*$', route_not_found, name='route-not-found'),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
