"""
URL configuration for the storefront API.

Store-scoped endpoints live under ``api/stores/<slug>/``; each app contributes
its own ``urls`` module.
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


# Simple health check view - no database required
def health_check(request):
    """Health check endpoint for container orchestration.
    Returns 200 OK without database queries for fast response.
    """
    return JsonResponse({
        'status': 'healthy',
        'service': 'storefront-api'
    })


urlpatterns = [
    path('api/health/', health_check, name='health-check'),

    path('admin/', admin.site.urls),

    # OAuth2
    path('o/', include('oauth2_provider.urls', namespace='oauth2_provider')),

    # API endpoints
    path('api/auth/', include('users.urls')),
    path('api/stores/', include('stores.urls')),
    path('api/stores/<slug:store_slug>/', include('users.store_urls')),
    path('api/stores/<slug:store_slug>/', include('wholesalers.urls')),
    path('api/stores/<slug:store_slug>/', include('inventory.urls')),
    path('api/stores/<slug:store_slug>/', include('orders.urls')),
]
