"""
Main URL configuration for Kopqela Billing
"""
from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

# Schema view for API documentation
schema_view = get_schema_view(
    openapi.Info(
        title="Kopqela Billing API",
        default_version='v1',
        description="Subscription lifecycle and Azampay payment reconciliation",
        license=openapi.License(name="Proprietary"),
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

# API URL Patterns
api_urlpatterns = [
    # Plans, lifecycle, limits
    path('subscriptions/', include('apps.subscriptions.urls')),

    # Azampay initiate / status / callback, transaction history
    path('payments/', include('apps.payments.urls')),
]

# Main URL Patterns
urlpatterns = [
    path('admin/', admin.site.urls),

    # API URLs (versioned)
    path('api/v1/', include(api_urlpatterns)),

    # API Documentation
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]

# Custom error handlers
handler400 = 'apps.core.error_handlers.bad_request'
handler403 = 'apps.core.error_handlers.permission_denied'
handler404 = 'apps.core.error_handlers.page_not_found'
handler500 = 'apps.core.error_handlers.server_error'
