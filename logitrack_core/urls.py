"""
LogiTrack Admin Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.health import health_check, readiness_check


# ===========================================
# ADMIN SITE CUSTOMIZATION
# ===========================================
admin.site.site_header = "LogiTrack Admin"
admin.site.site_title = "LogiTrack Admin"
admin.site.index_title = "Supervision des Opérations"


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'LogiTrack Admin API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
            },
            'users': '/api/users/',
            'deliveries': '/api/deliveries/',
            'zones': '/api/zones/',
            'drivers': '/api/drivers/',
            'clients': '/api/clients/',
            'api_keys': '/api/api-keys/',
            'companies': '/api/companies/',
            'incidents': '/api/incidents/',
            'conversations': '/api/support/conversations/',
            'notifications': '/api/notifications/',
            'drafts': '/api/drafts/<form_key>/',
            'reports': {
                'dashboard': '/api/reports/dashboard/',
                'active_deliveries': '/api/reports/active-deliveries/',
                'drivers_csv': '/api/reports/drivers.csv',
                'deliveries_csv': '/api/reports/deliveries.csv',
            },
            'websockets': {
                'dashboard': '/ws/dashboard/',
                'notifications': '/ws/notifications/',
                'chat': '/ws/support/chat/<conversation_id>/',
                'drafts': '/ws/drafts/<form_key>/',
            },
        }
    })


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Health checks
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='readiness'),

    # API Root
    path('api/', api_root, name='api-root'),

    # API Documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/', include('logistics.urls')),
    path('api/', include('fleet.urls')),
    path('api/', include('partners.urls')),
    path('api/', include('support.urls')),
    path('api/', include('notifications.urls')),
    path('api/', include('drafts.urls')),
    path('api/reports/', include('reports.urls')),
]
