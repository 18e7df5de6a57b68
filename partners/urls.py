"""
Partners App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import BusinessClientViewSet, ClientAPIKeyViewSet, DeliveryCompanyViewSet

router = DefaultRouter()
router.register(r'clients', BusinessClientViewSet, basename='client')
router.register(r'api-keys', ClientAPIKeyViewSet, basename='api-key')
router.register(r'companies', DeliveryCompanyViewSet, basename='company')

urlpatterns = [
    path('', include(router.urls)),
]
