"""
Support App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import ChatConversationViewSet, IncidentViewSet

router = DefaultRouter()
router.register(r'incidents', IncidentViewSet, basename='incident')
router.register(r'support/conversations', ChatConversationViewSet, basename='conversation')

urlpatterns = [
    path('', include(router.urls)),
]
