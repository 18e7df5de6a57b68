"""
Core App Views - Backoffice User Management API
"""

import logging
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model

from .permissions import IsBackofficeUser, IsSuperAdmin
from .serializers import UserSerializer, UserCreateSerializer, PhoneTokenObtainPairSerializer

User = get_user_model()
logger = logging.getLogger('logitrack.admin')


class PhoneTokenObtainPairView(TokenObtainPairView):
    """JWT sign-in with phone number + password."""

    serializer_class = PhoneTokenObtainPairSerializer


class UserViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.CreateModelMixin,
                  viewsets.GenericViewSet):
    """
    ViewSet for backoffice accounts.

    - List/Retrieve/Create: super admin only
    - me / deactivate: see actions
    """

    queryset = User.objects.all()
    serializer_class = UserSerializer
    search_fields = ['phone_number', 'full_name', 'email']
    filterset_fields = ['role', 'is_active']

    def get_permissions(self):
        if self.action == 'me':
            return [IsBackofficeUser()]
        return [IsSuperAdmin()]

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"[ADMIN] Account {user.phone_number} created by {request.user.phone_number}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Get current admin profile."""
        return Response(UserSerializer(request.user).data)

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        """Deactivate a backoffice account."""
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {'error': 'Impossible de désactiver votre propre compte.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        user.is_active = False
        user.save(update_fields=['is_active'])
        logger.warning(f"[ADMIN] Account {user.phone_number} deactivated by {request.user.phone_number}")
        return Response(UserSerializer(user).data)
