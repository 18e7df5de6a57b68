"""
Partners App Views - Business clients, API keys & delivery companies
"""

import logging
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import BusinessClient, ClientAPIKey, DeliveryCompany
from .serializers import (
    APIKeyCreateSerializer,
    BusinessClientSerializer,
    ClientAPIKeySerializer,
    DeliveryCompanySerializer,
)
from .services import ClientService, CompanyService

logger = logging.getLogger(__name__)


class BusinessClientViewSet(mixins.ListModelMixin,
                            mixins.RetrieveModelMixin,
                            mixins.CreateModelMixin,
                            mixins.UpdateModelMixin,
                            viewsets.GenericViewSet):
    """B2B clients: CRUD without delete, suspend/activate, API usage."""

    queryset = BusinessClient.objects.prefetch_related('api_keys')
    serializer_class = BusinessClientSerializer
    filterset_fields = ['status', 'plan']
    search_fields = ['company_name', 'contact_email', 'contact_phone']
    ordering_fields = ['created_at', 'company_name']

    @action(detail=True, methods=['post'])
    def suspend(self, request, pk=None):
        client = ClientService.suspend(self.get_object(), actor=request.user)
        return Response(self.get_serializer(client).data)

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        client = ClientService.activate(self.get_object(), actor=request.user)
        return Response(self.get_serializer(client).data)

    @action(detail=False, methods=['get'], url_path='api-usage')
    def api_usage(self, request):
        """Request totals per client, busiest first."""
        return Response(ClientService.get_api_usage_stats())


class ClientAPIKeyViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Client API keys.

    POST creates a key and returns the full key once, under `key`.
    """

    queryset = ClientAPIKey.objects.select_related('client')
    serializer_class = ClientAPIKeySerializer
    filterset_fields = ['client', 'environment', 'revoked']
    search_fields = ['name', 'prefix', 'client__company_name']
    # Key ids are "<prefix>.<hash>"
    lookup_value_regex = '[^/]+'

    def create(self, request, *args, **kwargs):
        serializer = APIKeyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        api_key, key = ClientService.create_api_key(
            data['client'],
            name=data['name'],
            environment=data['environment'],
            permissions=data.get('permissions'),
            actor=request.user,
        )
        payload = ClientAPIKeySerializer(api_key).data
        payload['key'] = key
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def revoke(self, request, pk=None):
        api_key = self.get_object()
        try:
            api_key = ClientService.revoke_api_key(api_key, actor=request.user)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ClientAPIKeySerializer(api_key).data)


class DeliveryCompanyViewSet(mixins.ListModelMixin,
                             mixins.RetrieveModelMixin,
                             mixins.CreateModelMixin,
                             mixins.UpdateModelMixin,
                             viewsets.GenericViewSet):
    """Delivery companies: CRUD without delete, activate/suspend."""

    queryset = DeliveryCompany.objects.all()
    serializer_class = DeliveryCompanySerializer
    filterset_fields = ['status', 'city']
    search_fields = ['company_name', 'email', 'phone', 'owner_name']
    ordering_fields = ['created_at', 'company_name', 'commission_rate']

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        company = CompanyService.activate(self.get_object(), actor=request.user)
        return Response(self.get_serializer(company).data)

    @action(detail=True, methods=['post'])
    def suspend(self, request, pk=None):
        company = CompanyService.suspend(self.get_object(), actor=request.user)
        return Response(self.get_serializer(company).data)
