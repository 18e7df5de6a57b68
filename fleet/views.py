"""
Fleet App Views - Driver review
"""

import logging
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Driver
from .serializers import DriverSerializer, DriverActionSerializer
from .services import DriverService

logger = logging.getLogger(__name__)


class DriverViewSet(mixins.ListModelMixin,
                    mixins.RetrieveModelMixin,
                    viewsets.GenericViewSet):
    """
    Drivers table.

    Filters: ?status=&driver_type=&company=&is_online= plus ?search= on
    name, phone and plate.
    """

    queryset = Driver.objects.select_related('company')
    serializer_class = DriverSerializer
    filterset_fields = ['status', 'driver_type', 'company', 'is_online']
    search_fields = ['full_name', 'phone', 'vehicle_plate']
    ordering_fields = ['created_at', 'full_name', 'total_deliveries']

    def _reason(self, request) -> str:
        serializer = DriverActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data['reason']

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        driver = DriverService.approve(self.get_object(), actor=request.user)
        return Response(self.get_serializer(driver).data)

    @action(detail=True, methods=['post'])
    def suspend(self, request, pk=None):
        driver = DriverService.suspend(self.get_object(), actor=request.user, reason=self._reason(request))
        return Response(self.get_serializer(driver).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        try:
            driver = DriverService.reject(self.get_object(), actor=request.user, reason=self._reason(request))
        except ValueError as e:
            logger.warning(f"[DRIVERS] Reject refused for {pk}: {e}")
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(driver).data)
