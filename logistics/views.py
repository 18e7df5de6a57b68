"""
Logistics App Views - Deliveries, status changes, history & zones
"""

import logging
from decimal import Decimal, InvalidOperation
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Delivery, Zone
from .serializers import DeliverySerializer, DeliveryStatusUpdateSerializer, ZoneSerializer
from .services import DeliveryStatusService, load_status_timeline
from .transitions import InvalidTransition, get_admin_transitions

logger = logging.getLogger(__name__)


class DeliveryViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """
    Backoffice delivery table.

    Filters: ?client=&company=&driver=&status= plus ?search= on the
    tracking code, addresses and recipient. Paginated by limit/offset.
    """

    serializer_class = DeliverySerializer
    search_fields = ['tracking_code', 'pickup_address', 'delivery_address', 'recipient_name']
    ordering_fields = ['created_at', 'total_price', 'status']

    def get_queryset(self):
        params = self.request.query_params
        return DeliveryStatusService.list_deliveries(
            client_id=params.get('client'),
            company_id=params.get('company'),
            driver_id=params.get('driver'),
            status=params.get('status'),
        )

    @action(detail=True, methods=['get'])
    def transitions(self, request, pk=None):
        """Status options the admin may apply next."""
        delivery = self.get_object()
        return Response({
            'status': delivery.status,
            'options': get_admin_transitions(delivery.status),
        })

    @action(detail=True, methods=['post'], url_path='update-status')
    def update_status(self, request, pk=None):
        """Apply an admin status change (validated against the table)."""
        delivery = self.get_object()
        serializer = DeliveryStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            delivery = DeliveryStatusService.update_status(
                delivery,
                serializer.validated_data['status'],
                actor=request.user,
                note=serializer.validated_data.get('note', ''),
            )
        except InvalidTransition as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(DeliverySerializer(delivery).data)

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """
        Status timeline, oldest first.

        A failed fetch still answers 200 with an empty history and an
        `error` message.
        """
        return Response(load_status_timeline(pk).to_dict())


class ZoneViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.CreateModelMixin,
                  mixins.UpdateModelMixin,
                  viewsets.GenericViewSet):
    """Pricing zones: list, create, update."""

    queryset = Zone.objects.all()
    serializer_class = ZoneSerializer
    filterset_fields = ['city', 'is_active']
    search_fields = ['name', 'city']
    pagination_class = None

    def perform_create(self, serializer):
        zone = serializer.save()
        logger.info(f"[ZONES] Zone created: {zone} by {self.request.user.phone_number}")

    def perform_update(self, serializer):
        zone = serializer.save()
        logger.info(f"[ZONES] Zone updated: {zone} by {self.request.user.phone_number}")

    @action(detail=True, methods=['get'])
    def estimate(self, request, pk=None):
        """Price preview for ?distance_km= in this zone."""
        zone = self.get_object()
        try:
            distance = Decimal(request.query_params.get('distance_km', ''))
        except InvalidOperation:
            distance = None
        if distance is None or not distance.is_finite() or distance < 0:
            return Response(
                {'error': "Paramètre distance_km invalide."},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response({
            'zone': zone.id,
            'distance_km': distance,
            'price': zone.estimate_price(distance),
        })
