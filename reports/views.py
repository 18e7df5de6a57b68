"""
Reports App Views - Dashboard KPIs, live deliveries and CSV exports
"""

import logging
from django.http import HttpResponse
from rest_framework import generics, status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from fleet.views import DriverViewSet
from logistics.serializers import DeliverySerializer
from logistics.services import DeliveryStatusService
from logistics.views import DeliveryViewSet
from .csv_export import export_deliveries_csv, export_drivers_csv
from .services import DashboardStatsService

logger = logging.getLogger('logitrack.admin')


def dashboard_payload() -> dict:
    return {
        'stats': DashboardStatsService.get_dashboard_stats(),
        'counters': DashboardStatsService.get_delivery_counters(),
    }


def active_deliveries_payload(limit: int = 20) -> dict:
    deliveries = DashboardStatsService.get_active_deliveries(limit)
    return {
        **DashboardStatsService.get_active_summary(),
        'results': DeliverySerializer(deliveries, many=True).data,
    }


@api_view(['GET'])
def dashboard(request):
    """KPI cards and delivery counters."""
    return Response(dashboard_payload())


@api_view(['GET'])
def active_deliveries(request):
    try:
        limit = int(request.query_params.get('limit', 20))
    except ValueError:
        return Response({'error': "Paramètre limit invalide."}, status=status.HTTP_400_BAD_REQUEST)
    return Response(active_deliveries_payload(limit))


def csv_response(filename: str, content: str) -> HttpResponse:
    response = HttpResponse(content, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# ===========================================
# CSV EXPORTS
# ===========================================
# Same queryset and filters (?status=, ?search=, ...) as the tables,
# without pagination.

class DriverCSVExportView(generics.GenericAPIView):
    queryset = DriverViewSet.queryset
    filterset_fields = DriverViewSet.filterset_fields
    search_fields = DriverViewSet.search_fields
    ordering_fields = DriverViewSet.ordering_fields
    pagination_class = None

    def get(self, request):
        drivers = self.filter_queryset(self.get_queryset())
        filename, content = export_drivers_csv(drivers)
        logger.info(f"[EXPORT] {request.user} exported {filename}")
        return csv_response(filename, content)


class DeliveryCSVExportView(generics.GenericAPIView):
    search_fields = DeliveryViewSet.search_fields
    ordering_fields = DeliveryViewSet.ordering_fields
    pagination_class = None

    def get_queryset(self):
        params = self.request.query_params
        return DeliveryStatusService.list_deliveries(
            client_id=params.get('client'),
            company_id=params.get('company'),
            driver_id=params.get('driver'),
            status=params.get('status'),
        )

    def get(self, request):
        deliveries = self.filter_queryset(self.get_queryset())
        filename, content = export_deliveries_csv(deliveries)
        logger.info(f"[EXPORT] {request.user} exported {filename}")
        return csv_response(filename, content)
