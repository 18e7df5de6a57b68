"""
REPORTS App - Dashboard statistics

Aggregates for the backoffice home page. Everything is recomputed from
the database on each call; the websocket dashboard refetches the whole
payload after every relevant change.
"""

import logging
from decimal import Decimal
from typing import Any, Dict

from django.db.models import Count, Q, QuerySet, Sum
from django.utils import timezone

from fleet.models import Driver, DriverStatus
from logistics.models import Delivery, DeliveryStatus
from logistics.transitions import COMPLETED_STATUSES, IN_PROGRESS_STATUSES
from partners.models import BusinessClient, ClientStatus, CompanyStatus, DeliveryCompany

logger = logging.getLogger(__name__)

# Counted as "en cours" on the dashboard counters
COUNTER_IN_PROGRESS = (DeliveryStatus.ASSIGNED, DeliveryStatus.PICKED_UP, DeliveryStatus.IN_TRANSIT)
COUNTER_CANCELLED = (DeliveryStatus.CANCELLED, DeliveryStatus.FAILED)


def _money(value) -> Decimal:
    return value if value is not None else Decimal('0.00')


class DashboardStatsService:

    @staticmethod
    def today_start():
        return timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)

    @staticmethod
    def get_dashboard_stats() -> Dict[str, Any]:
        """KPI cards of the dashboard (camelCase keys, as the frontend expects)."""
        today_start = DashboardStatsService.today_start()
        completed = Q(status__in=COMPLETED_STATUSES)
        today = Q(created_at__gte=today_start)

        clients = BusinessClient.objects.aggregate(
            total=Count('id'),
            active=Count('id', filter=Q(status=ClientStatus.ACTIVE)),
        )
        companies = DeliveryCompany.objects.aggregate(
            total=Count('id'),
            active=Count('id', filter=Q(status=CompanyStatus.ACTIVE)),
            pending=Count('id', filter=Q(status=CompanyStatus.PENDING)),
        )
        deliveries = Delivery.objects.aggregate(
            total=Count('id'),
            today=Count('id', filter=today),
            revenue=Sum('total_price', filter=completed),
            today_revenue=Sum('total_price', filter=completed & today),
            commission=Sum('platform_fee', filter=completed),
        )

        approved = Q(status=DriverStatus.APPROVED)
        drivers = Driver.objects.aggregate(
            total=Count('id', filter=approved),
            online=Count('id', filter=approved & Q(is_online=True)),
            pending=Count('id', filter=Q(status=DriverStatus.PENDING)),
            independent=Count('id', filter=approved & Q(company__isnull=True)),
            company=Count('id', filter=approved & Q(company__isnull=False)),
        )

        return {
            'totalClients': clients['total'],
            'activeClients': clients['active'],
            'totalCompanies': companies['total'],
            'activeCompanies': companies['active'],
            'pendingCompanies': companies['pending'],
            'totalDeliveries': deliveries['total'],
            'todayDeliveries': deliveries['today'],
            'totalDrivers': drivers['total'],
            'onlineDrivers': drivers['online'],
            'pendingDrivers': drivers['pending'],
            'independentDrivers': drivers['independent'],
            'companyDrivers': drivers['company'],
            'totalRevenue': _money(deliveries['revenue']),
            'todayRevenue': _money(deliveries['today_revenue']),
            'platformCommission': _money(deliveries['commission']),
        }

    @staticmethod
    def get_active_deliveries(limit: int = 20) -> QuerySet:
        """In-progress deliveries, most recently updated first."""
        return Delivery.objects.filter(
            status__in=IN_PROGRESS_STATUSES
        ).select_related(
            'business_client', 'company', 'driver'
        ).order_by('-updated_at')[:limit]

    @staticmethod
    def get_active_summary() -> Dict[str, int]:
        """Live board header: {count, inTransit, arriving}."""
        counts = Delivery.objects.aggregate(
            count=Count('id', filter=Q(status__in=IN_PROGRESS_STATUSES)),
            inTransit=Count('id', filter=Q(status=DeliveryStatus.IN_TRANSIT)),
            arriving=Count('id', filter=Q(status=DeliveryStatus.ARRIVING)),
        )
        return counts

    @staticmethod
    def get_delivery_counters() -> Dict[str, int]:
        return Delivery.objects.aggregate(
            total=Count('id'),
            pending=Count('id', filter=Q(status=DeliveryStatus.PENDING)),
            in_progress=Count('id', filter=Q(status__in=COUNTER_IN_PROGRESS)),
            completed=Count('id', filter=Q(status__in=COMPLETED_STATUSES)),
            cancelled=Count('id', filter=Q(status__in=COUNTER_CANCELLED)),
        )
