"""
Partners App Services - Client & company lifecycle, API keys
"""
import logging
from typing import List, Tuple

from django.db import transaction
from django.db.models import Count, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from .models import (
    APIRequest, BusinessClient, ClientAPIKey, ClientStatus,
    CompanyStatus, DeliveryCompany, KeyEnvironment,
)

logger = logging.getLogger(__name__)
admin_logger = logging.getLogger('logitrack.admin')


def _actor_label(actor) -> str:
    return getattr(actor, 'phone_number', None) or 'system'


class ClientService:
    """Business client status changes and API key management."""

    @staticmethod
    def activate(client: BusinessClient, actor=None) -> BusinessClient:
        client.status = ClientStatus.ACTIVE
        client.save(update_fields=['status', 'updated_at'])
        admin_logger.info(f"[PARTNERS] Client activated: {client} by {_actor_label(actor)}")
        return client

    @staticmethod
    def suspend(client: BusinessClient, actor=None) -> BusinessClient:
        client.status = ClientStatus.SUSPENDED
        client.save(update_fields=['status', 'updated_at'])
        admin_logger.warning(f"[PARTNERS] Client suspended: {client} by {_actor_label(actor)}")
        return client

    @staticmethod
    def create_api_key(client: BusinessClient, name: str,
                       environment: str = KeyEnvironment.TEST,
                       permissions=None, actor=None) -> Tuple[ClientAPIKey, str]:
        """
        Create an API key for a client.

        Returns:
            (api_key, full_key) - the full key is only available here;
            only its hash is stored.
        """
        extra = {'client': client, 'environment': environment}
        if permissions is not None:
            extra['permissions'] = list(permissions)

        api_key, key = ClientAPIKey.objects.create_key(name=name, **extra)
        admin_logger.info(
            f"[PARTNERS] API key {api_key.prefix} created for {client} "
            f"({environment}) by {_actor_label(actor)}"
        )
        return api_key, key

    @staticmethod
    def revoke_api_key(api_key: ClientAPIKey, actor=None) -> ClientAPIKey:
        if api_key.revoked:
            raise ValueError("Cette clé API est déjà révoquée.")
        api_key.revoked = True
        api_key.save(update_fields=['revoked'])
        admin_logger.warning(
            f"[PARTNERS] API key {api_key.prefix} revoked for {api_key.client} by {_actor_label(actor)}"
        )
        return api_key

    @staticmethod
    def get_api_usage_stats() -> List[dict]:
        """
        Clients with their request totals (all keys summed) and today's
        logged calls, busiest first.
        """
        today_start = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        today = {
            row['client_id']: row['count']
            for row in APIRequest.objects.filter(created_at__gte=today_start)
            .values('client_id').annotate(count=Count('id'))
        }
        clients = (
            BusinessClient.objects
            .annotate(total_requests=Coalesce(Sum('api_keys__total_requests'), Value(0)))
            .order_by('-total_requests', 'company_name')
        )
        return [
            {
                'client_id': str(c.id),
                'company_name': c.company_name,
                'plan': c.plan,
                'total_requests': c.total_requests,
                'today_requests': today.get(c.id, 0),
            }
            for c in clients
        ]


class CompanyService:
    """Delivery company verification."""

    @staticmethod
    @transaction.atomic
    def activate(company: DeliveryCompany, actor=None) -> DeliveryCompany:
        company.status = CompanyStatus.ACTIVE
        fields = ['status', 'updated_at']
        if company.verified_at is None:
            company.verified_at = timezone.now()
            fields.append('verified_at')
        company.save(update_fields=fields)
        admin_logger.info(f"[PARTNERS] Company activated: {company} by {_actor_label(actor)}")
        return company

    @staticmethod
    @transaction.atomic
    def suspend(company: DeliveryCompany, actor=None) -> DeliveryCompany:
        company.status = CompanyStatus.SUSPENDED
        company.save(update_fields=['status', 'updated_at'])
        admin_logger.warning(f"[PARTNERS] Company suspended: {company} by {_actor_label(actor)}")
        return company
