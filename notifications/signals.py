"""
NOTIFICATIONS App - Django Signals

Create backoffice notifications from business events and broadcast
every notification change to the bell.
"""

import logging
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from fleet.models import Driver, DriverStatus
from logistics.events import (
    INSERT, UPDATE, STREAM_NOTIFICATIONS,
    broadcast_record_change, serialize_record,
)
from logistics.models import Delivery, DeliveryStatus
from partners.models import CompanyStatus, DeliveryCompany
from support.models import Incident

from .models import AdminNotification, NotificationType
from .services import NotificationService

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT_FIELDS = ('type', 'title', 'is_read', 'created_at')


@receiver(post_save, sender=AdminNotification)
def broadcast_notification_change(sender, instance, created, **kwargs):
    event = INSERT if created else UPDATE
    record = serialize_record(instance, NOTIFICATION_EVENT_FIELDS)
    transaction.on_commit(lambda: broadcast_record_change(STREAM_NOTIFICATIONS, event, record))


@receiver(post_save, sender=Driver)
def notify_new_driver(sender, instance, created, **kwargs):
    if created and instance.status == DriverStatus.PENDING:
        NotificationService.notify(
            NotificationType.NEW_DRIVER,
            "Nouveau livreur à valider",
            f"{instance.full_name} ({instance.phone}) attend une validation.",
            {'driver_id': str(instance.id)},
        )


@receiver(post_save, sender=DeliveryCompany)
def notify_new_company(sender, instance, created, **kwargs):
    if created and instance.status == CompanyStatus.PENDING:
        NotificationService.notify(
            NotificationType.NEW_COMPANY,
            "Nouvelle entreprise à valider",
            f"{instance.company_name} attend une validation.",
            {'company_id': str(instance.id)},
        )


@receiver(post_save, sender=Incident)
def notify_new_incident(sender, instance, created, **kwargs):
    if created:
        NotificationService.notify(
            NotificationType.INCIDENT,
            f"Incident : {instance.title}",
            f"{instance.get_incident_type_display()} - gravité {instance.get_severity_display().lower()}.",
            {'incident_id': str(instance.id), 'delivery_id': str(instance.delivery_id)},
        )


@receiver(post_save, sender=Delivery)
def notify_delivery_failed(sender, instance, created, **kwargs):
    previous = getattr(instance, '_previous_status', None)
    if instance.status == DeliveryStatus.FAILED and previous != DeliveryStatus.FAILED:
        NotificationService.notify(
            NotificationType.DELIVERY_FAILED,
            f"Livraison {instance.tracking_code} échouée",
            f"{instance.delivery_address}",
            {'delivery_id': str(instance.id), 'tracking_code': instance.tracking_code},
        )
