"""
LOGISTICS App - Django Signals

Record status history and broadcast row-change events.
"""

import logging
from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from logistics.events import (
    INSERT, UPDATE, STREAM_DELIVERIES,
    broadcast_record_change, serialize_record,
)
from logistics.models import Delivery, DeliveryStatusHistory

logger = logging.getLogger(__name__)

DELIVERY_EVENT_FIELDS = (
    'tracking_code', 'status', 'driver_id', 'company_id',
    'business_client_id', 'total_price', 'updated_at',
)


@receiver(pre_save, sender=Delivery)
def capture_previous_status(sender, instance, **kwargs):
    """Capture the stored status before save for change detection."""
    instance._previous_status = None
    if instance.pk and not instance._state.adding:
        instance._previous_status = (
            Delivery.objects.filter(pk=instance.pk)
            .values_list('status', flat=True)
            .first()
        )


@receiver(post_save, sender=Delivery)
def on_delivery_saved(sender, instance, created, **kwargs):
    """
    On status change, append the history row.
    On every save, broadcast the change to realtime listeners after commit.
    """
    previous = getattr(instance, '_previous_status', None)
    # Set by DeliveryStatusService for this save only
    actor = instance.__dict__.pop('_status_actor', None)
    note = instance.__dict__.pop('_status_note', '')

    if not created and previous is not None and previous != instance.status:
        DeliveryStatusHistory.objects.create(
            delivery=instance,
            old_status=previous,
            new_status=instance.status,
            changed_by=actor,
            note=note,
        )
        logger.debug(f"[SIGNAL] History {instance.tracking_code}: {previous} -> {instance.status}")

    # Listeners refetch on receipt: send once the row is committed
    event = INSERT if created else UPDATE
    record = serialize_record(instance, DELIVERY_EVENT_FIELDS)
    transaction.on_commit(lambda: broadcast_record_change(STREAM_DELIVERIES, event, record))
