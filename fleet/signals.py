"""
Fleet signals: realtime change events for the drivers stream.
"""

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from logistics.events import (
    INSERT, UPDATE, STREAM_DRIVERS,
    broadcast_record_change, serialize_record,
)
from .models import Driver

DRIVER_EVENT_FIELDS = (
    'id', 'full_name', 'phone', 'driver_type', 'company_id', 'status',
    'is_online', 'is_available', 'total_deliveries',
)


@receiver(post_save, sender=Driver)
def broadcast_driver_change(sender, instance, created, **kwargs):
    event = INSERT if created else UPDATE
    record = serialize_record(instance, DRIVER_EVENT_FIELDS)
    transaction.on_commit(lambda: broadcast_record_change(STREAM_DRIVERS, event, record))
