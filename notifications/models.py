"""
NOTIFICATIONS App - Backoffice notification feed (the header bell).
"""

import uuid
from typing import Optional
from django.db import models


class NotificationType(models.TextChoices):
    NEW_DRIVER = 'new_driver', 'Nouveau livreur'
    NEW_COMPANY = 'new_company', 'Nouvelle entreprise'
    INCIDENT = 'incident', 'Incident'
    DELIVERY_FAILED = 'delivery_failed', 'Livraison échouée'
    SYSTEM = 'system', 'Système'


# Backoffice page opened when a notification is clicked
NOTIFICATION_ROUTES = {
    NotificationType.NEW_DRIVER: '/drivers',
    NotificationType.NEW_COMPANY: '/companies',
    NotificationType.INCIDENT: '/incidents',
    NotificationType.DELIVERY_FAILED: '/deliveries',
}


def notification_route(notification_type: str) -> Optional[str]:
    return NOTIFICATION_ROUTES.get(notification_type)


class AdminNotification(models.Model):
    """
    Notification shown to every backoffice user.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM
    )
    title = models.CharField(max_length=200)
    message = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = "Notification admin"
        verbose_name_plural = "Notifications admin"
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def route(self) -> Optional[str]:
        return notification_route(self.type)
