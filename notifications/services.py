"""
NOTIFICATIONS App - Services
"""

import logging
from typing import Optional
from django.conf import settings
from django.db import transaction

from logistics.events import UPDATE, STREAM_NOTIFICATIONS, broadcast_record_change
from .models import AdminNotification

logger = logging.getLogger(__name__)


class NotificationService:
    """Read and acknowledge backoffice notifications."""

    @staticmethod
    def notify(notification_type: str, title: str, message: str = '',
               data: Optional[dict] = None) -> AdminNotification:
        notification = AdminNotification.objects.create(
            type=notification_type,
            title=title,
            message=message,
            data=data or {},
        )
        logger.info(f"[NOTIFICATIONS] {notification_type}: {title}")
        return notification

    @staticmethod
    def get_notifications(limit: Optional[int] = None):
        """Newest first."""
        limit = limit or settings.NOTIFICATIONS_PAGE_SIZE
        return AdminNotification.objects.order_by('-created_at')[:limit]

    @staticmethod
    def get_unread_count() -> int:
        return AdminNotification.objects.filter(is_read=False).count()

    @staticmethod
    def mark_read(notification_id) -> int:
        """
        Mark one notification as read.

        Returns the unread count afterwards: one less if it was unread,
        unchanged otherwise (already read or unknown id).
        """
        for notification in AdminNotification.objects.filter(pk=notification_id, is_read=False):
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return NotificationService.get_unread_count()

    @staticmethod
    def mark_all_read() -> int:
        """Mark every notification as read. Returns the unread count (0)."""
        updated = AdminNotification.objects.filter(is_read=False).update(is_read=True)
        if updated:
            # Bulk update skips post_save
            transaction.on_commit(
                lambda: broadcast_record_change(STREAM_NOTIFICATIONS, UPDATE, {'id': None, 'is_read': True})
            )
        logger.debug(f"[NOTIFICATIONS] {updated} marked as read")
        return 0
