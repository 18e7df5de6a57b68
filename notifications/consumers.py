"""
NOTIFICATIONS App - WebSocket consumer for the backoffice bell

Clients connect to: ws://host/ws/notifications/

Sends `notifications` ({results, unread_count}) on connect and after
every INSERT/UPDATE on admin notifications.
"""

from typing import List
from channels.db import database_sync_to_async

from logistics.consumers import ChangeFeedConsumer, refresh_debounce
from logistics.events import STREAM_NOTIFICATIONS
from logistics.realtime import ChangeSubscription, RefreshListener


class NotificationConsumer(ChangeFeedConsumer):

    def get_listeners(self) -> List[RefreshListener]:
        return [
            RefreshListener(
                [ChangeSubscription(STREAM_NOTIFICATIONS)],
                self.send_notifications,
                debounce=refresh_debounce(),
                name='notifications',
            ),
        ]

    async def on_connected(self):
        await self.send_notifications()

    async def send_notifications(self):
        await self.send_payload('notifications', self.get_payload)

    @database_sync_to_async
    def get_payload(self) -> dict:
        from .views import notifications_payload
        return notifications_payload()
