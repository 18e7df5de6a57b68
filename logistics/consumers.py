"""
LOGISTICS App - WebSocket base consumer for change feeds

Backoffice screens (dashboard, notification bell, support chat) connect
through a subclass of ChangeFeedConsumer:

- anonymous or non-backoffice users are closed with code 4003, before
  accept; subclasses add their own checks in authorize()
- the consumer joins the `changes_<stream>` group of every stream its
  listeners subscribe to
- each `record.change` event is fanned out to the listeners, which
  reload their aggregate and push it to the client
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import DatabaseError

from core.permissions import is_backoffice_user
from .realtime import ChangeDispatcher, RefreshListener

logger = logging.getLogger(__name__)

FORBIDDEN_CLOSE_CODE = 4003
NOT_FOUND_CLOSE_CODE = 4004

RELOAD_ERROR = "Impossible de charger les données. Nouvel essai à la prochaine mise à jour."


def refresh_debounce() -> float:
    """Debounce window for refresh listeners, in seconds."""
    return getattr(settings, 'REALTIME_REFRESH_DEBOUNCE_MS', 0) / 1000.0


class ChangeFeedConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer: subclasses return their listeners from get_listeners()
    and push the initial state from on_connected().
    """

    dispatcher = None

    def get_listeners(self) -> List[RefreshListener]:
        return []

    async def authorize(self) -> Optional[int]:
        """Close code to refuse the connection with, or None to accept it."""
        if not is_backoffice_user(self.scope.get('user')):
            return FORBIDDEN_CLOSE_CODE
        return None

    async def on_connected(self):
        pass

    async def connect(self):
        user = self.scope.get('user')
        refused = await self.authorize()
        if refused is not None:
            logger.warning(f"[WS] Refused {self.__class__.__name__} connection ({refused})")
            await self.close(code=refused)
            return

        self.dispatcher = ChangeDispatcher(*self.get_listeners())
        for group in self.dispatcher.groups:
            await self.channel_layer.group_add(group, self.channel_name)

        await self.accept()
        await self.on_connected()

        logger.info(f"[WS] {self.__class__.__name__} connected for {user.phone_number}")

    async def disconnect(self, close_code):
        if self.dispatcher is None:
            return
        self.dispatcher.close()
        for group in self.dispatcher.groups:
            await self.channel_layer.group_discard(group, self.channel_name)
        logger.info(f"[WS] {self.__class__.__name__} disconnected ({close_code})")

    async def receive_json(self, content):
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    async def send_payload(self, payload_type: str, loader: Callable[[], Awaitable[Dict[str, Any]]]):
        """
        Push `{'type': payload_type, **payload}`.

        A database failure while loading pushes `{'type', 'error'}` instead
        and leaves the connection open; the next change retries.
        """
        try:
            payload = await loader()
        except DatabaseError as e:
            logger.error(f"[WS] {self.__class__.__name__}: {payload_type} reload failed: {e}")
            await self.send_json({'type': payload_type, 'error': RELOAD_ERROR})
            return
        await self.send_json({'type': payload_type, **payload})

    @classmethod
    async def encode_json(cls, content):
        return json.dumps(content, cls=DjangoJSONEncoder)

    # ============================================
    # Event Handlers (called via channel_layer.group_send)
    # ============================================

    async def record_change(self, event):
        await self.dispatcher.dispatch(event)
