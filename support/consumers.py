"""
SUPPORT App - WebSocket consumer for a live support conversation

Clients connect to: ws://host/ws/support/chat/<conversation_id>/
Unknown conversations are refused with code 4004.

Events sent:
- messages: latest messages (oldest first), on connect and on each new message
- typing: someone else is typing ({sender_type, sender_name})

Events received:
- typing: relayed to the other participants, never echoed back
- ping
"""

import logging
from typing import List, Optional
from channels.db import database_sync_to_async
from django.core.exceptions import ValidationError

from logistics.consumers import NOT_FOUND_CLOSE_CODE, ChangeFeedConsumer, refresh_debounce
from logistics.events import INSERT, STREAM_CHAT_MESSAGES, typing_event, typing_group
from logistics.realtime import ChangeSubscription, RefreshListener

logger = logging.getLogger('logitrack.chat')


class ChatConsumer(ChangeFeedConsumer):

    @property
    def conversation_id(self) -> str:
        return self.scope['url_route']['kwargs']['conversation_id']

    def get_listeners(self) -> List[RefreshListener]:
        return [
            RefreshListener(
                [ChangeSubscription(
                    STREAM_CHAT_MESSAGES,
                    events=(INSERT,),
                    filters={'conversation_id': str(self.conversation_id)},
                )],
                self.send_messages,
                debounce=refresh_debounce(),
                name=f'chat_{self.conversation_id}',
            ),
        ]

    async def authorize(self) -> Optional[int]:
        refused = await super().authorize()
        if refused is not None:
            return refused
        if not await self.conversation_exists():
            logger.warning(f"[CHAT] Unknown conversation {self.conversation_id}")
            return NOT_FOUND_CLOSE_CODE
        return None

    async def connect(self):
        await super().connect()
        if self.dispatcher is not None:
            await self.channel_layer.group_add(typing_group(self.conversation_id), self.channel_name)

    async def disconnect(self, close_code):
        if self.dispatcher is not None:
            await self.channel_layer.group_discard(typing_group(self.conversation_id), self.channel_name)
        await super().disconnect(close_code)

    async def on_connected(self):
        await self.send_messages()

    async def receive_json(self, content):
        if content.get('type') == 'typing':
            user = self.scope['user']
            await self.channel_layer.group_send(
                typing_group(self.conversation_id),
                typing_event(
                    self.conversation_id,
                    'support',
                    content.get('sender_name') or user.display_name,
                    sender_channel=self.channel_name,
                ),
            )
            return
        await super().receive_json(content)

    async def send_messages(self):
        await self.send_payload('messages', self.get_messages)

    # ============================================
    # Event Handlers
    # ============================================

    async def chat_typing(self, event):
        if event.get('sender_channel') == self.channel_name:
            return
        await self.send_json({
            'type': 'typing',
            'sender_type': event['sender_type'],
            'sender_name': event['sender_name'],
        })

    # ============================================
    # Database helpers
    # ============================================

    @database_sync_to_async
    def conversation_exists(self) -> bool:
        from .models import ChatConversation
        try:
            return ChatConversation.objects.filter(pk=self.conversation_id).exists()
        except ValidationError:
            return False

    @database_sync_to_async
    def get_messages(self) -> dict:
        from .serializers import ChatMessageSerializer
        from .services import ChatService
        messages = ChatService.get_messages(self.conversation_id)
        return {
            'conversation_id': str(self.conversation_id),
            'messages': ChatMessageSerializer(messages, many=True).data,
        }
