"""
DRAFTS App - WebSocket consumer for server-side autosave

Clients connect to: ws://host/ws/drafts/<form_key>/

Events received:
- change {data}: debounced write of the form state
- restore: reply `restored` with the draft data
- discard: remove the draft
- ping

Events sent:
- state {has_draft, saved_at, just_saved} on connect and after discard
- saved {saved_at} after each write
"""

import logging
from channels.db import database_sync_to_async

from logistics.consumers import ChangeFeedConsumer
from .autosave import FormAutosave
from .store import DraftStore

logger = logging.getLogger(__name__)


class DraftConsumer(ChangeFeedConsumer):

    autosave = None

    async def on_connected(self):
        self.form_key = self.scope['url_route']['kwargs']['form_key']
        self.session = self.scope['session']
        self.autosave = FormAutosave(
            DraftStore(self.session), self.form_key, on_saved=self.on_draft_saved
        )
        await self.autosave.open()
        await self.send_json({'type': 'state', **self.autosave.state})

    async def disconnect(self, close_code):
        if self.autosave is not None:
            self.autosave.close()
        await super().disconnect(close_code)

    async def receive_json(self, content):
        message_type = content.get('type')

        if message_type == 'change':
            self.autosave.change(content.get('data'))
        elif message_type == 'restore':
            data = await self.autosave.restore()
            await self.send_json({'type': 'restored', 'data': data, **self.autosave.state})
        elif message_type == 'discard':
            await self.autosave.discard()
            await self.save_session()
            await self.send_json({'type': 'state', **self.autosave.state})
        else:
            await super().receive_json(content)

    async def on_draft_saved(self, draft):
        await self.save_session()
        await self.send_json({'type': 'saved', **self.autosave.state})

    @database_sync_to_async
    def save_session(self):
        self.session.save()
