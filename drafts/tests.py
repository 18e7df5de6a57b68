"""
LogiTrack Drafts Tests
======================

Tests for:
1. DraftStore (session key, JSON format, corrupt entries)
2. FormAutosave (debounce, just-saved flag, restore, discard, close)
3. HTTP endpoints
4. DraftConsumer
"""

import asyncio
import json
from importlib import import_module

from channels.testing import WebsocketCommunicator
from django.conf import settings
from django.test import SimpleTestCase, TestCase, TransactionTestCase
from rest_framework.test import APIClient

from core.models import User
from drafts.autosave import FormAutosave
from drafts.consumers import DraftConsumer
from drafts.store import DraftStore

DELAY = 0.05
JUST_SAVED = 0.15


class TestDraftStore(SimpleTestCase):

    def setUp(self):
        self.session = {}
        self.store = DraftStore(self.session)

    def test_save_writes_json_under_prefixed_key(self):
        self.store.save('new_zone', {'name': 'Cocody'})

        raw = json.loads(self.session['draft_new_zone'])
        self.assertEqual(raw['data'], {'name': 'Cocody'})
        self.assertIn('savedAt', raw)

    def test_load_roundtrip(self):
        saved = self.store.save('new_zone', {'name': 'Cocody'})
        draft = self.store.load('new_zone')
        self.assertEqual(draft.data, {'name': 'Cocody'})
        self.assertEqual(draft.saved_at, saved.saved_at)

    def test_missing_draft(self):
        self.assertIsNone(self.store.load('nothing'))

    def test_corrupt_draft_removed(self):
        self.session['draft_new_zone'] = '{not json'
        self.assertIsNone(self.store.load('new_zone'))
        self.assertNotIn('draft_new_zone', self.session)

    def test_draft_without_timestamp_removed(self):
        self.session['draft_new_zone'] = json.dumps({'data': {}})
        self.assertIsNone(self.store.load('new_zone'))
        self.assertNotIn('draft_new_zone', self.session)

    def test_discard(self):
        self.store.save('new_zone', {})
        self.assertTrue(self.store.discard('new_zone'))
        self.assertFalse(self.store.discard('new_zone'))


class TestFormAutosave(SimpleTestCase):

    def setUp(self):
        self.session = {}
        self.store = DraftStore(self.session)

    def _autosave(self, **kwargs):
        return FormAutosave(self.store, 'new_zone', delay=DELAY, just_saved_for=JUST_SAVED, **kwargs)

    async def test_change_persists_after_debounce(self):
        autosave = self._autosave()
        await autosave.open()
        self.assertFalse(autosave.has_draft)

        autosave.change({'name': 'Co'})
        self.assertNotIn('draft_new_zone', self.session)

        await asyncio.sleep(DELAY * 3)
        self.assertTrue(autosave.has_draft)
        self.assertIsNotNone(autosave.draft_saved_at)
        self.assertTrue(autosave.just_saved)
        autosave.close()

    async def test_rapid_changes_coalesce(self):
        saved = []

        async def on_saved(draft):
            saved.append(draft.data)

        autosave = self._autosave(on_saved=on_saved)
        await autosave.open()
        autosave.change({'name': 'C'})
        autosave.change({'name': 'Co'})
        autosave.change({'name': 'Cocody'})

        await asyncio.sleep(DELAY * 3)
        self.assertEqual(saved, [{'name': 'Cocody'}])
        autosave.close()

    async def test_just_saved_clears(self):
        autosave = self._autosave()
        await autosave.open()
        autosave.change({'name': 'Cocody'})
        await asyncio.sleep(DELAY * 2)
        self.assertTrue(autosave.just_saved)

        await asyncio.sleep(JUST_SAVED * 2)
        self.assertFalse(autosave.just_saved)
        autosave.close()

    async def test_reopen_reports_draft(self):
        first = self._autosave()
        await first.open()
        first.change({'name': 'Cocody'})
        await asyncio.sleep(DELAY * 3)
        first.close()

        state = await self._autosave().open()
        self.assertTrue(state['has_draft'])
        self.assertIsNotNone(state['saved_at'])

    async def test_restore_returns_data_and_clears_flag(self):
        self.store.save('new_zone', {'name': 'Cocody'})
        autosave = self._autosave()
        await autosave.open()

        data = await autosave.restore()

        self.assertEqual(data, {'name': 'Cocody'})
        self.assertFalse(autosave.has_draft)

    async def test_discard_removes_entry(self):
        self.store.save('new_zone', {'name': 'Cocody'})
        autosave = self._autosave()
        await autosave.open()

        await autosave.discard()

        self.assertFalse(autosave.has_draft)
        self.assertIsNone(autosave.draft_saved_at)
        self.assertNotIn('draft_new_zone', self.session)

    async def test_discard_cancels_pending_write(self):
        autosave = self._autosave()
        await autosave.open()
        autosave.change({'name': 'Cocody'})
        await autosave.discard()

        await asyncio.sleep(DELAY * 3)
        self.assertNotIn('draft_new_zone', self.session)

    async def test_changes_ignored_when_closed(self):
        autosave = self._autosave()
        self.assertFalse(autosave.change({'name': 'x'}))

        await autosave.open()
        autosave.change({'name': 'x'})
        autosave.close()
        await asyncio.sleep(DELAY * 3)
        self.assertNotIn('draft_new_zone', self.session)


class TestDraftsAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.api.force_authenticate(User.objects.create_user('+2250707000001', 'x'))
        self.url = '/api/drafts/new_zone/'

    def test_empty_state(self):
        response = self.api.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['has_draft'])
        self.assertIsNone(response.data['saved_at'])

    def test_save_restore_discard(self):
        response = self.api.put(self.url, {'data': {'name': 'Cocody', 'city': 'Abidjan'}}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['has_draft'])

        response = self.api.get(self.url)
        self.assertTrue(response.data['has_draft'])

        response = self.api.post(f'{self.url}restore/')
        self.assertEqual(response.data['data'], {'name': 'Cocody', 'city': 'Abidjan'})
        self.assertFalse(response.data['has_draft'])

        response = self.api.delete(self.url)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(self.api.get(self.url).data['has_draft'])

    def test_restore_without_draft(self):
        response = self.api.post(f'{self.url}restore/')
        self.assertEqual(response.status_code, 404)
        self.assertIn('error', response.data)


class TestDraftConsumer(TransactionTestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')
        engine = import_module(settings.SESSION_ENGINE)
        self.session = engine.SessionStore()
        self.session.create()

    def _communicator(self):
        communicator = WebsocketCommunicator(DraftConsumer.as_asgi(), '/ws/drafts/new_zone/')
        communicator.scope['user'] = self.admin
        communicator.scope['session'] = self.session
        communicator.scope['url_route'] = {'kwargs': {'form_key': 'new_zone'}}
        return communicator

    async def test_change_saved_after_debounce(self):
        communicator = self._communicator()
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        state = await communicator.receive_json_from()
        self.assertEqual(state['type'], 'state')
        self.assertFalse(state['has_draft'])

        await communicator.send_json_to({'type': 'change', 'data': {'name': 'Cocody'}})
        saved = await communicator.receive_json_from(timeout=3)
        self.assertEqual(saved['type'], 'saved')
        self.assertTrue(saved['has_draft'])
        self.assertTrue(saved['just_saved'])

        await communicator.send_json_to({'type': 'restore'})
        restored = await communicator.receive_json_from()
        self.assertEqual(restored['data'], {'name': 'Cocody'})

        await communicator.send_json_to({'type': 'discard'})
        discarded = await communicator.receive_json_from()
        self.assertFalse(discarded['has_draft'])
        await communicator.disconnect()
