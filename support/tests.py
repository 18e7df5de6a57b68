"""
LogiTrack Support Tests
=======================

Tests for:
1. IncidentService (status changes, resolution, stats)
2. ChatService (listing, messages, unread counter, status)
3. Incident & chat API endpoints
4. ChatConsumer (messages push, typing relay)
"""

from datetime import timedelta
from unittest.mock import patch

from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.test import TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.models import User, AdminRole
from fleet.models import Driver
from logistics.events import typing_event, typing_group
from logistics.models import Delivery
from support.consumers import ChatConsumer
from support.models import (
    ChatConversation, ChatMessage, ConversationStatus,
    Incident, IncidentSeverity, IncidentStatus, SenderType,
)
from support.services import (
    ChatService, IncidentAlreadyClosed, IncidentService, ResolutionRequired,
)


def make_delivery(**kwargs):
    defaults = {
        'pickup_address': 'Plateau, Avenue Chardy',
        'delivery_address': 'Cocody, Riviera 2',
    }
    defaults.update(kwargs)
    return Delivery.objects.create(**defaults)


def make_driver(**kwargs):
    defaults = {'full_name': 'Konan Serge', 'phone': '+2250707000200'}
    defaults.update(kwargs)
    return Driver.objects.create(**defaults)


# ============================================
# INCIDENTS
# ============================================

class TestIncidentService(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')
        self.delivery = make_delivery()
        self.incident = Incident.objects.create(
            delivery=self.delivery,
            title='Colis abîmé',
            severity=IncidentSeverity.HIGH,
        )

    def test_move_to_investigating(self):
        IncidentService.update_status(self.incident, IncidentStatus.INVESTIGATING, actor=self.admin)
        self.incident.refresh_from_db()
        self.assertEqual(self.incident.status, IncidentStatus.INVESTIGATING)
        self.assertIsNone(self.incident.resolved_at)

    def test_resolution_stamps_resolver(self):
        IncidentService.update_status(
            self.incident, IncidentStatus.RESOLVED,
            actor=self.admin, resolution='Remboursement du client'
        )
        self.incident.refresh_from_db()
        self.assertEqual(self.incident.status, IncidentStatus.RESOLVED)
        self.assertEqual(self.incident.resolution, 'Remboursement du client')
        self.assertEqual(self.incident.resolved_by, self.admin)
        self.assertIsNotNone(self.incident.resolved_at)

    def test_resolve_requires_resolution(self):
        with self.assertRaises(ResolutionRequired):
            IncidentService.update_status(self.incident, IncidentStatus.RESOLVED, actor=self.admin)
        self.incident.refresh_from_db()
        self.assertEqual(self.incident.status, IncidentStatus.OPEN)

    def test_blank_resolution_rejected(self):
        with self.assertRaises(ResolutionRequired):
            IncidentService.update_status(self.incident, IncidentStatus.RESOLVED, resolution='   ')

    def test_closed_incident_is_frozen(self):
        IncidentService.update_status(self.incident, IncidentStatus.CLOSED)
        with self.assertRaises(IncidentAlreadyClosed):
            IncidentService.update_status(self.incident, IncidentStatus.OPEN)

    def test_stats(self):
        Incident.objects.create(delivery=self.delivery, title='b', status=IncidentStatus.INVESTIGATING)
        Incident.objects.create(delivery=self.delivery, title='c', status=IncidentStatus.RESOLVED)
        stats = IncidentService.get_stats()
        self.assertEqual(stats['open'], 1)
        self.assertEqual(stats['investigating'], 1)
        self.assertEqual(stats['resolved'], 1)
        self.assertEqual(stats['total'], 3)


# ============================================
# CHAT
# ============================================

class TestChatService(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x', full_name='Support Abidjan')
        self.driver = make_driver()
        self.conversation = ChatConversation.objects.create(driver=self.driver, subject='Colis')

    def test_send_admin_message(self):
        long_text = 'x' * 150
        message = ChatService.send_admin_message(self.conversation, self.admin, long_text)

        self.assertEqual(message.sender_type, SenderType.SUPPORT)
        self.assertEqual(message.sender_name, 'Support Abidjan')
        self.conversation.refresh_from_db()
        self.assertEqual(self.conversation.last_message, 'x' * 100)
        self.assertIsNotNone(self.conversation.last_message_at)
        self.assertEqual(self.conversation.status, ConversationStatus.ACTIVE)

    def test_empty_message_rejected(self):
        with self.assertRaises(ValueError):
            ChatService.send_admin_message(self.conversation, self.admin, '  ')

    def _driver_message(self, text):
        return ChatMessage.objects.create(
            conversation=self.conversation,
            sender_type=SenderType.DRIVER,
            sender_id=str(self.driver.pk),
            sender_name=self.driver.full_name,
            message=text,
        )

    def test_driver_message_increments_unread(self):
        self._driver_message('Bonjour')
        self._driver_message('Vous êtes là ?')
        self.conversation.refresh_from_db()
        self.assertEqual(self.conversation.unread_count, 2)
        self.assertEqual(self.conversation.last_message, 'Vous êtes là ?')
        self.assertIsNotNone(self.conversation.last_message_at)

    def test_admin_message_leaves_unread_alone(self):
        self._driver_message('Bonjour')
        ChatService.send_admin_message(self.conversation, self.admin, 'Oui ?')
        self.conversation.refresh_from_db()
        self.assertEqual(self.conversation.unread_count, 1)

    @patch('support.signals.broadcast_record_change')
    def test_driver_message_broadcasts_counter(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            self._driver_message('Bonjour')
        conversation_events = [
            c[0] for c in mock_broadcast.call_args_list if c[0][0] == 'chat_conversations'
        ]
        self.assertEqual(len(conversation_events), 1)
        self.assertEqual(conversation_events[0][2]['unread_count'], 1)

    def test_mark_read_resets_counter(self):
        self._driver_message('Bonjour')
        ChatService.send_admin_message(self.conversation, self.admin, 'Oui ?')

        marked = ChatService.mark_conversation_read(self.conversation)

        self.assertEqual(marked, 1)
        self.conversation.refresh_from_db()
        self.assertEqual(self.conversation.unread_count, 0)
        driver_msg = ChatMessage.objects.get(sender_type=SenderType.DRIVER)
        support_msg = ChatMessage.objects.get(sender_type=SenderType.SUPPORT)
        self.assertIsNotNone(driver_msg.read_at)
        self.assertIsNone(support_msg.read_at)

    def test_get_messages_latest_in_ascending_order(self):
        base = timezone.now()
        for i in range(55):
            msg = ChatMessage.objects.create(
                conversation=self.conversation, sender_type=SenderType.DRIVER, message=f'm{i}'
            )
            ChatMessage.objects.filter(pk=msg.pk).update(created_at=base + timedelta(seconds=i))

        messages = ChatService.get_messages(self.conversation)

        self.assertEqual(len(messages), 50)
        self.assertEqual(messages[0].message, 'm5')
        self.assertEqual(messages[-1].message, 'm54')

    def test_conversations_sorted_nulls_last_and_filtered(self):
        other_driver = make_driver(full_name='Awa', phone='+2250707000201')
        recent = ChatConversation.objects.create(
            driver=other_driver, status=ConversationStatus.ACTIVE, last_message_at=timezone.now()
        )
        older = ChatConversation.objects.create(
            driver=other_driver, status=ConversationStatus.RESOLVED,
            last_message_at=timezone.now() - timedelta(hours=1)
        )

        ids = [c.id for c in ChatService.get_conversations('all')]
        self.assertEqual(ids, [recent.id, older.id, self.conversation.id])

        waiting = list(ChatService.get_conversations('waiting'))
        self.assertEqual(waiting, [self.conversation])

    def test_stats(self):
        ChatService.close_conversation(self.conversation)
        stats = ChatService.get_conversation_stats()
        self.assertEqual(stats, {'total': 1, 'waiting': 0, 'active': 0, 'resolved': 1})

        ChatService.reopen_conversation(self.conversation)
        self.assertEqual(ChatService.get_conversation_stats()['active'], 1)

    @patch('support.signals.broadcast_record_change')
    def test_message_insert_broadcast(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            ChatService.send_admin_message(self.conversation, self.admin, 'Bonjour')
        streams = [c[0][0] for c in mock_broadcast.call_args_list]
        self.assertIn('chat_messages', streams)
        self.assertIn('chat_conversations', streams)


# ============================================
# API
# ============================================

class TestSupportAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.admin = User.objects.create_user('+2250707000001', 'x', role=AdminRole.SUPPORT)
        self.api.force_authenticate(self.admin)
        self.delivery = make_delivery()
        self.incident = Incident.objects.create(delivery=self.delivery, title='Retard')
        self.conversation = ChatConversation.objects.create(driver=make_driver())

    def test_incident_list_filter(self):
        Incident.objects.create(delivery=self.delivery, title='Perte', severity=IncidentSeverity.CRITICAL)
        response = self.api.get('/api/incidents/', {'severity': 'critical'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['tracking_code'], self.delivery.tracking_code)

    def test_incident_resolve_without_resolution(self):
        response = self.api.post(
            f'/api/incidents/{self.incident.id}/update-status/', {'status': 'resolved'}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)

    def test_incident_resolve(self):
        response = self.api.post(
            f'/api/incidents/{self.incident.id}/update-status/',
            {'status': 'resolved', 'resolution': 'Client livré le lendemain'}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'resolved')

    def test_send_and_list_messages(self):
        url = f'/api/support/conversations/{self.conversation.id}/messages/'
        response = self.api.post(url, {'message': 'Bonjour'})
        self.assertEqual(response.status_code, 201)

        response = self.api.get(url)
        self.assertEqual([m['message'] for m in response.data], ['Bonjour'])

    def test_conversation_stats(self):
        response = self.api.get('/api/support/conversations/stats/')
        self.assertEqual(response.data['waiting'], 1)

    def test_close_and_reopen(self):
        base = f'/api/support/conversations/{self.conversation.id}'
        self.assertEqual(self.api.post(f'{base}/close/').data['status'], 'resolved')
        self.assertEqual(self.api.post(f'{base}/reopen/').data['status'], 'active')


# ============================================
# WEBSOCKET
# ============================================

class TestChatConsumer(TransactionTestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x', full_name='Support')
        self.conversation = ChatConversation.objects.create(driver=make_driver())

    def _communicator(self, user):
        communicator = WebsocketCommunicator(
            ChatConsumer.as_asgi(),
            f'/ws/support/chat/{self.conversation.id}/'
        )
        communicator.scope['user'] = user
        communicator.scope['url_route'] = {'kwargs': {'conversation_id': str(self.conversation.id)}}
        return communicator

    async def test_anonymous_refused(self):
        from django.contrib.auth.models import AnonymousUser
        communicator = self._communicator(AnonymousUser())
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4003)

    async def test_unknown_conversation_refused_before_accept(self):
        communicator = WebsocketCommunicator(
            ChatConsumer.as_asgi(), '/ws/support/chat/00000000-0000-0000-0000-000000000000/'
        )
        communicator.scope['user'] = self.admin
        communicator.scope['url_route'] = {
            'kwargs': {'conversation_id': '00000000-0000-0000-0000-000000000000'}
        }
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4004)

    async def test_initial_messages_then_push_on_insert(self):
        communicator = self._communicator(self.admin)
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        first = await communicator.receive_json_from()
        self.assertEqual(first['type'], 'messages')
        self.assertEqual(first['messages'], [])

        await communicator.send_input({
            'type': 'record.change',
            'stream': 'chat_messages',
            'event': 'INSERT',
            'record': {'id': 'x', 'conversation_id': str(self.conversation.id)},
        })
        pushed = await communicator.receive_json_from()
        self.assertEqual(pushed['type'], 'messages')

        # Other conversations are ignored
        await communicator.send_input({
            'type': 'record.change',
            'stream': 'chat_messages',
            'event': 'INSERT',
            'record': {'id': 'y', 'conversation_id': 'other'},
        })
        self.assertTrue(await communicator.receive_nothing())
        await communicator.disconnect()

    async def test_typing_relayed_but_not_echoed(self):
        sender = self._communicator(self.admin)
        await sender.connect()
        await sender.receive_json_from()

        layer = get_channel_layer()
        listener_channel = await layer.new_channel()
        await layer.group_add(typing_group(self.conversation.id), listener_channel)

        await sender.send_json_to({'type': 'typing'})

        relayed = await layer.receive(listener_channel)
        self.assertEqual(relayed['type'], 'chat.typing')
        self.assertEqual(relayed['sender_type'], 'support')
        self.assertEqual(relayed['sender_name'], 'Support')
        self.assertTrue(await sender.receive_nothing())
        await sender.disconnect()

    async def test_typing_from_other_participant_delivered(self):
        communicator = self._communicator(self.admin)
        await communicator.connect()
        await communicator.receive_json_from()

        await communicator.send_input(
            typing_event(self.conversation.id, 'driver', 'Konan Serge', sender_channel='driver-app')
        )
        message = await communicator.receive_json_from()
        self.assertEqual(message, {'type': 'typing', 'sender_type': 'driver', 'sender_name': 'Konan Serge'})
        await communicator.disconnect()

