"""
LogiTrack Notifications Tests
=============================

Tests for:
1. Routes per notification type
2. NotificationService (list, unread counter, mark read)
3. Notifications created from business events
4. Endpoints and the bell websocket
"""

from unittest.mock import patch

from channels.testing import WebsocketCommunicator
from django.test import TestCase, TransactionTestCase, override_settings
from rest_framework.test import APIClient

from core.models import User
from fleet.models import Driver, DriverStatus
from logistics.models import Delivery, DeliveryStatus
from logistics.services import DeliveryStatusService
from notifications.consumers import NotificationConsumer
from notifications.models import AdminNotification, NotificationType, notification_route
from notifications.services import NotificationService
from partners.models import DeliveryCompany
from support.models import Incident


class TestNotificationRoutes(TestCase):

    def test_known_routes(self):
        self.assertEqual(notification_route('new_driver'), '/drivers')
        self.assertEqual(notification_route('new_company'), '/companies')
        self.assertEqual(notification_route('incident'), '/incidents')
        self.assertEqual(notification_route('delivery_failed'), '/deliveries')

    def test_unknown_type_has_no_route(self):
        self.assertIsNone(notification_route('system'))
        self.assertIsNone(notification_route('whatever'))


class TestNotificationService(TestCase):

    def setUp(self):
        self.first = NotificationService.notify(NotificationType.SYSTEM, 'Un')
        self.second = NotificationService.notify(NotificationType.SYSTEM, 'Deux')
        self.third = NotificationService.notify(NotificationType.SYSTEM, 'Trois')

    def test_newest_first(self):
        titles = [n.title for n in NotificationService.get_notifications()]
        self.assertEqual(titles, ['Trois', 'Deux', 'Un'])

    @override_settings(NOTIFICATIONS_PAGE_SIZE=2)
    def test_default_limit_from_settings(self):
        self.assertEqual(len(NotificationService.get_notifications()), 2)

    def test_mark_read_decrements_by_one(self):
        self.assertEqual(NotificationService.get_unread_count(), 3)
        self.assertEqual(NotificationService.mark_read(self.second.id), 2)

        self.second.refresh_from_db()
        self.first.refresh_from_db()
        self.assertTrue(self.second.is_read)
        self.assertFalse(self.first.is_read)

    def test_mark_read_twice_is_stable(self):
        NotificationService.mark_read(self.second.id)
        self.assertEqual(NotificationService.mark_read(self.second.id), 2)

    def test_mark_all_read(self):
        self.assertEqual(NotificationService.mark_all_read(), 0)
        self.assertEqual(NotificationService.get_unread_count(), 0)

    @patch('notifications.services.broadcast_record_change')
    def test_mark_all_read_broadcast_after_commit(self, mock_broadcast):
        with self.captureOnCommitCallbacks() as callbacks:
            NotificationService.mark_all_read()
        mock_broadcast.assert_not_called()

        for callback in callbacks:
            callback()
        mock_broadcast.assert_called_once_with('admin_notifications', 'UPDATE', {'id': None, 'is_read': True})

    @patch('notifications.signals.broadcast_record_change')
    def test_insert_broadcast(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            NotificationService.notify(NotificationType.SYSTEM, 'Quatre')
        stream, event, record = mock_broadcast.call_args[0]
        self.assertEqual((stream, event), ('admin_notifications', 'INSERT'))
        self.assertEqual(record['title'], 'Quatre')


class TestNotificationTriggers(TestCase):

    def test_new_pending_driver(self):
        Driver.objects.create(full_name='Awa Traoré', phone='+2250707000201')
        notification = AdminNotification.objects.get()
        self.assertEqual(notification.type, NotificationType.NEW_DRIVER)
        self.assertEqual(notification.route, '/drivers')

    def test_approved_driver_not_notified(self):
        Driver.objects.create(full_name='Yao', phone='+2250707000202', status=DriverStatus.APPROVED)
        self.assertFalse(AdminNotification.objects.exists())

    def test_new_company(self):
        DeliveryCompany.objects.create(
            company_name='Rapide Express', email='a@b.ci', phone='+2250707000100', owner_name='K'
        )
        self.assertEqual(AdminNotification.objects.get().type, NotificationType.NEW_COMPANY)

    def test_new_incident(self):
        delivery = Delivery.objects.create(pickup_address='A', delivery_address='B')
        Incident.objects.create(delivery=delivery, title='Colis perdu')
        self.assertEqual(AdminNotification.objects.get().type, NotificationType.INCIDENT)

    def test_delivery_entering_failed(self):
        delivery = Delivery.objects.create(
            pickup_address='A', delivery_address='B', status=DeliveryStatus.IN_TRANSIT
        )
        DeliveryStatusService.update_status(delivery, DeliveryStatus.FAILED)

        notification = AdminNotification.objects.get()
        self.assertEqual(notification.type, NotificationType.DELIVERY_FAILED)
        self.assertEqual(notification.data['tracking_code'], delivery.tracking_code)

    def test_other_status_changes_not_notified(self):
        delivery = Delivery.objects.create(pickup_address='A', delivery_address='B')
        DeliveryStatusService.update_status(delivery, DeliveryStatus.CANCELLED)
        self.assertFalse(AdminNotification.objects.exists())


class TestNotificationsAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.api.force_authenticate(User.objects.create_user('+2250707000001', 'x'))
        self.notification = NotificationService.notify(NotificationType.INCIDENT, 'Incident')
        NotificationService.notify(NotificationType.SYSTEM, 'Maintenance')

    def test_list(self):
        response = self.api.get('/api/notifications/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['unread_count'], 2)
        self.assertEqual(response.data['results'][1]['route'], '/incidents')

    def test_mark_read(self):
        response = self.api.post(f'/api/notifications/{self.notification.id}/read/')
        self.assertEqual(response.data, {'unread_count': 1})

    def test_mark_all_read(self):
        response = self.api.post('/api/notifications/read-all/')
        self.assertEqual(response.data, {'unread_count': 0})


class TestNotificationConsumer(TransactionTestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')
        NotificationService.notify(NotificationType.SYSTEM, 'Bienvenue')

    def _communicator(self):
        communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), '/ws/notifications/')
        communicator.scope['user'] = self.admin
        return communicator

    async def test_initial_state_then_refetch(self):
        communicator = self._communicator()
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        initial = await communicator.receive_json_from()
        self.assertEqual(initial['type'], 'notifications')
        self.assertEqual(initial['unread_count'], 1)

        await communicator.send_input({
            'type': 'record.change',
            'stream': 'admin_notifications',
            'event': 'UPDATE',
            'record': {'id': None, 'is_read': True},
        })
        refreshed = await communicator.receive_json_from()
        self.assertEqual(refreshed['type'], 'notifications')

        # Other streams do not refresh the bell
        await communicator.send_input({
            'type': 'record.change', 'stream': 'deliveries', 'event': 'INSERT', 'record': {'id': 'x'},
        })
        self.assertTrue(await communicator.receive_nothing())
        await communicator.disconnect()
