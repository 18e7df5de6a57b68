"""
Delivery status changes and their history
"""

from datetime import timedelta
from unittest.mock import patch

from django.db import connection, transaction
from django.test import TestCase, TransactionTestCase
from django.utils import timezone

from core.models import User
from logistics.models import Delivery, DeliveryStatus, DeliveryStatusHistory
from logistics.services import DeliveryStatusService
from logistics.transitions import InvalidTransition

S = DeliveryStatus


def make_delivery(status=S.PENDING, **kwargs):
    return Delivery.objects.create(
        pickup_address='Plateau, Abidjan',
        delivery_address='Cocody Angré',
        status=status,
        **kwargs
    )


class TestUpdateStatus(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x', full_name='Admin Ops')

    def test_allowed_change(self):
        delivery = make_delivery(S.IN_TRANSIT)
        delivery = DeliveryStatusService.update_status(delivery, S.DELIVERED, actor=self.admin)

        self.assertEqual(delivery.status, S.DELIVERED)
        self.assertIsNotNone(delivery.delivered_at)

    def test_refused_change_leaves_delivery_untouched(self):
        delivery = make_delivery(S.ARRIVING)

        with self.assertRaises(InvalidTransition):
            DeliveryStatusService.update_status(delivery, S.CANCELLED)

        delivery.refresh_from_db()
        self.assertEqual(delivery.status, S.ARRIVING)
        self.assertFalse(delivery.status_history.exists())

    def test_terminal_delivery_refuses_everything(self):
        delivery = make_delivery(S.COMPLETED)
        for target in (S.PENDING, S.DELIVERED, S.CANCELLED):
            with self.assertRaises(InvalidTransition):
                DeliveryStatusService.update_status(delivery, target)

    def test_uses_stored_status(self):
        delivery = make_delivery(S.PENDING)
        stale = Delivery.objects.get(pk=delivery.pk)
        DeliveryStatusService.update_status(delivery, S.CANCELLED)

        with self.assertRaises(InvalidTransition):
            DeliveryStatusService.update_status(stale, S.CANCELLED)


class TestStatusHistory(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')

    def test_one_row_per_change(self):
        delivery = make_delivery(S.IN_TRANSIT)
        DeliveryStatusService.update_status(delivery, S.DELIVERED, actor=self.admin, note='OK client')
        DeliveryStatusService.update_status(delivery, S.COMPLETED)

        rows = list(DeliveryStatusHistory.objects.filter(delivery=delivery))
        self.assertEqual(
            [(r.old_status, r.new_status) for r in rows],
            [(S.IN_TRANSIT, S.DELIVERED), (S.DELIVERED, S.COMPLETED)],
        )
        self.assertEqual(rows[0].changed_by, self.admin)
        self.assertEqual(rows[0].note, 'OK client')
        self.assertIsNone(rows[1].changed_by)

    def test_creation_and_plain_saves_write_nothing(self):
        delivery = make_delivery()
        delivery.notes = 'Sonner deux fois'
        delivery.save()
        self.assertFalse(DeliveryStatusHistory.objects.exists())

    def test_direct_status_save_recorded(self):
        delivery = make_delivery(S.IN_TRANSIT)
        delivery.status = S.ARRIVING
        delivery.save()

        row = DeliveryStatusHistory.objects.get()
        self.assertEqual((row.old_status, row.new_status), (S.IN_TRANSIT, S.ARRIVING))

    def test_history_is_immutable(self):
        delivery = make_delivery(S.PENDING)
        DeliveryStatusService.update_status(delivery, S.CANCELLED)
        row = DeliveryStatusHistory.objects.get()

        row.note = 'modifié'
        with self.assertRaises(ValueError):
            row.save()
        with self.assertRaises(ValueError):
            row.delete()

    @patch('logistics.signals.broadcast_record_change')
    def test_every_save_broadcast(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            delivery = make_delivery(S.PENDING)
        self.assertEqual(mock_broadcast.call_args[0][:2], ('deliveries', 'INSERT'))

        with self.captureOnCommitCallbacks(execute=True):
            DeliveryStatusService.update_status(delivery, S.CANCELLED)
        stream, event, record = mock_broadcast.call_args[0]
        self.assertEqual((stream, event), ('deliveries', 'UPDATE'))
        self.assertEqual(record['status'], 'cancelled')
        self.assertEqual(record['id'], str(delivery.id))


class TestBroadcastAfterCommit(TransactionTestCase):

    @patch('logistics.signals.broadcast_record_change')
    def test_sent_once_committed(self, mock_broadcast):
        delivery = make_delivery(S.IN_TRANSIT)
        seen = []
        mock_broadcast.side_effect = lambda *args: seen.append(
            (connection.in_atomic_block, Delivery.objects.get(pk=delivery.pk).status)
        )

        DeliveryStatusService.update_status(delivery, S.DELIVERED)

        self.assertTrue(seen)
        self.assertEqual(seen[-1], (False, S.DELIVERED))
        self.assertFalse(any(in_atomic for in_atomic, _ in seen))

    @patch('logistics.signals.broadcast_record_change')
    def test_rolled_back_change_not_sent(self, mock_broadcast):
        delivery = make_delivery(S.IN_TRANSIT)
        mock_broadcast.reset_mock()

        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                delivery.status = S.ARRIVING
                delivery.save()
                raise RuntimeError('abandon')

        mock_broadcast.assert_not_called()


class TestListDeliveries(TestCase):

    def test_filters_and_order(self):
        now = timezone.now()
        first = make_delivery(S.PENDING, created_at=now - timedelta(hours=2))
        second = make_delivery(S.IN_TRANSIT, created_at=now - timedelta(hours=1))
        third = make_delivery(S.PENDING, created_at=now)

        self.assertEqual(list(DeliveryStatusService.list_deliveries()), [third, second, first])
        self.assertEqual(list(DeliveryStatusService.list_deliveries(status=S.PENDING)), [third, first])
        self.assertEqual(list(DeliveryStatusService.list_deliveries(limit=1, offset=1)), [second])
