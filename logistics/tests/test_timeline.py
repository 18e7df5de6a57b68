"""
Status timeline of a delivery
"""

from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from core.models import User
from logistics.models import Delivery, DeliveryStatus
from logistics.services import DeliveryStatusService
from logistics.services.timeline import TIMELINE_ERROR_MESSAGE, load_status_timeline

S = DeliveryStatus


class TestStatusTimeline(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x', full_name='Mariam Koné')
        self.delivery = Delivery.objects.create(
            pickup_address='Plateau', delivery_address='Marcory', status=S.IN_TRANSIT
        )

    def test_empty_timeline(self):
        timeline = load_status_timeline(self.delivery.id)
        self.assertEqual(timeline.entries, [])
        self.assertIsNone(timeline.error)

    def test_entries_oldest_first(self):
        DeliveryStatusService.update_status(self.delivery, S.DELIVERED, actor=self.admin)
        DeliveryStatusService.update_status(self.delivery, S.COMPLETED)

        timeline = load_status_timeline(self.delivery.id)

        first, second = timeline.entries
        self.assertEqual(first.new_status, S.DELIVERED)
        self.assertEqual(first.old_label, 'En transit')
        self.assertEqual(first.new_label, 'Livrée')
        self.assertEqual(first.actor, 'Mariam Koné')
        self.assertEqual(first.bucket, 'completed')
        self.assertIsNone(second.actor)

    def test_to_dict(self):
        DeliveryStatusService.update_status(self.delivery, S.FAILED, note='Client absent')

        data = load_status_timeline(self.delivery.id).to_dict()

        self.assertEqual(data['delivery_id'], str(self.delivery.id))
        self.assertEqual(data['history'][0]['bucket'], 'cancelled')
        self.assertEqual(data['history'][0]['note'], 'Client absent')
        self.assertIsNone(data['error'])

    def test_failed_fetch_returns_inline_error(self):
        with patch('logistics.services.timeline.DeliveryStatusHistory.objects') as mock_objects:
            mock_objects.filter.side_effect = DatabaseError('connexion perdue')
            timeline = load_status_timeline(self.delivery.id)

        self.assertEqual(timeline.entries, [])
        self.assertEqual(timeline.error, TIMELINE_ERROR_MESSAGE)
