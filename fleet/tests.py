"""
LogiTrack Fleet Tests
=====================

Tests for:
1. Driver rating
2. DriverService approve / suspend / reject
3. Drivers stream broadcast
4. API endpoints
"""

from unittest.mock import patch
from django.test import TestCase
from rest_framework.test import APIClient

from core.models import User
from fleet.models import Driver, DriverStatus, DriverType
from fleet.services import DriverService


def make_driver(**kwargs):
    defaults = {
        'full_name': 'Konan Serge',
        'phone': '+2250707000200',
    }
    defaults.update(kwargs)
    return Driver.objects.create(**defaults)


class TestDriverModel(TestCase):

    def test_rating_none_without_reviews(self):
        self.assertIsNone(make_driver().rating)

    def test_rating_rounded(self):
        driver = make_driver(rating_sum=14, rating_count=3)
        self.assertEqual(driver.rating, 4.7)

    def test_company_driver_flag(self):
        self.assertFalse(make_driver().is_company_driver)


class TestDriverService(TestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')
        self.driver = make_driver()

    def test_approve_pending(self):
        DriverService.approve(self.driver, actor=self.admin)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.status, DriverStatus.APPROVED)

    def test_suspend_takes_driver_offline(self):
        self.driver.status = DriverStatus.APPROVED
        self.driver.is_online = True
        self.driver.is_available = True
        self.driver.save()

        DriverService.suspend(self.driver, actor=self.admin, reason='Plaintes clients')
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.status, DriverStatus.SUSPENDED)
        self.assertFalse(self.driver.is_online)
        self.assertFalse(self.driver.is_available)

    def test_reject_pending(self):
        DriverService.reject(self.driver, actor=self.admin)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.status, DriverStatus.REJECTED)

    def test_reject_approved_raises(self):
        DriverService.approve(self.driver)
        with self.assertRaises(ValueError):
            DriverService.reject(self.driver)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.status, DriverStatus.APPROVED)

    def test_rejected_driver_can_be_approved(self):
        DriverService.reject(self.driver)
        DriverService.approve(self.driver)
        self.driver.refresh_from_db()
        self.assertEqual(self.driver.status, DriverStatus.APPROVED)

    def test_status_change_is_logged(self):
        with self.assertLogs('logitrack.admin', level='INFO') as logs:
            DriverService.approve(self.driver, actor=self.admin)
        self.assertIn('pending -> approved', logs.output[0])


class TestDriverBroadcast(TestCase):

    @patch('fleet.signals.broadcast_record_change')
    def test_insert_then_update(self, mock_broadcast):
        with self.captureOnCommitCallbacks(execute=True):
            driver = make_driver()
        stream, event, record = mock_broadcast.call_args[0]
        self.assertEqual((stream, event), ('drivers', 'INSERT'))
        self.assertEqual(record['id'], str(driver.id))

        with self.captureOnCommitCallbacks(execute=True):
            DriverService.approve(driver)
        stream, event, record = mock_broadcast.call_args[0]
        self.assertEqual(event, 'UPDATE')
        self.assertEqual(record['status'], 'approved')


class TestDriversAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.admin = User.objects.create_user('+2250707000001', 'x')
        self.api.force_authenticate(self.admin)
        self.pending = make_driver(full_name='Awa Traoré', phone='+2250707000201')
        self.approved = make_driver(
            full_name='Yao Koffi', phone='+2250707000202',
            status=DriverStatus.APPROVED, driver_type=DriverType.INDEPENDENT,
        )

    def test_list_filtered_by_status(self):
        response = self.api.get('/api/drivers/', {'status': 'pending'})
        self.assertEqual(response.status_code, 200)
        names = [d['full_name'] for d in response.data['results']]
        self.assertEqual(names, ['Awa Traoré'])

    def test_search(self):
        response = self.api.get('/api/drivers/', {'search': 'Koffi'})
        self.assertEqual(response.data['count'], 1)

    def test_approve_action(self):
        response = self.api.post(f'/api/drivers/{self.pending.id}/approve/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'approved')

    def test_reject_approved_returns_error(self):
        response = self.api.post(f'/api/drivers/{self.approved.id}/reject/', {'reason': 'x'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)

    def test_anonymous_denied(self):
        self.api.force_authenticate(None)
        response = self.api.get('/api/drivers/')
        self.assertEqual(response.status_code, 401)
