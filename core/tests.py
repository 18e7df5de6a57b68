"""
LogiTrack Core Tests
====================

Tests for:
1. Phone normalization (login identifier)
2. Admin User model and roles
3. Backoffice permission
4. JWT sign-in with phone number
5. Health endpoints
"""

import pytest
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework.test import APIClient, APIRequestFactory

from core.models import User, AdminRole, normalize_phone
from core.permissions import IsBackofficeUser, is_backoffice_user


@override_settings(PHONE_COUNTRY_CODE='225')
class TestNormalizePhone(SimpleTestCase):
    """Phone input variants should map to one identifier."""

    def test_local_number_gets_country_code(self):
        self.assertEqual(normalize_phone('07 07 00 00 01'), '+2250707000001')

    def test_plus_prefixed_kept(self):
        self.assertEqual(normalize_phone('+2250707000001'), '+2250707000001')

    def test_double_zero_prefix(self):
        self.assertEqual(normalize_phone('002250707000001'), '+2250707000001')

    def test_national_with_code(self):
        self.assertEqual(normalize_phone('2250707000001'), '+2250707000001')

    def test_separators_stripped(self):
        self.assertEqual(normalize_phone('07-07.00(00)01'), '+2250707000001')

    def test_empty_rejected(self):
        with self.assertRaises(ValueError):
            normalize_phone('')

    def test_garbage_rejected(self):
        with self.assertRaises(ValueError):
            normalize_phone('abc')


class TestUserModel(TestCase):
    """Tests for the admin User model."""

    def setUp(self):
        self.admin = User.objects.create_user(
            phone_number='+2250707000001',
            password='testpass123',
            full_name='Admin Test',
        )
        self.viewer = User.objects.create_user(
            phone_number='+2250707000002',
            password='testpass123',
            role=AdminRole.VIEWER,
        )

    def test_user_creation_with_phone(self):
        """User should be created with phone number as identifier."""
        self.assertEqual(self.admin.phone_number, '+2250707000001')
        self.assertTrue(self.admin.check_password('testpass123'))

    def test_user_uuid_primary_key(self):
        import uuid
        self.assertIsInstance(self.admin.id, uuid.UUID)

    def test_phone_normalized_on_create(self):
        user = User.objects.create_user(phone_number='07 07 00 00 09', password='x')
        self.assertEqual(user.phone_number, '+2250707000009')

    def test_default_role_is_admin(self):
        self.assertEqual(self.admin.role, AdminRole.ADMIN)

    def test_viewer_cannot_write(self):
        self.assertTrue(self.viewer.is_backoffice)
        self.assertFalse(self.viewer.can_write)
        self.assertTrue(self.admin.can_write)

    def test_inactive_user_not_backoffice(self):
        self.admin.is_active = False
        self.assertFalse(self.admin.is_backoffice)

    def test_display_name_falls_back_to_phone(self):
        self.assertEqual(self.admin.display_name, 'Admin Test')
        self.assertEqual(self.viewer.display_name, '+2250707000002')

    def test_create_superuser(self):
        su = User.objects.create_superuser('+2250707000003', 'pass')
        self.assertEqual(su.role, AdminRole.SUPER_ADMIN)
        self.assertTrue(su.is_staff)


class TestBackofficePermission(TestCase):
    """Viewers read, other roles read and write."""

    def setUp(self):
        self.factory = APIRequestFactory()
        self.permission = IsBackofficeUser()
        self.viewer = User.objects.create_user('+2250707000011', 'x', role=AdminRole.VIEWER)
        self.support = User.objects.create_user('+2250707000012', 'x', role=AdminRole.SUPPORT)

    def _request(self, method, user):
        request = getattr(self.factory, method)('/api/deliveries/')
        request.user = user
        return request

    def test_viewer_can_read(self):
        self.assertTrue(self.permission.has_permission(self._request('get', self.viewer), None))

    def test_viewer_cannot_post(self):
        self.assertFalse(self.permission.has_permission(self._request('post', self.viewer), None))

    def test_support_can_post(self):
        self.assertTrue(self.permission.has_permission(self._request('post', self.support), None))

    def test_anonymous_refused(self):
        from django.contrib.auth.models import AnonymousUser
        self.assertFalse(self.permission.has_permission(self._request('get', AnonymousUser()), None))
        self.assertFalse(is_backoffice_user(AnonymousUser()))


class TestPhoneSignIn(TestCase):
    """JWT token endpoint accepts any phone format."""

    def setUp(self):
        self.client = APIClient()
        User.objects.create_user('+2250707000021', 'secret-pass-42', full_name='Awa')

    def test_sign_in_with_local_format(self):
        response = self.client.post('/api/auth/token/', {
            'phone_number': '07 07 00 00 21',
            'password': 'secret-pass-42',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['full_name'], 'Awa')

    def test_wrong_password_rejected(self):
        response = self.client.post('/api/auth/token/', {
            'phone_number': '+2250707000021',
            'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, 401)

    def test_me_requires_auth(self):
        response = self.client.get('/api/users/me/')
        self.assertEqual(response.status_code, 401)


class TestHealthEndpoints(TestCase):

    def test_liveness(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

    def test_readiness_reports_checks(self):
        response = self.client.get('/health/ready/')
        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(data['checks']['database']['status'], 'healthy')
        self.assertIn('channel_layer', data['checks'])


@pytest.mark.parametrize('raw', ['+2250707000001', '0707000001'])
def test_normalize_phone_idempotent(raw, settings):
    settings.PHONE_COUNTRY_CODE = '225'
    once = normalize_phone(raw)
    assert normalize_phone(once) == once
