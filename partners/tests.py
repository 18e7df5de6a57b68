"""
LogiTrack Partners Tests
========================

Tests for:
1. Business client suspend / activate
2. Client API keys (creation, revocation, usage stats)
3. Delivery company verification
4. API endpoints
"""

from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.models import User, AdminRole
from partners.models import (
    APIRequest, BusinessClient, ClientAPIKey, ClientStatus,
    CompanyStatus, DeliveryCompany, KeyEnvironment,
)
from partners.services import ClientService, CompanyService


def make_client(name='Boutique Plateau', **kwargs):
    return BusinessClient.objects.create(
        company_name=name,
        contact_email=f"{name.split()[0].lower()}@example.com",
        **kwargs
    )


def make_company(name='Rapide Express', **kwargs):
    defaults = {
        'email': 'contact@rapide.ci',
        'phone': '+2250707000100',
        'owner_name': 'Kouassi Yao',
        'city': 'Abidjan',
    }
    defaults.update(kwargs)
    return DeliveryCompany.objects.create(company_name=name, **defaults)


# ============================================
# CLIENTS
# ============================================

class TestClientService(TestCase):

    def setUp(self):
        self.client_obj = make_client()

    def test_default_status_active(self):
        self.assertEqual(self.client_obj.status, ClientStatus.ACTIVE)

    def test_suspend_then_activate(self):
        ClientService.suspend(self.client_obj)
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.status, ClientStatus.SUSPENDED)

        ClientService.activate(self.client_obj)
        self.client_obj.refresh_from_db()
        self.assertEqual(self.client_obj.status, ClientStatus.ACTIVE)


# ============================================
# API KEYS
# ============================================

class TestClientAPIKeys(TestCase):

    def setUp(self):
        self.client_obj = make_client()

    def test_create_key_returns_full_key_once(self):
        api_key, key = ClientService.create_api_key(self.client_obj, name='Boutique - Clé #1')

        self.assertTrue(key.startswith(api_key.prefix))
        self.assertNotEqual(api_key.hashed_key, key)
        self.assertEqual(ClientAPIKey.objects.get_from_key(key).client, self.client_obj)

    def test_default_permissions_and_environment(self):
        api_key, _ = ClientService.create_api_key(self.client_obj, name='k')
        self.assertEqual(
            api_key.permissions,
            ['deliveries:read', 'deliveries:write', 'quotes:read']
        )
        self.assertEqual(api_key.environment, KeyEnvironment.TEST)

    def test_custom_permissions(self):
        api_key, _ = ClientService.create_api_key(
            self.client_obj, name='k', environment=KeyEnvironment.LIVE,
            permissions=['deliveries:read'],
        )
        self.assertEqual(api_key.permissions, ['deliveries:read'])
        self.assertEqual(api_key.environment, KeyEnvironment.LIVE)

    def test_revoke_marks_key_revoked(self):
        api_key, key = ClientService.create_api_key(self.client_obj, name='k')
        ClientService.revoke_api_key(api_key)

        api_key.refresh_from_db()
        self.assertTrue(api_key.revoked)
        self.assertFalse(api_key.is_active)
        self.assertFalse(ClientAPIKey.objects.is_valid(key))

    def test_revoke_twice_rejected(self):
        api_key, _ = ClientService.create_api_key(self.client_obj, name='k')
        ClientService.revoke_api_key(api_key)
        with self.assertRaises(ValueError):
            ClientService.revoke_api_key(api_key)

    def test_usage_stats_sum_keys_and_sort(self):
        other = make_client('Pharmacie Cocody', plan='business')
        k1, _ = ClientService.create_api_key(self.client_obj, name='k1')
        k2, _ = ClientService.create_api_key(self.client_obj, name='k2')
        k3, _ = ClientService.create_api_key(other, name='k3')
        ClientAPIKey.objects.filter(pk=k1.pk).update(total_requests=10)
        ClientAPIKey.objects.filter(pk=k2.pk).update(total_requests=5)
        ClientAPIKey.objects.filter(pk=k3.pk).update(total_requests=40)

        stats = ClientService.get_api_usage_stats()

        self.assertEqual([s['company_name'] for s in stats], ['Pharmacie Cocody', 'Boutique Plateau'])
        self.assertEqual(stats[0]['total_requests'], 40)
        self.assertEqual(stats[0]['plan'], 'business')
        self.assertEqual(stats[1]['total_requests'], 15)

    def test_client_without_keys_counts_zero(self):
        stats = ClientService.get_api_usage_stats()
        self.assertEqual(stats[0]['total_requests'], 0)

    def test_usage_stats_count_today_requests(self):
        other = make_client('Pharmacie Cocody')
        api_key, _ = ClientService.create_api_key(self.client_obj, name='k')
        APIRequest.objects.create(client=self.client_obj, api_key=api_key, method='POST', path='/v1/deliveries')
        APIRequest.objects.create(client=self.client_obj, api_key=api_key, method='GET', path='/v1/quotes')
        yesterday = APIRequest.objects.create(client=self.client_obj, method='GET', path='/v1/quotes')
        APIRequest.objects.filter(pk=yesterday.pk).update(created_at=timezone.now() - timedelta(days=1))

        stats = {s['company_name']: s for s in ClientService.get_api_usage_stats()}

        self.assertEqual(stats['Boutique Plateau']['today_requests'], 2)
        self.assertEqual(stats[other.company_name]['today_requests'], 0)


# ============================================
# COMPANIES
# ============================================

class TestCompanyService(TestCase):

    def setUp(self):
        self.company = make_company()

    def test_defaults(self):
        self.assertEqual(self.company.status, CompanyStatus.PENDING)
        self.assertEqual(self.company.commission_rate, Decimal('15'))
        self.assertIsNone(self.company.verified_at)

    def test_activate_stamps_verified_at_once(self):
        CompanyService.activate(self.company)
        self.company.refresh_from_db()
        first = self.company.verified_at
        self.assertEqual(self.company.status, CompanyStatus.ACTIVE)
        self.assertIsNotNone(first)

        CompanyService.suspend(self.company)
        CompanyService.activate(self.company)
        self.company.refresh_from_db()
        self.assertEqual(self.company.verified_at, first)

    def test_suspend(self):
        CompanyService.suspend(self.company)
        self.company.refresh_from_db()
        self.assertEqual(self.company.status, CompanyStatus.SUSPENDED)


# ============================================
# API
# ============================================

class TestPartnersAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.admin = User.objects.create_user('+2250707000001', 'x')
        self.api.force_authenticate(self.admin)
        self.client_obj = make_client()
        self.company = make_company()

    def test_create_api_key_exposes_key_once(self):
        response = self.api.post('/api/api-keys/', {
            'client': str(self.client_obj.id),
            'name': 'Boutique - Clé #1',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertIn('key', response.data)

        detail = self.api.get(f"/api/api-keys/{response.data['id']}/")
        self.assertEqual(detail.status_code, 200)
        self.assertNotIn('key', detail.data)

    def test_revoke_endpoint(self):
        api_key, _ = ClientService.create_api_key(self.client_obj, name='k')
        response = self.api.post(f'/api/api-keys/{api_key.pk}/revoke/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['revoked'])

        again = self.api.post(f'/api/api-keys/{api_key.pk}/revoke/')
        self.assertEqual(again.status_code, 400)
        self.assertIn('error', again.data)

    def test_suspend_client_endpoint(self):
        response = self.api.post(f'/api/clients/{self.client_obj.id}/suspend/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'suspended')

    def test_activate_company_endpoint(self):
        response = self.api.post(f'/api/companies/{self.company.id}/activate/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'active')
        self.assertIsNotNone(response.data['verified_at'])

    def test_api_usage_endpoint(self):
        response = self.api.get('/api/clients/api-usage/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]['company_name'], 'Boutique Plateau')

    def test_viewer_cannot_suspend(self):
        viewer = User.objects.create_user('+2250707000002', 'x', role=AdminRole.VIEWER)
        self.api.force_authenticate(viewer)
        response = self.api.post(f'/api/clients/{self.client_obj.id}/suspend/')
        self.assertEqual(response.status_code, 403)
