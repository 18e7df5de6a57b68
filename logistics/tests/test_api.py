"""
Deliveries and zones endpoints
"""

from django.test import TestCase
from rest_framework.test import APIClient

from core.models import User
from logistics.models import Delivery, DeliveryStatus, Zone

S = DeliveryStatus


class TestDeliveryAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.admin = User.objects.create_user('+2250707000001', 'x')
        self.api.force_authenticate(self.admin)
        self.delivery = Delivery.objects.create(
            pickup_address='Plateau', delivery_address='Yopougon', status=S.IN_TRANSIT
        )
        Delivery.objects.create(pickup_address='Plateau', delivery_address='Marcory')

    def test_list_paginated(self):
        response = self.api.get('/api/deliveries/', {'limit': 1})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(len(response.data['results']), 1)

    def test_status_filter(self):
        response = self.api.get('/api/deliveries/', {'status': 'in_transit'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['allowed_transitions'][0]['value'], 'delivered')

    def test_search(self):
        response = self.api.get('/api/deliveries/', {'search': 'Yopougon'})
        self.assertEqual(response.data['count'], 1)

    def test_transitions(self):
        response = self.api.get(f'/api/deliveries/{self.delivery.id}/transitions/')
        self.assertEqual(response.data['status'], 'in_transit')
        self.assertEqual(
            [o['value'] for o in response.data['options']], ['delivered', 'failed', 'cancelled']
        )

    def test_update_status_and_history(self):
        url = f'/api/deliveries/{self.delivery.id}/update-status/'
        response = self.api.post(url, {'status': 'delivered', 'note': 'Remis en main propre'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'delivered')

        history = self.api.get(f'/api/deliveries/{self.delivery.id}/history/').data
        self.assertEqual(len(history['history']), 1)
        self.assertEqual(history['history'][0]['note'], 'Remis en main propre')
        self.assertIsNone(history['error'])

    def test_refused_transition(self):
        url = f'/api/deliveries/{self.delivery.id}/update-status/'
        response = self.api.post(url, {'status': 'pending'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)

    def test_status_not_writable_directly(self):
        response = self.api.patch(f'/api/deliveries/{self.delivery.id}/', {'status': 'completed'})
        self.assertEqual(response.status_code, 405)

    def test_anonymous_refused(self):
        response = APIClient().get('/api/deliveries/')
        self.assertIn(response.status_code, (401, 403))


class TestZoneAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.api.force_authenticate(User.objects.create_user('+2250707000001', 'x'))

    def test_create_and_update(self):
        response = self.api.post('/api/zones/', {'name': 'Plateau', 'city': 'Abidjan'})
        self.assertEqual(response.status_code, 201)

        zone_id = response.data['id']
        response = self.api.patch(f'/api/zones/{zone_id}/', {'max_price': '2500'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Zone.objects.get(pk=zone_id).max_price, 2500)

    def test_list_by_city(self):
        Zone.objects.create(name='Plateau', city='Abidjan')
        Zone.objects.create(name='Centre', city='Bouaké')

        response = self.api.get('/api/zones/', {'city': 'Bouaké'})
        self.assertEqual([z['name'] for z in response.data], ['Centre'])

    def test_invalid_zone(self):
        response = self.api.post('/api/zones/', {'name': 'Plateau', 'city': 'Abidjan',
                                                 'min_price': '3000', 'max_price': '1000'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('max_price', response.data)

    def test_estimate(self):
        zone = Zone.objects.create(
            name='Cocody', city='Abidjan', base_price=500, price_per_km=100,
            min_price=800, max_price=3000,
        )
        response = self.api.get(f'/api/zones/{zone.id}/estimate/', {'distance_km': '5'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['price'], 1000)

        response = self.api.get(f'/api/zones/{zone.id}/estimate/', {'distance_km': '50'})
        self.assertEqual(response.data['price'], 3000)

    def test_estimate_bad_distance(self):
        zone = Zone.objects.create(name='Cocody', city='Abidjan')
        for value in ('', 'loin', '-2'):
            response = self.api.get(f'/api/zones/{zone.id}/estimate/', {'distance_km': value})
            self.assertEqual(response.status_code, 400)
            self.assertIn('error', response.data)
