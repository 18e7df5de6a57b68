"""
Pricing zones: model, validation and seeding
"""

from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase

from logistics.models import Zone
from logistics.serializers import ZoneSerializer


class TestZoneModel(TestCase):

    def setUp(self):
        self.zone = Zone.objects.create(
            name='Cocody', city='Abidjan',
            base_price=Decimal('500'), price_per_km=Decimal('100'),
            min_price=Decimal('800'), max_price=Decimal('3000'),
        )

    def test_estimate_price(self):
        self.assertEqual(self.zone.estimate_price(5), Decimal('1000'))

    def test_estimate_clamped(self):
        self.assertEqual(self.zone.estimate_price(1), Decimal('800'))
        self.assertEqual(self.zone.estimate_price(50), Decimal('3000'))

    def test_no_maximum(self):
        self.zone.max_price = None
        self.assertEqual(self.zone.estimate_price(50), Decimal('5500'))

    def test_clean_rejects_inverted_bounds(self):
        self.zone.min_price = Decimal('5000')
        with self.assertRaises(ValidationError):
            self.zone.clean()

    def test_unique_name_per_city(self):
        with self.assertRaises(IntegrityError):
            Zone.objects.create(name='Cocody', city='Abidjan')

    def test_same_name_other_city(self):
        Zone.objects.create(name='Cocody', city='Bouaké')
        self.assertEqual(Zone.objects.filter(name='Cocody').count(), 2)


class TestZoneSerializer(TestCase):

    def test_required_fields(self):
        serializer = ZoneSerializer(data={'name': '', 'city': ''})
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['name'][0], "Le nom de la zone est obligatoire.")
        self.assertEqual(serializer.errors['city'][0], "La ville est obligatoire.")

    def test_negative_price_rejected(self):
        serializer = ZoneSerializer(data={'name': 'Plateau', 'city': 'Abidjan', 'base_price': '-1'})
        self.assertFalse(serializer.is_valid())
        self.assertIn('base_price', serializer.errors)

    def test_min_above_max_rejected(self):
        serializer = ZoneSerializer(data={
            'name': 'Plateau', 'city': 'Abidjan', 'min_price': '2000', 'max_price': '1000',
        })
        self.assertFalse(serializer.is_valid())
        self.assertIn('max_price', serializer.errors)

    def test_zero_max_means_no_maximum(self):
        serializer = ZoneSerializer(data={'name': 'Plateau', 'city': 'Abidjan', 'max_price': '0'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertIsNone(serializer.save().max_price)

    def test_defaults(self):
        serializer = ZoneSerializer(data={'name': 'Plateau', 'city': 'Abidjan'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        zone = serializer.save()
        self.assertEqual(zone.base_price, Decimal('500'))
        self.assertEqual(zone.price_per_km, Decimal('100'))


class TestSeedZones(TestCase):

    def test_seed_is_idempotent(self):
        call_command('seed_zones', stdout=StringIO())
        total = Zone.objects.count()
        self.assertGreater(total, 0)

        call_command('seed_zones', stdout=StringIO())
        self.assertEqual(Zone.objects.count(), total)

    def test_seed_one_city(self):
        call_command('seed_zones', city='bouaké', stdout=StringIO())
        self.assertEqual(list(Zone.objects.values_list('city', flat=True).distinct()), ['Bouaké'])
