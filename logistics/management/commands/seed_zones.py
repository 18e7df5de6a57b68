"""
Django management command to seed the default pricing zones.

Usage:
    python manage.py seed_zones
    python manage.py seed_zones --city Abidjan
"""
from decimal import Decimal
from django.core.management.base import BaseCommand
from logistics.models import Zone


# (name, city, base_price, price_per_km, min_price, max_price)
DEFAULT_ZONES = [
    ('Plateau', 'Abidjan', 500, 100, 500, 3000),
    ('Cocody', 'Abidjan', 500, 100, 500, 3500),
    ('Marcory', 'Abidjan', 500, 100, 500, 3000),
    ('Treichville', 'Abidjan', 500, 100, 500, 3000),
    ('Yopougon', 'Abidjan', 600, 120, 700, 4000),
    ('Abobo', 'Abidjan', 600, 120, 700, 4000),
    ('Port-Bouët', 'Abidjan', 700, 120, 800, 4500),
    ('Bingerville', 'Abidjan', 800, 150, 1000, None),
    ('Centre', 'Bouaké', 500, 100, 500, 2500),
    ('Centre', 'Yamoussoukro', 500, 100, 500, 2500),
]


class Command(BaseCommand):
    help = 'Seed the default pricing zones'

    def add_arguments(self, parser):
        parser.add_argument('--city', help='Only seed zones of this city')

    def handle(self, *args, **options):
        city_filter = options.get('city')
        created_count = 0

        for name, city, base, per_km, min_price, max_price in DEFAULT_ZONES:
            if city_filter and city.lower() != city_filter.lower():
                continue

            obj, created = Zone.objects.get_or_create(
                name=name,
                city=city,
                defaults={
                    'base_price': Decimal(base),
                    'price_per_km': Decimal(per_km),
                    'min_price': Decimal(min_price),
                    'max_price': Decimal(max_price) if max_price else None,
                    'is_active': True,
                }
            )
            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'Créée: {name} ({city})'))
            else:
                self.stdout.write(f'Existe: {name} ({city})')

        self.stdout.write('')
        self.stdout.write(self.style.SUCCESS(f'Total créées: {created_count} zones'))
        self.stdout.write(self.style.SUCCESS(f'Total en base: {Zone.objects.count()} zones'))
