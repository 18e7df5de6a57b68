"""
LogiTrack Reports Tests
=======================

Tests for:
1. CSV building and exports
2. Dashboard statistics
3. Report endpoints
4. Live dashboard websocket
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

from channels.testing import WebsocketCommunicator
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.models import User
from fleet.models import Driver, DriverStatus
from logistics.models import Delivery, DeliveryStatus
from partners.models import BusinessClient, ClientStatus, CompanyStatus, DeliveryCompany
from reports.consumers import DashboardConsumer
from reports.csv_export import build_csv, export_drivers_csv, export_filename
from reports.services import DashboardStatsService


def make_delivery(status=DeliveryStatus.PENDING, **kwargs):
    defaults = {
        'pickup_address': 'Plateau, Abidjan',
        'delivery_address': 'Cocody Angré',
        'status': status,
    }
    defaults.update(kwargs)
    return Delivery.objects.create(**defaults)


def make_driver(phone='+2250707000201', **kwargs):
    defaults = {'full_name': 'Awa Traoré', 'phone': phone, 'status': DriverStatus.APPROVED}
    defaults.update(kwargs)
    return Driver.objects.create(**defaults)


def make_company(name='Rapide Express', **kwargs):
    return DeliveryCompany.objects.create(
        company_name=name, email='contact@rapide.ci', phone='+2250707000100',
        owner_name='Kouassi Yao', **kwargs
    )


# ============================================
# CSV
# ============================================

class TestBuildCSV(SimpleTestCase):

    def test_starts_with_bom(self):
        self.assertTrue(build_csv(['A'], []).startswith('\ufeff'))

    def test_empty_list_gives_header_only(self):
        self.assertEqual(build_csv(['Nom', 'Statut'], []), '\ufeffNom,Statut')

    def test_n_rows_give_n_plus_one_lines(self):
        content = build_csv(['A', 'B'], [[1, 2], [3, 4], [5, 6]])
        lines = content.lstrip('\ufeff').split('\n')
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[2], '3,4')
        self.assertFalse(content.endswith('\n'))

    def test_commas_and_newlines_stripped(self):
        content = build_csv(['Adresse'], [['Rue 12, Cocody\nAngré']])
        self.assertEqual(content.split('\n')[1], 'Rue 12 CocodyAngré')

    def test_quotes_kept_verbatim(self):
        self.assertEqual(build_csv(['Nom'], [['Colis 5" carton']]), '\ufeffNom\nColis 5" carton')

    def test_none_is_empty(self):
        self.assertEqual(build_csv(['A', 'B'], [[None, 'x']]).split('\n')[1], ',x')

    def test_filename(self):
        self.assertEqual(export_filename('livreurs', date(2024, 3, 15)), 'livreurs-2024-03-15.csv')


class TestDriverExport(TestCase):

    def test_driver_rows(self):
        company = make_company()
        make_driver(
            full_name='Awa Traoré', phone='+2250707000201',
            rating_sum=9, rating_count=2, total_deliveries=12,
            total_earnings=Decimal('12500.00'),
        )
        make_driver(phone='+2250707000202', full_name='Yao Kofi', company=company)

        filename, content = export_drivers_csv(Driver.objects.order_by('full_name'))

        self.assertTrue(filename.startswith('livreurs-'))
        lines = content.lstrip('\ufeff').split('\n')
        self.assertEqual(lines[0], 'Nom,Téléphone,Type,Véhicule,Livraisons,Gains,Note,Statut')
        self.assertEqual(
            lines[1], 'Awa Traoré,+2250707000201,Indépendant,motorcycle,12,12500.00,4.5,approved'
        )
        self.assertIn(',Entreprise,', lines[2])
        self.assertIn(',-,approved', lines[2])


# ============================================
# DASHBOARD
# ============================================

class TestDashboardStats(TestCase):

    def setUp(self):
        BusinessClient.objects.create(company_name='Boutique', contact_email='b@example.com')
        BusinessClient.objects.create(
            company_name='Pharma', contact_email='p@example.com', status=ClientStatus.SUSPENDED
        )
        company = make_company(status=CompanyStatus.ACTIVE)
        make_company(name='Lent Express')

        make_driver(is_online=True)
        make_driver(phone='+2250707000202', company=company)
        make_driver(phone='+2250707000203', status=DriverStatus.PENDING)

        make_delivery(DeliveryStatus.DELIVERED, total_price=Decimal('2000'), platform_fee=Decimal('300'))
        make_delivery(DeliveryStatus.COMPLETED, total_price=Decimal('1500'), platform_fee=Decimal('200'))
        make_delivery(DeliveryStatus.IN_TRANSIT, total_price=Decimal('9999'))
        make_delivery(
            DeliveryStatus.COMPLETED, total_price=Decimal('1000'), platform_fee=Decimal('100'),
            created_at=timezone.now() - timedelta(days=2),
        )

    def test_stats(self):
        stats = DashboardStatsService.get_dashboard_stats()

        self.assertEqual(stats['totalClients'], 2)
        self.assertEqual(stats['activeClients'], 1)
        self.assertEqual(stats['totalCompanies'], 2)
        self.assertEqual(stats['activeCompanies'], 1)
        self.assertEqual(stats['pendingCompanies'], 1)
        self.assertEqual(stats['totalDeliveries'], 4)
        self.assertEqual(stats['todayDeliveries'], 3)
        self.assertEqual(stats['totalDrivers'], 2)
        self.assertEqual(stats['onlineDrivers'], 1)
        self.assertEqual(stats['pendingDrivers'], 1)
        self.assertEqual(stats['independentDrivers'], 1)
        self.assertEqual(stats['companyDrivers'], 1)
        self.assertEqual(stats['totalRevenue'], Decimal('4500'))
        self.assertEqual(stats['todayRevenue'], Decimal('3500'))
        self.assertEqual(stats['platformCommission'], Decimal('600'))

    def test_counters(self):
        make_delivery(DeliveryStatus.FAILED)
        make_delivery(DeliveryStatus.PENDING)

        counters = DashboardStatsService.get_delivery_counters()

        self.assertEqual(counters, {
            'total': 6, 'pending': 1, 'in_progress': 1, 'completed': 3, 'cancelled': 1,
        })

    def test_active_deliveries(self):
        make_delivery(DeliveryStatus.ARRIVING)
        active = list(DashboardStatsService.get_active_deliveries(10))
        self.assertEqual({d.status for d in active}, {DeliveryStatus.IN_TRANSIT, DeliveryStatus.ARRIVING})

        summary = DashboardStatsService.get_active_summary()
        self.assertEqual(summary, {'count': 2, 'inTransit': 1, 'arriving': 1})

    def test_empty_revenue_is_zero(self):
        Delivery.objects.all().delete()
        self.assertEqual(DashboardStatsService.get_dashboard_stats()['totalRevenue'], Decimal('0.00'))


# ============================================
# ENDPOINTS
# ============================================

class TestReportsAPI(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.api.force_authenticate(User.objects.create_user('+2250707000001', 'x'))

    def test_dashboard(self):
        make_delivery(DeliveryStatus.DELIVERED, total_price=Decimal('2000'))
        response = self.api.get('/api/reports/dashboard/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['stats']['totalDeliveries'], 1)
        self.assertEqual(response.data['counters']['completed'], 1)

    def test_active_deliveries(self):
        make_delivery(DeliveryStatus.IN_TRANSIT)
        response = self.api.get('/api/reports/active-deliveries/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(len(response.data['results']), 1)

    def test_drivers_csv_filtered(self):
        make_driver(full_name='Awa')
        make_driver(phone='+2250707000202', full_name='Yao', status=DriverStatus.SUSPENDED)

        response = self.api.get('/api/reports/drivers.csv', {'status': 'suspended'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/csv; charset=utf-8')
        self.assertIn('attachment; filename="livreurs-', response['Content-Disposition'])
        lines = response.content.decode('utf-8').lstrip('\ufeff').split('\n')
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith('Yao,'))

    def test_deliveries_csv_search(self):
        wanted = make_delivery(delivery_address='Yopougon Selmer')
        make_delivery()

        response = self.api.get('/api/reports/deliveries.csv', {'search': 'Yopougon'})

        lines = response.content.decode('utf-8').lstrip('\ufeff').split('\n')
        self.assertEqual(lines[0].split(',')[0], 'Code')
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith(wanted.tracking_code))

    def test_empty_export_header_only(self):
        response = self.api.get('/api/reports/deliveries.csv', {'status': 'returned'})
        self.assertEqual(response.content.decode('utf-8').count('\n'), 0)

    def test_anonymous_refused(self):
        response = APIClient().get('/api/reports/dashboard/')
        self.assertIn(response.status_code, (401, 403))


# ============================================
# WEBSOCKET
# ============================================

class TestDashboardConsumer(TransactionTestCase):

    def setUp(self):
        self.admin = User.objects.create_user('+2250707000001', 'x')

    def _communicator(self, user):
        communicator = WebsocketCommunicator(DashboardConsumer.as_asgi(), '/ws/dashboard/')
        communicator.scope['user'] = user
        return communicator

    async def _connect(self):
        communicator = self._communicator(self.admin)
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        self.assertEqual((await communicator.receive_json_from())['type'], 'stats')
        self.assertEqual((await communicator.receive_json_from())['type'], 'active_deliveries')
        return communicator

    async def test_initial_payloads(self):
        communicator = await self._connect()
        await communicator.disconnect()

    async def test_insert_refreshes_both(self):
        communicator = await self._connect()
        await communicator.send_input({
            'type': 'record.change', 'stream': 'deliveries', 'event': 'INSERT', 'record': {'id': 'x'},
        })
        types = {
            (await communicator.receive_json_from())['type'],
            (await communicator.receive_json_from())['type'],
        }
        self.assertEqual(types, {'stats', 'active_deliveries'})
        self.assertTrue(await communicator.receive_nothing())
        await communicator.disconnect()

    async def test_update_outside_live_board_refreshes_stats_only(self):
        communicator = await self._connect()
        await communicator.send_input({
            'type': 'record.change', 'stream': 'deliveries', 'event': 'UPDATE',
            'record': {'id': 'x', 'status': 'assigned'},
        })
        self.assertEqual((await communicator.receive_json_from())['type'], 'stats')
        self.assertTrue(await communicator.receive_nothing())
        await communicator.disconnect()

    async def test_driver_change_refreshes_stats(self):
        communicator = await self._connect()
        await communicator.send_input({
            'type': 'record.change', 'stream': 'drivers', 'event': 'UPDATE',
            'record': {'id': 'x', 'is_online': True},
        })
        self.assertEqual((await communicator.receive_json_from())['type'], 'stats')
        self.assertTrue(await communicator.receive_nothing())
        await communicator.disconnect()

    async def test_failed_reload_sends_error_and_keeps_session(self):
        communicator = await self._connect()

        with patch('reports.views.dashboard_payload', side_effect=DatabaseError('db down')):
            with self.assertLogs('logistics.consumers', level='ERROR'):
                await communicator.send_input({
                    'type': 'record.change', 'stream': 'drivers', 'event': 'UPDATE',
                    'record': {'id': 'x', 'is_online': True},
                })
                message = await communicator.receive_json_from()

        self.assertEqual(message['type'], 'stats')
        self.assertIn('error', message)
        self.assertNotIn('stats', message)

        await communicator.send_json_to({'type': 'ping'})
        self.assertEqual(await communicator.receive_json_from(), {'type': 'pong'})

        # Next change reloads normally
        await communicator.send_input({
            'type': 'record.change', 'stream': 'drivers', 'event': 'UPDATE',
            'record': {'id': 'x', 'is_online': False},
        })
        self.assertIn('stats', await communicator.receive_json_from())
        await communicator.disconnect()

    async def test_anonymous_refused(self):
        from django.contrib.auth.models import AnonymousUser
        communicator = self._communicator(AnonymousUser())
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4003)
