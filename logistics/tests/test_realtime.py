"""
Change subscriptions, refresh listeners and the dispatcher
"""

import asyncio
from unittest.mock import AsyncMock

from django.test import SimpleTestCase

from logistics.events import changes_group
from logistics.realtime import ChangeDispatcher, ChangeSubscription, RefreshListener


def change(stream='deliveries', event='UPDATE', **record):
    return {'type': 'record.change', 'stream': stream, 'event': event, 'record': {'id': '1', **record}}


class TestChangeSubscription(SimpleTestCase):

    def test_stream_and_event(self):
        sub = ChangeSubscription('deliveries', events=('INSERT',))
        self.assertTrue(sub.matches(change(event='INSERT')))
        self.assertFalse(sub.matches(change(event='UPDATE')))
        self.assertFalse(sub.matches(change(stream='drivers', event='INSERT')))

    def test_wildcard(self):
        sub = ChangeSubscription('drivers', events=('*',))
        self.assertTrue(sub.matches(change(stream='drivers', event='INSERT')))
        self.assertTrue(sub.matches(change(stream='drivers', event='UPDATE')))

    def test_filters(self):
        sub = ChangeSubscription('deliveries', filters={'status': ['in_transit', 'failed']})
        self.assertTrue(sub.matches(change(status='failed')))
        self.assertFalse(sub.matches(change(status='assigned')))
        self.assertFalse(sub.matches(change()))

        exact = ChangeSubscription('chat_messages', filters={'conversation_id': 'abc'})
        self.assertTrue(exact.matches(change('chat_messages', conversation_id='abc')))
        self.assertFalse(exact.matches(change('chat_messages', conversation_id='xyz')))


class TestRefreshListener(SimpleTestCase):

    async def test_one_refresh_per_matching_event(self):
        on_refresh = AsyncMock()
        listener = RefreshListener(
            [
                ChangeSubscription('deliveries', events=('INSERT',)),
                ChangeSubscription('deliveries', events=('*',)),
            ],
            on_refresh,
        )

        self.assertTrue(await listener.notify(change(event='INSERT')))
        self.assertEqual(on_refresh.await_count, 1)

        self.assertFalse(await listener.notify(change(stream='drivers')))
        self.assertEqual(on_refresh.await_count, 1)

    async def test_closed_listener_ignores_events(self):
        on_refresh = AsyncMock()
        listener = RefreshListener([ChangeSubscription('deliveries')], on_refresh)
        listener.close()

        self.assertFalse(await listener.notify(change()))
        on_refresh.assert_not_awaited()

    async def test_debounce_coalesces(self):
        on_refresh = AsyncMock()
        listener = RefreshListener([ChangeSubscription('deliveries')], on_refresh, debounce=0.05)

        for _ in range(5):
            await listener.notify(change())
        on_refresh.assert_not_awaited()

        await asyncio.sleep(0.15)
        self.assertEqual(on_refresh.await_count, 1)

        await listener.notify(change())
        await asyncio.sleep(0.15)
        self.assertEqual(on_refresh.await_count, 2)

    async def test_close_cancels_pending_refresh(self):
        on_refresh = AsyncMock()
        listener = RefreshListener([ChangeSubscription('deliveries')], on_refresh, debounce=0.05)

        await listener.notify(change())
        listener.close()
        await asyncio.sleep(0.15)

        on_refresh.assert_not_awaited()

    async def test_failed_deferred_refresh_is_logged_and_recovers(self):
        on_refresh = AsyncMock(side_effect=[RuntimeError('boom'), None])
        listener = RefreshListener([ChangeSubscription('deliveries')], on_refresh, debounce=0.05)

        with self.assertLogs('logistics.realtime', level='ERROR'):
            await listener.notify(change())
            await asyncio.sleep(0.15)

        await listener.notify(change())
        await asyncio.sleep(0.15)
        self.assertEqual(on_refresh.await_count, 2)

    def test_streams(self):
        listener = RefreshListener(
            [ChangeSubscription('drivers'), ChangeSubscription('deliveries'), ChangeSubscription('drivers')],
            AsyncMock(),
        )
        self.assertEqual(listener.streams, ['deliveries', 'drivers'])


class TestChangeDispatcher(SimpleTestCase):

    async def test_fan_out(self):
        stats, live = AsyncMock(), AsyncMock()
        dispatcher = ChangeDispatcher(
            RefreshListener([ChangeSubscription('deliveries', events=('*',))], stats),
            RefreshListener([ChangeSubscription('deliveries', events=('INSERT',))], live),
        )

        self.assertEqual(await dispatcher.dispatch(change(event='INSERT')), 2)
        self.assertEqual(await dispatcher.dispatch(change(event='UPDATE')), 1)
        self.assertEqual(stats.await_count, 2)
        self.assertEqual(live.await_count, 1)

    def test_groups_joined_once(self):
        dispatcher = ChangeDispatcher(
            RefreshListener([ChangeSubscription('deliveries'), ChangeSubscription('drivers')], AsyncMock()),
            RefreshListener([ChangeSubscription('deliveries')], AsyncMock()),
        )
        self.assertEqual(dispatcher.groups, [changes_group('deliveries'), changes_group('drivers')])

    async def test_close_stops_all(self):
        on_refresh = AsyncMock()
        dispatcher = ChangeDispatcher(RefreshListener([ChangeSubscription('deliveries')], on_refresh))
        dispatcher.close()

        self.assertEqual(await dispatcher.dispatch(change()), 0)
        on_refresh.assert_not_awaited()
