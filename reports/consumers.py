"""
REPORTS App - WebSocket consumer for the live dashboard

Clients connect to: ws://host/ws/dashboard/

Events sent:
- stats: KPI cards and counters, on connect and after any delivery or
  driver change
- active_deliveries: live board, on connect, on new deliveries and when
  a delivery moves to a status that changes the board
"""

from typing import List
from channels.db import database_sync_to_async

from logistics.consumers import ChangeFeedConsumer, refresh_debounce
from logistics.events import INSERT, STREAM_DELIVERIES, STREAM_DRIVERS, UPDATE
from logistics.realtime import ANY_EVENT, ChangeSubscription, RefreshListener
from logistics.transitions import LIVE_BOARD_STATUSES


class DashboardConsumer(ChangeFeedConsumer):

    def get_listeners(self) -> List[RefreshListener]:
        stats = RefreshListener(
            [
                ChangeSubscription(STREAM_DELIVERIES, events=(ANY_EVENT,)),
                ChangeSubscription(STREAM_DRIVERS, events=(ANY_EVENT,)),
            ],
            self.send_stats,
            debounce=refresh_debounce(),
            name='dashboard_stats',
        )
        live = RefreshListener(
            [
                ChangeSubscription(STREAM_DELIVERIES, events=(INSERT,)),
                ChangeSubscription(
                    STREAM_DELIVERIES,
                    events=(UPDATE,),
                    filters={'status': [str(s) for s in LIVE_BOARD_STATUSES]},
                ),
            ],
            self.send_active_deliveries,
            debounce=refresh_debounce(),
            name='dashboard_live',
        )
        return [stats, live]

    async def on_connected(self):
        await self.send_stats()
        await self.send_active_deliveries()

    async def send_stats(self):
        await self.send_payload('stats', self.get_stats)

    async def send_active_deliveries(self):
        await self.send_payload('active_deliveries', self.get_active_deliveries)

    # ============================================
    # Database helpers
    # ============================================

    @database_sync_to_async
    def get_stats(self) -> dict:
        from .views import dashboard_payload
        return dashboard_payload()

    @database_sync_to_async
    def get_active_deliveries(self) -> dict:
        from .views import active_deliveries_payload
        return active_deliveries_payload()
