"""
REPORTS App - WebSocket Routing Configuration
"""

from django.urls import re_path
from . import consumers


websocket_urlpatterns = [
    # ws://localhost:8000/ws/dashboard/
    re_path(r'ws/dashboard/$', consumers.DashboardConsumer.as_asgi()),
]
