"""
SUPPORT App - WebSocket Routing Configuration
"""

from django.urls import re_path
from . import consumers


websocket_urlpatterns = [
    # Live conversation: new messages + typing indicator
    # ws://localhost:8000/ws/support/chat/<uuid>/
    re_path(
        r'ws/support/chat/(?P<conversation_id>[0-9a-f-]+)/$',
        consumers.ChatConsumer.as_asgi()
    ),
]
