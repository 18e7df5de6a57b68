"""
DRAFTS App - WebSocket Routing Configuration
"""

from django.urls import re_path
from . import consumers


websocket_urlpatterns = [
    # ws://localhost:8000/ws/drafts/<form_key>/
    re_path(r'ws/drafts/(?P<form_key>[-\w]+)/$', consumers.DraftConsumer.as_asgi()),
]
