"""
ASGI config for LogiTrack Admin.

HTTP is served by Django, WebSockets by Channels consumers.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'logitrack_core.settings')

# Initialize Django before importing consumers (they import models)
django_asgi_app = get_asgi_application()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from reports.routing import websocket_urlpatterns as reports_ws  # noqa: E402
from support.routing import websocket_urlpatterns as support_ws  # noqa: E402
from notifications.routing import websocket_urlpatterns as notifications_ws  # noqa: E402
from drafts.routing import websocket_urlpatterns as drafts_ws  # noqa: E402

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': AllowedHostsOriginValidator(
        AuthMiddlewareStack(
            URLRouter(reports_ws + support_ws + notifications_ws + drafts_ws)
        )
    ),
})
