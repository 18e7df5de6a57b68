"""
WSGI config for LogiTrack Admin.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'logitrack_core.settings')

application = get_wsgi_application()
