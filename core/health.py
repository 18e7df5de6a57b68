"""
LogiTrack Monitoring & Health Check Endpoints
=============================================

Provides:
1. /health/ - Basic liveness check (for load balancers/Docker)
2. /health/ready/ - Readiness check (database, cache, channel layer)
"""

import time
import uuid
import logging
from asgiref.sync import async_to_sync
from django.http import JsonResponse
from django.db import connection, DatabaseError
from django.core.cache import cache
from django.views.decorators.http import require_GET
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone

logger = logging.getLogger('logitrack.monitoring')


@csrf_exempt
@require_GET
def health_check(request):
    """
    Basic liveness probe.
    Returns 200 if the Django process is alive.
    """
    return JsonResponse({
        'status': 'ok',
        'service': 'logitrack-admin',
        'timestamp': timezone.now().isoformat(),
    })


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


def check_database() -> dict:
    start = time.time()
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as e:
        logger.error(f"Health check - Database unhealthy: {e}")
        return {'status': 'unhealthy', 'error': str(e)}
    return {
        'status': 'healthy',
        'response_time_ms': _elapsed_ms(start),
        'engine': connection.vendor,
    }


def check_cache() -> dict:
    start = time.time()
    cache_key = '_healthcheck_ping'
    try:
        cache.set(cache_key, 'pong', 10)
        result = cache.get(cache_key)
    except Exception as e:  # backend-specific connection errors
        logger.error(f"Health check - Cache unhealthy: {e}")
        return {'status': 'unhealthy', 'error': str(e)}

    if result != 'pong':
        logger.error("Health check - Cache read/write mismatch")
        return {'status': 'unhealthy', 'error': 'Cache read/write mismatch'}
    return {'status': 'healthy', 'response_time_ms': _elapsed_ms(start)}


def check_channel_layer() -> dict:
    from channels.layers import get_channel_layer

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return {'status': 'unhealthy', 'error': 'No channel layer configured'}

    start = time.time()
    try:
        async_to_sync(channel_layer.group_send)(
            f'healthcheck_{uuid.uuid4().hex[:8]}',
            {'type': 'health.ping'},
        )
    except Exception as e:  # redis connection errors surface here
        logger.error(f"Health check - Channel layer unhealthy: {e}")
        return {'status': 'unhealthy', 'error': str(e)}
    return {
        'status': 'healthy',
        'response_time_ms': _elapsed_ms(start),
        'backend': type(channel_layer).__name__,
    }


@csrf_exempt
@require_GET
def readiness_check(request):
    """
    Readiness probe - checks all critical dependencies.
    Returns 200 only if ALL dependencies are healthy, 503 otherwise.
    """
    checks = {
        'database': check_database(),
        'cache': check_cache(),
        'channel_layer': check_channel_layer(),
    }
    all_healthy = all(c['status'] == 'healthy' for c in checks.values())

    return JsonResponse({
        'status': 'healthy' if all_healthy else 'unhealthy',
        'service': 'logitrack-admin',
        'timestamp': timezone.now().isoformat(),
        'checks': checks,
    }, status=200 if all_healthy else 503)
