"""
Core views providing infrastructure endpoints.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for Docker, Kubernetes and load balancers.

    Returns:
        200 with {"status": "healthy", "database": "connected", "cache": ...}
        503 when the database is unreachable. Cache failures only degrade
        the payload, since the cache is optional for serving requests.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check database query failed")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    cache.set("health_check", "ok", timeout=1)
    health_status["cache"] = "connected" if cache.get("health_check") == "ok" else "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
