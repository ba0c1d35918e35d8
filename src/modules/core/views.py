"""Public health probe.

``GET /health`` answers 200 when the database and the cache respond and
503 otherwise.  The database section also reports the outbox backlog so
a stalled relay shows up on the same dashboard.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connection
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from modules.core.models import EventStatus, OutboxEvent, outbox_max_retries

logger = structlog.get_logger(__name__)

_CACHE_KEY = "health:ping"


def _timed(probe: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    started = time.monotonic()
    result = probe()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
        **result,
    }


def _probe_database() -> Dict[str, Any]:
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    backlog = OutboxEvent.objects.backlog()
    return {
        "outbox_backlog": backlog.count(),
        "outbox_stuck": backlog.filter(
            status=EventStatus.FAILED, retry_count__gte=outbox_max_retries()
        ).count(),
    }


def _probe_cache() -> Dict[str, Any]:
    cache.set(_CACHE_KEY, "pong", 10)
    if cache.get(_CACHE_KEY) != "pong":
        raise ConnectionError("Cache read failed")
    return {}


@require_GET
def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    for name, probe in (("database", _probe_database), ("cache", _probe_cache)):
        try:
            services[name] = _timed(probe)
        except Exception as exc:
            services[name] = {"status": "down"}
            logger.error("health.probe_failed", probe=name, error=str(exc))

    healthy = all(service["status"] == "up" for service in services.values())
    logger.info("health.checked", healthy=healthy)
    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
