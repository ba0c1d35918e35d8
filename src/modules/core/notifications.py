"""Push-notification channel used by the outbox relay.

Delivery to browsers/devices happens outside this service.  The relay only
needs something that accepts a topic plus a JSON payload and raises on
failure; ``LoggingNotificationChannel`` is the default and emits a
structured log line per message.
"""

from __future__ import annotations

from typing import Any, Dict, Protocol

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

logger = structlog.get_logger(__name__)


class NotificationChannel(Protocol):
    def send(self, topic: str, event_type: str, payload: Dict[str, Any]) -> None: ...


class LoggingNotificationChannel:
    def send(self, topic: str, event_type: str, payload: Dict[str, Any]) -> None:
        logger.info(
            "notification.sent",
            topic=topic,
            event_type=event_type,
            aggregate_id=payload.get("aggregate_id"),
        )


def get_notification_channel() -> NotificationChannel:
    """Instantiate the channel named by ``NOTIFICATION_CHANNEL`` (dotted path)."""
    path = getattr(
        settings,
        "NOTIFICATION_CHANNEL",
        "modules.core.notifications.LoggingNotificationChannel",
    )
    return import_string(path)()
