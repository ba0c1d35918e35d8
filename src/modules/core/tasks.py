"""Background tasks for the core module."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.core.models import OutboxEvent
from modules.core.notifications import get_notification_channel

logger = structlog.get_logger(__name__)

RELAY_BATCH_SIZE = 100


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = RELAY_BATCH_SIZE) -> dict:
    """Push deliverable outbox rows to the notification channel.

    Runs on the beat schedule.  Each row is handled on its own: a channel
    error marks that row ``FAILED`` and the batch moves on.  Rows that
    exhausted their retries stay in the backlog for manual replay.
    """
    channel = get_notification_channel()
    batch = list(OutboxEvent.objects.deliverable()[:batch_size])

    published = failed = 0
    for event in batch:
        log = logger.bind(
            event_id=str(event.id),
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
        )
        try:
            channel.send(event.topic, event.event_type, event.payload)
        except Exception as exc:
            event.mark_as_failed(str(exc))
            failed += 1
            if event.gave_up:
                log.error("outbox.relay_gave_up", retry_count=event.retry_count)
            else:
                log.warning(
                    "outbox.relay_failed", retry_count=event.retry_count, error=str(exc)
                )
            continue
        event.mark_as_published()
        published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
