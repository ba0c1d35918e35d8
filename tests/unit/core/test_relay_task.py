"""Unit tests for the outbox relay task and the notification channel."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.notifications import (
    LoggingNotificationChannel,
    get_notification_channel,
)
from modules.core.tasks import relay_outbox_events

pytestmark = pytest.mark.unit


def _event(event_type="OrderPlaced", status=EventStatus.PENDING) -> OutboxEvent:
    return OutboxEvent.objects.create(
        event_type=event_type,
        payload={"aggregate_id": "2025-0001-0601"},
        aggregate_id="2025-0001-0601",
        topic="orders",
        status=status,
    )


class TestRelayOutboxEvents:
    def test_publishes_pending_and_failed_rows(self):
        pending = _event()
        failed = _event(status=EventStatus.FAILED)
        done = _event(status=EventStatus.PUBLISHED)
        channel = MagicMock()

        with patch("modules.core.tasks.get_notification_channel", return_value=channel):
            result = relay_outbox_events()

        assert result == {"published": 2, "failed": 0}
        assert channel.send.call_count == 2
        for event in (pending, failed):
            event.refresh_from_db()
            assert event.status == EventStatus.PUBLISHED
        done.refresh_from_db()
        assert done.processed_at is None

    def test_channel_error_marks_row_failed_and_continues(self):
        first = _event("OrderPlaced")
        second = _event("PaymentCompleted")
        channel = MagicMock()

        def send(topic, event_type, payload):
            if event_type == "OrderPlaced":
                raise RuntimeError("push gateway down")

        channel.send.side_effect = send

        with patch("modules.core.tasks.get_notification_channel", return_value=channel):
            result = relay_outbox_events()

        assert result == {"published": 1, "failed": 1}
        first.refresh_from_db()
        second.refresh_from_db()
        assert first.status == EventStatus.FAILED
        assert first.retry_count == 1
        assert "push gateway down" in first.error_message
        assert second.status == EventStatus.PUBLISHED

    def test_respects_batch_size(self):
        for _ in range(3):
            _event()
        with patch(
            "modules.core.tasks.get_notification_channel", return_value=MagicMock()
        ):
            result = relay_outbox_events(batch_size=2)
        assert result["published"] == 2

    def test_runs_eagerly_through_celery(self):
        _event()
        result = relay_outbox_events.delay()
        assert result.successful()
        assert result.result == {"published": 1, "failed": 0}


class TestNotificationChannel:
    def test_default_channel_from_settings(self):
        assert isinstance(get_notification_channel(), LoggingNotificationChannel)

    def test_logging_channel_emits_event(self, caplog):
        with caplog.at_level(logging.INFO):
            LoggingNotificationChannel().send(
                "orders", "OrderPlaced", {"aggregate_id": "2025-0001-0601"}
            )
        assert any("notification.sent" in r.getMessage() for r in caplog.records)


class TestRelayRetryLimit:
    def test_exhausted_rows_are_not_retried(self, settings):
        settings.OUTBOX_MAX_RETRIES = 1
        stuck = _event(status=EventStatus.FAILED)
        stuck.retry_count = 1
        stuck.save(update_fields=["retry_count"])
        channel = MagicMock()

        with patch("modules.core.tasks.get_notification_channel", return_value=channel):
            result = relay_outbox_events()

        assert result == {"published": 0, "failed": 0}
        channel.send.assert_not_called()
