"""Unit tests for the OutboxEvent model."""

from __future__ import annotations

import uuid

import pytest

from modules.core.models import EventStatus, OutboxEvent

pytestmark = pytest.mark.unit


def _make_event(**overrides) -> OutboxEvent:
    defaults = {
        "event_type": "OrderPlaced",
        "payload": {"aggregate_id": "2025-0001-0601", "total": "56.04"},
        "aggregate_id": "2025-0001-0601",
        "topic": "orders",
    }
    defaults.update(overrides)
    return OutboxEvent.objects.create(**defaults)


class TestOutboxEvent:
    def test_defaults(self):
        event = _make_event()
        event.refresh_from_db()
        assert event.status == EventStatus.PENDING
        assert event.processed_at is None
        assert event.error_message is None
        assert event.retry_count == 0

    def test_id_is_uuid7(self):
        assert _make_event().id.version == 7

    def test_payload_round_trips(self):
        event = _make_event(payload={"nested": {"items": [1, 2]}})
        event.refresh_from_db()
        assert event.payload == {"nested": {"items": [1, 2]}}

    def test_mark_as_published(self):
        event = _make_event()
        event.mark_as_published()
        event.refresh_from_db()
        assert event.status == EventStatus.PUBLISHED
        assert event.processed_at is not None

    def test_mark_as_failed_counts_retries(self):
        event = _make_event()
        event.mark_as_failed("timeout")
        event.mark_as_failed("timeout again")
        event.refresh_from_db()
        assert event.status == EventStatus.FAILED
        assert event.error_message == "timeout again"
        assert event.retry_count == 2

    def test_str(self):
        event = _make_event(aggregate_id=str(uuid.uuid4()))
        assert str(event) == f"OrderPlaced [PENDING] ({event.aggregate_id})"


class TestOutboxQuerySet:
    def test_deliverable_skips_published_and_exhausted_rows(self, settings):
        settings.OUTBOX_MAX_RETRIES = 2
        pending = _make_event()
        retrying = _make_event(status=EventStatus.FAILED, retry_count=1)
        _make_event(status=EventStatus.FAILED, retry_count=2)
        _make_event(status=EventStatus.PUBLISHED)

        assert list(OutboxEvent.objects.deliverable()) == [pending, retrying]

    def test_backlog_counts_everything_undelivered(self):
        _make_event()
        _make_event(status=EventStatus.FAILED, retry_count=99)
        _make_event(status=EventStatus.PUBLISHED)

        assert OutboxEvent.objects.backlog().count() == 2

    def test_gave_up(self, settings):
        settings.OUTBOX_MAX_RETRIES = 1
        event = _make_event()
        assert not event.gave_up
        event.mark_as_failed("boom")
        assert event.gave_up
