"""Shared model infrastructure.

- ``BaseModel``: UUIDv7 key plus ``created_at`` / ``updated_at``.
  Orders replace the key with their ``YYYY-XXXX-MMDD`` string id.
- ``SoftDeleteModel``: catalog and customer rows are never hard-deleted,
  so order lines and cart rows keep pointing at something.
- ``OutboxEvent``: domain events written in the same transaction as the
  change that raised them, relayed later by ``core.relay_outbox_events``.
"""

from __future__ import annotations

import uuid6
from django.conf import settings
from django.db import models
from django.utils import timezone

OUTBOX_MAX_RETRIES_DEFAULT = 5

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now is skipped when update_fields omits it
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Soft delete
# ---------------------------------------------------------------------------


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)


class SoftDeleteModel(BaseModel):
    """``objects`` is unfiltered; callers opt in with ``.alive()``.

    Product look-ups by id deliberately see deleted rows so checkout can
    report them as unavailable instead of unknown.
    """

    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at"])
        return 1, {self._meta.label: 1}


# ---------------------------------------------------------------------------
# Transactional outbox
# ---------------------------------------------------------------------------


class EventStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PUBLISHED = "PUBLISHED", "Published"
    FAILED = "FAILED", "Failed"


def outbox_max_retries() -> int:
    return getattr(settings, "OUTBOX_MAX_RETRIES", OUTBOX_MAX_RETRIES_DEFAULT)


class OutboxQuerySet(models.QuerySet):
    def backlog(self) -> OutboxQuerySet:
        """Everything not yet delivered, including rows that gave up."""
        return self.exclude(status=EventStatus.PUBLISHED)

    def deliverable(self, max_retries: int | None = None) -> OutboxQuerySet:
        """Rows the relay should (re)try, oldest first."""
        if max_retries is None:
            max_retries = outbox_max_retries()
        return (
            self.filter(status__in=[EventStatus.PENDING, EventStatus.FAILED])
            .filter(retry_count__lt=max_retries)
            .order_by("created_at")
        )


class OutboxEvent(BaseModel):
    """A domain event waiting to reach the push-notification channel.

    ``topic`` is ``orders`` or ``payments``; ``payload`` is the event
    dataclass serialised to JSON.  A row stays ``FAILED`` and is retried
    until ``retry_count`` reaches ``OUTBOX_MAX_RETRIES``.
    """

    event_type = models.CharField(max_length=100)
    topic = models.CharField(max_length=100)
    aggregate_id = models.CharField(max_length=255)
    payload = models.JSONField()
    status = models.CharField(
        max_length=20, choices=EventStatus.choices, default=EventStatus.PENDING
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)  # noqa: DJ01
    retry_count = models.PositiveIntegerField(default=0)

    objects = OutboxQuerySet.as_manager()

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["aggregate_id"], name="outbox_aggregate_id_idx"),
            models.Index(
                fields=["status", "created_at"], name="outbox_status_created_idx"
            ),
        ]

    def mark_as_published(self) -> None:
        self.status = EventStatus.PUBLISHED
        self.processed_at = timezone.now()
        self.save(update_fields=["status", "processed_at"])

    def mark_as_failed(self, error: str) -> None:
        self.status = EventStatus.FAILED
        self.error_message = error
        self.retry_count += 1
        self.save(update_fields=["status", "error_message", "retry_count"])

    @property
    def gave_up(self) -> bool:
        return (
            self.status == EventStatus.FAILED
            and self.retry_count >= outbox_max_retries()
        )

    def __str__(self) -> str:
        return f"{self.event_type} [{self.status}] ({self.aggregate_id})"
