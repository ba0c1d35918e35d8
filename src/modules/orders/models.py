"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- ``id`` (``YYYY-XXXX-MMDD``) and ``order_number`` (``YYYY-MMDD-XXXX``)
  are globally unique across tenants; both are assigned by
  ``OrderIdentifierGenerator`` before the row is inserted.
- Three independent status axes: order, payment and fulfillment.
- Monetary fields are computed once at checkout.
- ``shipped_at`` / ``delivered_at`` are stamped at most once.
- OrderItem snapshots product name, SKU and unit price at checkout so
  historical orders stay readable after catalog edits.
- Orders are never deleted; every status change is recorded in
  ``OrderStatusHistory``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_PAYMENT_TRANSITIONS,
    VALID_TRANSITIONS,
    FulfillmentStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

_MONEY = {"max_digits": 12, "decimal_places": 2, "default": Decimal("0.00")}


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    Inserted with ``force_insert`` semantics only (``objects.create``):
    the primary key is supplied by the caller, so a plain ``save()`` on a
    new instance could silently update a colliding row.
    """

    id = models.CharField(primary_key=True, max_length=20, editable=False)
    order_number = models.CharField(max_length=20, unique=True, editable=False)
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    fulfillment_status = models.CharField(
        max_length=20,
        choices=FulfillmentStatus.choices,
        default=FulfillmentStatus.UNFULFILLED,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        null=True,
        blank=True,
    )
    payment_reference = models.CharField(max_length=255, blank=True, default="")

    subtotal = models.DecimalField(**_MONEY)
    tax = models.DecimalField(**_MONEY)
    shipping = models.DecimalField(**_MONEY)
    total = models.DecimalField(**_MONEY)

    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    customer_notes = models.TextField(blank=True, default="")
    internal_note = models.TextField(blank=True, default="")
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["tenant", "status", "-created_at"],
                name="orders_tenant_status_idx",
            ),
            models.Index(
                fields=["customer", "-created_at"],
                name="orders_customer_created_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["customer", "idempotency_key"],
                name="orders_customer_idempotency_uniq",
            ),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def can_transition_payment_to(self, new_status: str) -> bool:
        return new_status in VALID_PAYMENT_TRANSITIONS.get(self.payment_status, set())

    def stamp_status_timestamps(self) -> list[str]:
        """Stamp ``shipped_at`` / ``delivered_at`` for the current status.

        Already-set timestamps are left untouched.  Returns the names of
        the fields that changed.
        """
        changed: list[str] = []
        now = timezone.now()
        if self.status == OrderStatus.SHIPPED and self.shipped_at is None:
            self.shipped_at = now
            changed.append("shipped_at")
        if self.status == OrderStatus.DELIVERED and self.delivered_at is None:
            self.delivered_at = now
            changed.append("delivered_at")
        return changed

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status}/{self.payment_status})"


class OrderItem(BaseModel):
    """Line item snapshot.

    ``product`` becomes ``NULL`` if the product row is ever removed; the
    ``name`` / ``sku`` / ``unit_price`` snapshot keeps the line readable.
    ``total`` is always ``quantity * unit_price``, recalculated on save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        related_name="order_items",
    )
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku or self.name} x{self.quantity} ({self.total})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is ``None`` when the change was made by the system
    (checkout, payment webhooks).
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"
