"""Django ORM implementation of the Order repository.

Orders are inserted with ``objects.create`` (``force_insert``) because
the primary key is supplied by the caller: a duplicate id must surface
as an ``IntegrityError`` instead of an UPDATE of the existing row.

Concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from modules.orders.events import PaymentCompleted, PaymentFailed
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_PAYMENT_EVENTS = (PaymentCompleted, PaymentFailed)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Identifier look-ups
    # ------------------------------------------------------------------

    def exists_by_id(self, id: str) -> bool:
        return Order.objects.filter(id=id).exists()

    def exists_by_order_number(self, order_number: str) -> bool:
        return Order.objects.filter(order_number=order_number).exists()

    def get_most_recent_order_number(self) -> Optional[str]:
        return (
            Order.objects.order_by("-created_at", "-order_number")
            .values_list("order_number", flat=True)
            .first()
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        fields = dict(data)
        items = fields.pop("items", [])
        order = Order.objects.create(**fields)

        for item_data in items:
            OrderItem(order=order, **item_data).save()

        logger.info(
            "order.inserted",
            order_id=order.id,
            order_number=order.order_number,
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _queryset(self):
        return Order.objects.select_related("customer", "tenant").prefetch_related(
            "items__product", "status_history"
        )

    def get_by_id(self, id: str, tenant_id: Optional[str] = None) -> Optional[Order]:
        queryset = self._queryset().filter(id=id)
        if tenant_id is not None:
            queryset = queryset.filter(tenant_id=tenant_id)
        return queryset.first()

    def get_for_update(
        self, id: str, tenant_id: Optional[str] = None
    ) -> Optional[Order]:
        """Lock the order row; items are prefetched for the caller."""
        queryset = (
            Order.objects.select_for_update(of=("self",))
            .select_related("customer")
            .prefetch_related("items")
            .filter(id=id)
        )
        if tenant_id is not None:
            queryset = queryset.filter(tenant_id=tenant_id)
        return queryset.first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        queryset = self._queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_for_customer(self, customer_id: str) -> List[Order]:
        return list(self._queryset().filter(customer_id=customer_id))

    def get_by_idempotency_key(self, key: str, customer_id: str) -> Optional[Order]:
        return (
            self._queryset()
            .filter(idempotency_key=key, customer_id=customer_id)
            .first()
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract) + outbox
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist changes to an existing order and its pending events."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=event.to_payload(),
                topic="payments" if isinstance(event, _PAYMENT_EVENTS) else "orders",
            )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=entity.id, event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: str,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user=user if getattr(user, "is_authenticated", False) else None,
        )
        logger.info(
            "order.history_added",
            order_id=order_id,
            old_status=old_status,
            new_status=status,
        )
        return history

