"""Payment webhook handling.

Moves the payment axis of an order on provider callbacks:

- ``payment_intent.succeeded``: ``payment_status -> COMPLETED`` and, if
  the order is still ``PENDING``, ``status -> CONFIRMED``.
- ``payment_intent.payment_failed``: ``payment_status -> FAILED``; the
  order status is left for manual follow-up.

Providers deliver at least once, so re-applying the current payment
status is a no-op.  A late failure for an already completed payment is
ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from django.db import transaction

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.events import OrderStatusChanged, PaymentCompleted, PaymentFailed
from modules.orders.exceptions import OrderNotFound
from modules.payments.exceptions import MalformedEvent

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


class PaymentService:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def handle_event(self, event: Dict[str, Any]) -> Optional[Order]:
        """Dispatch a decoded webhook event.

        Unknown event types and events without an order reference are
        logged and ignored (returns ``None``).

        Raises:
            MalformedEvent: *event* is not an event object.
            OrderNotFound: the referenced order does not exist.
        """
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise MalformedEvent("Webhook body is not an event object.")

        event_type = event["type"]
        if event_type not in (PAYMENT_SUCCEEDED, PAYMENT_FAILED):
            logger.info("payment.webhook_ignored", event_type=event_type)
            return None

        payment = (event.get("data") or {}).get("object") or {}
        order_id = (payment.get("metadata") or {}).get("order_id")
        if not order_id:
            logger.warning(
                "payment.webhook_ignored",
                event_type=event_type,
                reason="missing_order_id",
            )
            return None

        reference = str(payment.get("id") or "")
        if event_type == PAYMENT_SUCCEEDED:
            return self.record_payment_succeeded(order_id, reference)
        return self.record_payment_failed(order_id, reference)

    @transaction.atomic
    def record_payment_succeeded(self, order_id: str, reference: str = "") -> Order:
        order = self._lock(order_id)
        log = logger.bind(order_id=order.id, payment_reference=reference)

        if order.payment_status == PaymentStatus.COMPLETED:
            log.info("payment.duplicate_ignored", payment_status=order.payment_status)
            return order

        order.payment_status = PaymentStatus.COMPLETED
        if reference:
            order.payment_reference = reference
        order.add_domain_event(
            PaymentCompleted(aggregate_id=order.id, payment_reference=reference)
        )

        old_status = order.status
        if old_status == OrderStatus.PENDING:
            order.status = OrderStatus.CONFIRMED
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=OrderStatus.CONFIRMED,
                )
            )

        self._order_repo.save(order)
        if order.status != old_status:
            self._order_repo.add_history(
                order_id=order.id,
                status=order.status,
                notes="Payment completed",
                old_status=old_status,
            )
        log.info("payment.completed", status=order.status)
        return order

    @transaction.atomic
    def record_payment_failed(self, order_id: str, reference: str = "") -> Order:
        order = self._lock(order_id)
        log = logger.bind(order_id=order.id, payment_reference=reference)

        if not order.can_transition_payment_to(PaymentStatus.FAILED):
            log.info("payment.duplicate_ignored", payment_status=order.payment_status)
            return order

        order.payment_status = PaymentStatus.FAILED
        if reference:
            order.payment_reference = reference
        order.add_domain_event(
            PaymentFailed(aggregate_id=order.id, payment_reference=reference)
        )
        self._order_repo.save(order)
        log.warning("payment.failed")
        return order

    def _lock(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order
