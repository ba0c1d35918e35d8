"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Raised when checkout persists a new order."""

    order_number: str = ""
    tenant_id: str = ""
    customer_id: str = ""
    total: str = "0.00"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock released."""


@dataclass(frozen=True)
class PaymentCompleted(DomainEvent):
    payment_reference: str = ""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    payment_reference: str = ""
