"""Order repository interface.

Extends ``IRepository[Order]`` with the existence checks used by the
identifier generator, atomic creation with items, status history and
idempotency-key look-up.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    # ------------------------------------------------------------------
    # Identifier look-ups (global, not tenant scoped)
    # ------------------------------------------------------------------

    @abstractmethod
    def exists_by_id(self, id: str) -> bool:
        """Whether any order already uses ``id``."""

    @abstractmethod
    def exists_by_order_number(self, order_number: str) -> bool:
        """Whether any order already uses ``order_number``."""

    @abstractmethod
    def get_most_recent_order_number(self) -> Optional[str]:
        """Order number of the most recently created order, or ``None``."""

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert an order with its items.

        ``data`` holds the order fields (including ``id`` and
        ``order_number``) plus ``items``: a list of dicts with
        ``product_id``, ``name``, ``sku``, ``quantity``, ``unit_price``.
        Must never overwrite an existing row.
        """

    @abstractmethod
    def get_by_id(self, id: str, tenant_id: Optional[str] = None) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def get_for_update(
        self, id: str, tenant_id: Optional[str] = None
    ) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def list_for_customer(self, customer_id: str) -> List[Order]:
        """Orders placed by one customer, newest first."""

    @abstractmethod
    def add_history(
        self,
        order_id: str,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str, customer_id: str) -> Optional[Order]:
        """Retrieve the customer's order placed with this idempotency key."""
