"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartItem


class ICartRepository(IRepository["CartItem"]):
    """Repository contract for cart lines, always scoped to a customer."""

    @abstractmethod
    def list_for_customer(self, customer_id: str) -> List[CartItem]:
        """Cart lines of *customer_id* with their products loaded."""

    @abstractmethod
    def get_item(self, item_id: str, customer_id: str) -> Optional[CartItem]:
        """One line of the customer's cart, or ``None``."""

    @abstractmethod
    def get_by_product(self, customer_id: str, product_id: str) -> Optional[CartItem]:
        """The customer's line for *product_id*, or ``None``."""

    @abstractmethod
    def delete(self, item: CartItem) -> None:
        """Remove one line."""

    @abstractmethod
    def clear_for_customer(self, customer_id: str) -> int:
        """Remove every line of the customer's cart; returns the count."""
