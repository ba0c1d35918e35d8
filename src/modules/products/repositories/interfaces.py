"""Product repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional["Product"]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Used by checkout and cancellation for stock reservation/release.
        Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def adjust_stock(self, product: Product, delta: int) -> Product:
        """Apply *delta* to ``stock_quantity`` of an already-locked product."""
