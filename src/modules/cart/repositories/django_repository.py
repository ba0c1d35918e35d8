"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.cart.models import CartItem
from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[CartItem]:
        try:
            return CartItem.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[CartItem]:
        queryset = CartItem.objects.select_related("product")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: CartItem) -> CartItem:
        entity.save()
        logger.info(
            "cart.item_saved",
            item_id=str(entity.id),
            product_id=str(entity.product_id),
            quantity=entity.quantity,
        )
        return entity

    def list_for_customer(self, customer_id: str) -> List[CartItem]:
        return self.list({"customer_id": customer_id})

    def get_item(self, item_id: str, customer_id: str) -> Optional[CartItem]:
        try:
            return (
                CartItem.objects.select_related("product")
                .filter(id=item_id, customer_id=customer_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_product(self, customer_id: str, product_id: str) -> Optional[CartItem]:
        return CartItem.objects.filter(
            customer_id=customer_id, product_id=product_id
        ).first()

    def delete(self, item: CartItem) -> None:
        item_id = str(item.id)
        item.delete()
        logger.info("cart.item_removed", item_id=item_id)

    def clear_for_customer(self, customer_id: str) -> int:
        deleted, _ = CartItem.objects.filter(customer_id=customer_id).delete()
        logger.info("cart.cleared", customer_id=str(customer_id), removed=deleted)
        return deleted
