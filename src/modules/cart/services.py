"""Cart service layer.

A customer's cart holds at most one line per product.  Products must
belong to the customer's tenant, be sellable and (when inventory is
tracked) have enough stock for the line's quantity.  Stock is only
reserved at checkout.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.cart.dtos import AddCartItemDTO, CartLineDTO, CartSummaryDTO
from modules.cart.exceptions import CartItemNotFound, InvalidQuantity
from modules.cart.models import CartItem
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.customers.models import Customer
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_summary(self, customer: Customer) -> CartSummaryDTO:
        lines = [
            CartLineDTO(
                id=item.id,
                product_id=item.product_id,
                sku=item.product.sku,
                name=item.product.name,
                unit_price=item.product.price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in self._cart_repo.list_for_customer(str(customer.id))
        ]
        return CartSummaryDTO(
            items=lines,
            item_count=sum(line.quantity for line in lines),
            subtotal=sum((line.line_total for line in lines), Decimal("0.00")),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_item(self, customer: Customer, dto: AddCartItemDTO) -> CartItem:
        """Add a product, merging with an existing line for it.

        Raises:
            ProductNotFound: unknown product or another tenant's product.
            InactiveProduct: product is inactive or deleted.
            InsufficientStock: merged quantity exceeds tracked stock.
        """
        product = self._get_sellable_product(customer, str(dto.product_id))
        item = self._cart_repo.get_by_product(str(customer.id), str(product.id))
        quantity = dto.quantity + (item.quantity if item else 0)
        self._check_stock(product, quantity)

        if item is None:
            item = CartItem(customer=customer, product=product, quantity=quantity)
        else:
            item.quantity = quantity
        self._cart_repo.save(item)
        logger.info(
            "cart.item_added",
            customer_id=str(customer.id),
            product_id=str(product.id),
            quantity=quantity,
        )
        return item

    @transaction.atomic
    def update_quantity(
        self, customer: Customer, item_id: str, quantity: int
    ) -> CartItem:
        if quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1.")
        item = self._cart_repo.get_item(item_id, str(customer.id))
        if item is None:
            raise CartItemNotFound(f"Cart item {item_id} not found.")
        self._check_stock(item.product, quantity)
        item.quantity = quantity
        return self._cart_repo.save(item)

    @transaction.atomic
    def remove_item(self, customer: Customer, item_id: str) -> None:
        item = self._cart_repo.get_item(item_id, str(customer.id))
        if item is None:
            raise CartItemNotFound(f"Cart item {item_id} not found.")
        self._cart_repo.delete(item)

    def clear(self, customer: Customer) -> int:
        return self._cart_repo.clear_for_customer(str(customer.id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_sellable_product(self, customer: Customer, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None or product.tenant_id != customer.tenant_id:
            raise ProductNotFound(f"Product {product_id} not found.")
        if not product.is_sellable:
            raise InactiveProduct(f"Product {product.sku} is not available.")
        return product

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if not product.has_stock_for(quantity):
            raise InsufficientStock(
                f"Product {product.sku}: requested {quantity}, "
                f"available {product.stock_quantity}."
            )
