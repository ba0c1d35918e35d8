from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class CartItem(BaseModel):
    """One product line in a customer's cart.

    A customer holds at most one line per product; adding the same
    product again merges quantities.
    """

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["customer", "product"],
                name="cart_items_customer_product_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def line_total(self):
        return self.product.price * self.quantity

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity}"
