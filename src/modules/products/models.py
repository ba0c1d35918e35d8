"""Catalog product model.

Business rules implemented:
- SKU is unique per tenant (normalised to uppercase).
- Inactive products cannot be added to a cart or sold.
- Price must be greater than zero.
- Stock is only enforced for products with ``track_inventory``.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="products",
    )
    sku = models.CharField(max_length=64)
    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    track_inventory = models.BooleanField(default=True)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="products_tenant_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "sku"],
                name="products_tenant_sku_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    def has_stock_for(self, quantity: int) -> bool:
        return not self.track_inventory or self.stock_quantity >= quantity

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
