"""Storefront customer model.

Business rules implemented:
- A customer belongs to exactly one tenant; email is unique per tenant.
- Inactive customers cannot check out (enforced at service layer).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel) so
  historical orders keep their customer reference.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel


class Customer(SoftDeleteModel):
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="customers",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customer_profiles",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254)
    phone = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "email"],
                name="customers_tenant_email_uniq",
            ),
            models.UniqueConstraint(
                fields=["tenant", "user"],
                name="customers_tenant_user_uniq",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"
