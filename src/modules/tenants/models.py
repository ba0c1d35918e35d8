"""Tenant (store) and staff membership models.

A tenant is one white-label store.  Staff users belong to exactly one
tenant with a single role; what each role may do is defined in
``modules.tenants.permissions``.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class TenantStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    SUSPENDED = "SUSPENDED", "Suspended"


class Tenant(BaseModel):
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    status = models.CharField(
        max_length=20,
        choices=TenantStatus.choices,
        default=TenantStatus.ACTIVE,
    )

    class Meta:
        db_table = "tenants"
        ordering = ["name"]

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE

    def __str__(self) -> str:
        return f"{self.name} ({self.slug})"


class StaffRole(models.TextChoices):
    SUPER_ADMIN = "SUPER_ADMIN", "Super admin"
    ADMIN = "ADMIN", "Admin"
    STAFF = "STAFF", "Staff"


class StaffMember(BaseModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_membership",
    )
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.CASCADE,
        related_name="staff",
    )
    role = models.CharField(
        max_length=20,
        choices=StaffRole.choices,
        default=StaffRole.STAFF,
    )

    class Meta:
        db_table = "staff_members"

    def __str__(self) -> str:
        return f"{self.user} @ {self.tenant.slug} ({self.role})"
