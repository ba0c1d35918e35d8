"""Request helpers for customer-facing API views."""

from __future__ import annotations

from typing import Optional

from rest_framework.exceptions import PermissionDenied

from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.repositories.interfaces import ICustomerRepository
from modules.tenants.api import require_tenant


def require_customer(
    request, repository: Optional[ICustomerRepository] = None
) -> Customer:
    """Customer profile of the authenticated user in the request tenant.

    Raises ``TenantRequired`` (400) without a tenant and
    ``PermissionDenied`` (403) when the user has no profile there.
    """
    tenant = require_tenant(request)
    repository = repository or CustomerDjangoRepository()
    customer = repository.get_for_user(request.user.pk, tenant.id)
    if customer is None:
        raise PermissionDenied("No customer profile for this store.")
    return customer
