"""Request helpers for tenant-scoped API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException

from modules.tenants.models import Tenant


class TenantRequired(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Store could not be resolved for this request."
    default_code = "tenant_required"


def require_tenant(request) -> Tenant:
    """Return the tenant resolved by ``TenantMiddleware`` or raise 400."""
    tenant = getattr(request, "tenant", None)
    if tenant is None:
        raise TenantRequired()
    return tenant
