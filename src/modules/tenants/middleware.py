from typing import Callable, Optional

import structlog
from django.http import HttpRequest, HttpResponse

from modules.tenants.models import Tenant, TenantStatus

logger = structlog.get_logger()

TENANT_HEADER = "HTTP_X_TENANT_SLUG"
_NON_TENANT_SUBDOMAINS = {"localhost", "admin", "www", "api"}


def resolve_tenant_slug(request: HttpRequest) -> Optional[str]:
    """Find the tenant slug in, by priority: the X-Tenant-Slug header,
    the host's subdomain, the ``tenant`` query parameter."""
    slug = request.META.get(TENANT_HEADER)
    if slug:
        return slug.strip().lower()

    host = request.META.get("HTTP_HOST", "").split(":")[0]
    parts = host.split(".")
    if len(parts) > 2 and parts[0] not in _NON_TENANT_SUBDOMAINS:
        return parts[0].lower()

    slug = request.GET.get("tenant")
    return slug.strip().lower() if slug else None


class TenantMiddleware:
    """Attaches ``request.tenant`` (an ACTIVE ``Tenant`` or ``None``).

    Routes that need a tenant reject ``None`` themselves; some routes
    (health, auth, payment webhooks) are tenant-less.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request.tenant = None
        if request.method != "OPTIONS":
            slug = resolve_tenant_slug(request)
            if slug:
                request.tenant = Tenant.objects.filter(
                    slug=slug, status=TenantStatus.ACTIVE
                ).first()
                if request.tenant is None:
                    logger.warning("tenant.unresolved", tenant_slug=slug)
                else:
                    structlog.contextvars.bind_contextvars(tenant=slug)
        return self.get_response(request)
