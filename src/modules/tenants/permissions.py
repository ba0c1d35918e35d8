"""Role → capability table and the DRF permission that evaluates it.

Every staff endpoint declares the capability each action needs through
``required_capabilities`` on the view; this module is the single place
that decides whether a user holds it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog
from rest_framework.permissions import BasePermission

from modules.tenants.models import StaffMember, StaffRole

logger = structlog.get_logger(__name__)


class Capability(str, Enum):
    ORDERS_VIEW = "orders:view"
    ORDERS_UPDATE = "orders:update"
    ORDERS_CANCEL = "orders:cancel"


ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    StaffRole.SUPER_ADMIN: frozenset(Capability),
    StaffRole.ADMIN: frozenset(Capability),
    StaffRole.STAFF: frozenset({Capability.ORDERS_VIEW, Capability.ORDERS_UPDATE}),
}


def role_has_capability(role: str, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def _membership(user) -> Optional[StaffMember]:
    try:
        return StaffMember.objects.select_related("tenant").get(user_id=user.pk)
    except StaffMember.DoesNotExist:
        return None


def user_has_capability(user, capability: Capability, tenant=None) -> bool:
    """Return ``True`` when *user* may perform *capability* inside *tenant*.

    Django superusers hold every capability.  Other staff must belong to
    the tenant being acted on, except ``SUPER_ADMIN`` members who span
    all tenants.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True

    membership = _membership(user)
    if membership is None:
        return False
    if membership.role != StaffRole.SUPER_ADMIN:
        if tenant is None or membership.tenant_id != tenant.id:
            return False
    return role_has_capability(membership.role, capability)


class HasCapability(BasePermission):
    """Checks ``view.required_capabilities[view.action]`` for the request tenant.

    Actions missing from the mapping are denied.
    """

    message = "You do not have permission to perform this action."

    def has_permission(self, request, view) -> bool:
        required = getattr(view, "required_capabilities", {}).get(view.action)
        if required is None:
            return False
        allowed = user_has_capability(
            request.user, required, getattr(request, "tenant", None)
        )
        if not allowed:
            logger.warning(
                "permission.denied",
                user_id=str(request.user.pk),
                capability=required.value,
                action=view.action,
            )
        return allowed
