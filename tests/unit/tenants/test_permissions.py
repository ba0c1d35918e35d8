"""Unit tests for the role → capability table and HasCapability."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

from modules.tenants.models import StaffMember, StaffRole
from modules.tenants.permissions import (
    Capability,
    HasCapability,
    role_has_capability,
    user_has_capability,
)

pytestmark = pytest.mark.unit

User = get_user_model()


def _staff(tenant, role, username="staff"):
    user = User.objects.create_user(username=username, password="x")
    StaffMember.objects.create(user=user, tenant=tenant, role=role)
    return user


class TestCapabilityTable:
    @pytest.mark.parametrize("role", [StaffRole.SUPER_ADMIN, StaffRole.ADMIN])
    def test_admins_hold_every_capability(self, role):
        assert all(role_has_capability(role, cap) for cap in Capability)

    def test_staff_cannot_cancel(self):
        assert role_has_capability(StaffRole.STAFF, Capability.ORDERS_VIEW)
        assert role_has_capability(StaffRole.STAFF, Capability.ORDERS_UPDATE)
        assert not role_has_capability(StaffRole.STAFF, Capability.ORDERS_CANCEL)

    def test_unknown_role_has_nothing(self):
        assert not role_has_capability("CUSTOMER", Capability.ORDERS_VIEW)


class TestUserHasCapability:
    def test_anonymous_user(self, tenant):
        assert not user_has_capability(AnonymousUser(), Capability.ORDERS_VIEW, tenant)

    def test_user_without_membership(self, tenant, customer_user):
        assert not user_has_capability(customer_user, Capability.ORDERS_VIEW, tenant)

    def test_superuser_holds_everything(self, tenant):
        user = User.objects.create_superuser(username="root", password="x")
        assert user_has_capability(user, Capability.ORDERS_CANCEL, tenant)

    def test_admin_limited_to_own_tenant(self, tenant, other_tenant):
        user = _staff(tenant, StaffRole.ADMIN)
        assert user_has_capability(user, Capability.ORDERS_CANCEL, tenant)
        assert not user_has_capability(user, Capability.ORDERS_CANCEL, other_tenant)
        assert not user_has_capability(user, Capability.ORDERS_VIEW, None)

    def test_super_admin_spans_tenants(self, tenant, other_tenant):
        user = _staff(tenant, StaffRole.SUPER_ADMIN)
        assert user_has_capability(user, Capability.ORDERS_CANCEL, other_tenant)


class TestHasCapabilityPermission:
    def _check(self, user, tenant, action):
        request = SimpleNamespace(user=user, tenant=tenant)
        view = SimpleNamespace(
            action=action,
            required_capabilities={"cancel": Capability.ORDERS_CANCEL},
        )
        return HasCapability().has_permission(request, view)

    def test_allows_mapped_action(self, tenant):
        assert self._check(_staff(tenant, StaffRole.ADMIN), tenant, "cancel")

    def test_denies_missing_capability(self, tenant):
        assert not self._check(_staff(tenant, StaffRole.STAFF), tenant, "cancel")

    def test_denies_unmapped_action(self, tenant):
        assert not self._check(_staff(tenant, StaffRole.ADMIN), tenant, "destroy")
