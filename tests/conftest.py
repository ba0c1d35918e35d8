from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.products.models import Product, ProductStatus
from modules.tenants.models import StaffMember, StaffRole, Tenant

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tenant():
    return Tenant.objects.create(name="Acme Store", slug="acme")


@pytest.fixture()
def other_tenant():
    return Tenant.objects.create(name="Globex Store", slug="globex")


@pytest.fixture()
def make_product(tenant):
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        defaults = {
            "tenant": tenant,
            "sku": f"SKU-{counter['n']:03d}",
            "name": f"Product {counter['n']}",
            "price": Decimal("10.00"),
            "stock_quantity": 10,
            "status": ProductStatus.ACTIVE,
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def customer_user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def customer(tenant, customer_user):
    return Customer.objects.create(
        tenant=tenant,
        user=customer_user,
        name="Jane Shopper",
        email="jane@example.com",
    )


@pytest.fixture()
def customer_client(customer, customer_user):
    """APIClient authenticated as the customer, scoped to its tenant."""
    client = APIClient()
    client.force_authenticate(user=customer_user)
    client.defaults["HTTP_X_TENANT_SLUG"] = customer.tenant.slug
    return client


@pytest.fixture()
def make_staff_client(tenant):
    """Build an APIClient for a staff member with the given role."""

    def _make(role: str = StaffRole.ADMIN, staff_tenant=None) -> APIClient:
        staff_tenant = staff_tenant or tenant
        user = User.objects.create_user(
            username=f"{role.lower()}-{staff_tenant.slug}-{User.objects.count()}",
            password="testpass123",
        )
        StaffMember.objects.create(user=user, tenant=staff_tenant, role=role)
        client = APIClient()
        client.force_authenticate(user=user)
        client.defaults["HTTP_X_TENANT_SLUG"] = tenant.slug
        return client

    return _make


@pytest.fixture()
def make_order(tenant, customer):
    """Insert an order with one line directly, bypassing checkout."""
    from modules.orders.models import Order, OrderItem

    counter = {"n": 0}

    def _make(
        product=None, quantity=1, order_tenant=None, order_customer=None, **overrides
    ):
        counter["n"] += 1
        n = counter["n"]
        unit_price = product.price if product else Decimal("10.00")
        subtotal = unit_price * quantity
        defaults = {
            "id": f"2025-{n:04d}-0601",
            "order_number": f"2025-0601-{n:04d}",
            "tenant": order_tenant or tenant,
            "customer": order_customer or customer,
            "payment_method": "CARD",
            "subtotal": subtotal,
            "total": subtotal,
            "shipping_address": {"name": "Jane Shopper", "line1": "1 Main St"},
        }
        defaults.update(overrides)
        order = Order.objects.create(**defaults)
        OrderItem.objects.create(
            order=order,
            product=product,
            name=product.name if product else "Gift card",
            sku=product.sku if product else "",
            quantity=quantity,
            unit_price=unit_price,
        )
        return order

    return _make
