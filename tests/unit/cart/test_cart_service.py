"""Unit tests for CartService against the Django repositories."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.cart.dtos import AddCartItemDTO
from modules.cart.exceptions import CartItemNotFound, InvalidQuantity
from modules.cart.models import CartItem
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class TestAddItem:
    def test_creates_line(self, service, customer, make_product):
        product = make_product(price=Decimal("12.00"))

        item = service.add_item(customer, AddCartItemDTO(product_id=product.id, quantity=2))

        assert item.quantity == 2
        assert CartItem.objects.filter(customer=customer).count() == 1

    def test_merges_quantity_for_same_product(self, service, customer, make_product):
        product = make_product()
        service.add_item(customer, AddCartItemDTO(product_id=product.id, quantity=2))
        service.add_item(customer, AddCartItemDTO(product_id=product.id, quantity=3))

        lines = CartItem.objects.filter(customer=customer)
        assert lines.count() == 1
        assert lines.get().quantity == 5

    def test_unknown_product(self, service, customer):
        with pytest.raises(ProductNotFound):
            service.add_item(customer, AddCartItemDTO(product_id=uuid4()))

    def test_product_of_another_tenant(self, service, customer, other_tenant):
        product = Product.objects.create(
            tenant=other_tenant, sku="X-1", name="Foreign", price=Decimal("1.00")
        )
        with pytest.raises(ProductNotFound):
            service.add_item(customer, AddCartItemDTO(product_id=product.id))

    def test_inactive_product(self, service, customer, make_product):
        product = make_product(status=ProductStatus.INACTIVE)
        with pytest.raises(InactiveProduct):
            service.add_item(customer, AddCartItemDTO(product_id=product.id))

    def test_soft_deleted_product(self, service, customer, make_product):
        product = make_product()
        product.delete()
        with pytest.raises(InactiveProduct):
            service.add_item(customer, AddCartItemDTO(product_id=product.id))

    def test_merged_quantity_over_stock(self, service, customer, make_product):
        product = make_product(stock_quantity=4)
        service.add_item(customer, AddCartItemDTO(product_id=product.id, quantity=3))
        with pytest.raises(InsufficientStock):
            service.add_item(customer, AddCartItemDTO(product_id=product.id, quantity=2))

    def test_untracked_inventory_ignores_stock(self, service, customer, make_product):
        product = make_product(stock_quantity=0, track_inventory=False)
        item = service.add_item(
            customer, AddCartItemDTO(product_id=product.id, quantity=50)
        )
        assert item.quantity == 50


class TestUpdateAndRemove:
    @pytest.fixture()
    def item(self, service, customer, make_product):
        product = make_product(stock_quantity=10)
        return service.add_item(
            customer, AddCartItemDTO(product_id=product.id, quantity=1)
        )

    def test_update_quantity(self, service, customer, item):
        updated = service.update_quantity(customer, str(item.id), 7)
        assert updated.quantity == 7

    def test_update_rejects_zero(self, service, customer, item):
        with pytest.raises(InvalidQuantity):
            service.update_quantity(customer, str(item.id), 0)

    def test_update_over_stock(self, service, customer, item):
        with pytest.raises(InsufficientStock):
            service.update_quantity(customer, str(item.id), 11)

    def test_other_customers_line_is_not_found(self, service, tenant, item):
        from modules.customers.models import Customer

        stranger = Customer.objects.create(
            tenant=tenant, name="Stranger", email="stranger@example.com"
        )
        with pytest.raises(CartItemNotFound):
            service.update_quantity(stranger, str(item.id), 2)
        with pytest.raises(CartItemNotFound):
            service.remove_item(stranger, str(item.id))

    def test_remove_item(self, service, customer, item):
        service.remove_item(customer, str(item.id))
        assert not CartItem.objects.filter(id=item.id).exists()


class TestSummary:
    def test_totals(self, service, customer, make_product):
        a = make_product(price=Decimal("10.00"))
        b = make_product(price=Decimal("2.50"))
        service.add_item(customer, AddCartItemDTO(product_id=a.id, quantity=2))
        service.add_item(customer, AddCartItemDTO(product_id=b.id, quantity=3))

        summary = service.get_summary(customer)

        assert summary.item_count == 5
        assert summary.subtotal == Decimal("27.50")
        assert {line.sku for line in summary.items} == {a.sku, b.sku}

    def test_empty_cart(self, service, customer):
        summary = service.get_summary(customer)
        assert summary.items == []
        assert summary.subtotal == Decimal("0.00")

    def test_clear(self, service, customer, make_product):
        service.add_item(customer, AddCartItemDTO(product_id=make_product().id))
        assert service.clear(customer) == 1
        assert service.get_summary(customer).item_count == 0
