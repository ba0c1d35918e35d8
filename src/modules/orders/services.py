"""Order service layer (Use Cases).

Orchestrates checkout, staff status changes and cancellation.  All
write operations are atomic: the service defines the unit-of-work
boundary.

Checkout:
1. Validate the customer and the cart.
2. Lock products (ascending id) and validate tenant, status and stock.
3. Price the lines.
4. Reserve an order id and order number, then insert the order with
   its items.  The existence checks and the insert are not atomic, so a
   unique-constraint violation on either identifier restarts step 4.
5. Decrement tracked stock and clear the cart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, transaction

from modules.orders.constants import (
    CHECKOUT_MAX_INSERT_ATTEMPTS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import (
    CustomerNotFound,
    EmptyCart,
    GenerationExhausted,
    InactiveCustomer,
    InvalidOrderStatus,
    InvalidPaymentStatus,
    OrderNotFound,
)
from modules.orders.identifiers import OrderIdentifierGenerator
from modules.orders.pricing import compute_totals
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CheckoutDTO, UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        cart_repository: ICartRepository,
        identifier_generator: Optional[OrderIdentifierGenerator] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._cart_repo = cart_repository
        self._identifiers = identifier_generator or OrderIdentifierGenerator(
            order_repository
        )

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @transaction.atomic
    def checkout(self, dto: CheckoutDTO) -> Order:
        """Turn the customer's cart into a ``(PENDING, PENDING)`` order.

        Replaying an ``idempotency_key`` returns the order it created.

        Raises:
            CustomerNotFound: customer does not exist in the tenant.
            InactiveCustomer: customer is inactive.
            EmptyCart: nothing to order.
            ProductNotFound / InactiveProduct: a cart product can't be sold.
            InsufficientStock: tracked stock is lower than requested.
            GenerationExhausted: no free identifiers could be reserved.
        """
        log = logger.bind(
            tenant_id=str(dto.tenant_id), customer_id=str(dto.customer_id)
        )
        log.info("order.checkout_started")

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(
                dto.idempotency_key, str(dto.customer_id)
            )
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=existing.id,
                    key=dto.idempotency_key,
                )
                return existing

        # 1. Customer + cart
        customer = self._customer_repo.get_by_id(str(dto.customer_id))
        if not customer or customer.tenant_id != dto.tenant_id:
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")
        if not customer.is_active:
            raise InactiveCustomer(f"Customer {dto.customer_id} is inactive.")

        cart_items = self._cart_repo.list_for_customer(str(customer.id))
        if not cart_items:
            raise EmptyCart("Cart is empty.")

        # 2. Lock products in ascending id order to avoid deadlocks
        lines = []
        for cart_item in sorted(cart_items, key=lambda i: str(i.product_id)):
            product = self._product_repo.get_for_update(str(cart_item.product_id))
            if not product or product.tenant_id != dto.tenant_id:
                raise ProductNotFound(f"Product {cart_item.product_id} not found.")
            if not product.is_sellable:
                raise InactiveProduct(f"Product {product.sku} is not available.")
            if not product.has_stock_for(cart_item.quantity):
                raise InsufficientStock(
                    f"Product {product.sku}: requested {cart_item.quantity}, "
                    f"available {product.stock_quantity}."
                )
            lines.append((product, cart_item.quantity))

        # 3. Price
        totals = compute_totals((product.price, qty) for product, qty in lines)

        # 4. Identifiers + insert
        shipping_address = dto.shipping_address.model_dump()
        order = self._insert_with_fresh_identifiers(
            {
                "tenant_id": dto.tenant_id,
                "customer_id": customer.id,
                "status": OrderStatus.PENDING,
                "payment_status": PaymentStatus.PENDING,
                "payment_method": dto.payment_method,
                "subtotal": totals.subtotal,
                "tax": totals.tax,
                "shipping": totals.shipping,
                "total": totals.total,
                "shipping_address": shipping_address,
                "billing_address": dto.effective_billing_address.model_dump(),
                "customer_notes": dto.customer_notes,
                "idempotency_key": dto.idempotency_key,
                "items": [
                    {
                        "product_id": product.id,
                        "name": product.name,
                        "sku": product.sku,
                        "quantity": qty,
                        "unit_price": product.price,
                    }
                    for product, qty in lines
                ],
            },
            log,
        )

        # 5. Inventory + cart
        for product, qty in lines:
            if product.track_inventory:
                self._product_repo.adjust_stock(product, -qty)
        self._cart_repo.clear_for_customer(str(customer.id))

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
        )
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                tenant_id=str(dto.tenant_id),
                customer_id=str(customer.id),
                total=str(order.total),
            )
        )
        self._order_repo.save(order)

        log.info(
            "order.created",
            order_id=order.id,
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(order.id) or order

    def _insert_with_fresh_identifiers(self, data: Dict[str, Any], log) -> Order:
        """Reserve identifiers and insert, retrying when either was taken
        between the existence check and the insert."""
        for attempt in range(1, CHECKOUT_MAX_INSERT_ATTEMPTS + 1):
            order_id = self._identifiers.generate_unique_id()
            order_number = self._identifiers.generate_order_number()
            try:
                with transaction.atomic():
                    return self._order_repo.create(
                        {**data, "id": order_id, "order_number": order_number}
                    )
            except IntegrityError:
                if not (
                    self._order_repo.exists_by_id(order_id)
                    or self._order_repo.exists_by_order_number(order_number)
                ):
                    raise
                log.warning(
                    "order.identifier_conflict_on_insert",
                    order_id=order_id,
                    order_number=order_number,
                    attempt=attempt,
                )

        log.error("order.identifier_exhausted", kind="insert")
        raise GenerationExhausted(
            f"Order insert kept colliding after {CHECKOUT_MAX_INSERT_ATTEMPTS} attempts."
        )

    # ------------------------------------------------------------------
    # Staff updates
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_order(
        self,
        order_id: str,
        tenant_id: Any,
        dto: UpdateOrderDTO,
        user: Any = None,
    ) -> Order:
        """Apply staff changes to status, payment, fulfillment and notes.

        ``shipped_at`` / ``delivered_at`` are stamped on the first move
        into ``SHIPPED`` / ``DELIVERED``.  Cancelling goes through
        ``cancel_order`` so that stock is released.

        Raises:
            OrderNotFound: order does not exist in the tenant.
            InvalidOrderStatus: status transition is not allowed.
            InvalidPaymentStatus: payment transition is not allowed.
        """
        order = self._order_repo.get_for_update(order_id, tenant_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order.id, current_status=order.status)
        old_status = order.status

        if dto.status is not None and dto.status != order.status:
            if dto.status == OrderStatus.CANCELLED:
                raise InvalidOrderStatus("Use the cancel operation to cancel orders.")
            if not order.can_transition_to(dto.status):
                log.warning("order.invalid_transition", new_status=dto.status)
                raise InvalidOrderStatus(
                    f"Cannot transition from {order.status} to {dto.status}."
                )
            order.status = dto.status
            order.stamp_status_timestamps()
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=dto.status,
                )
            )

        if dto.payment_status is not None:
            self._apply_payment_status(order, dto.payment_status)

        if dto.fulfillment_status is not None:
            order.fulfillment_status = dto.fulfillment_status
        if dto.tracking_number is not None:
            order.tracking_number = dto.tracking_number
        if dto.internal_note is not None:
            order.internal_note = dto.internal_note

        self._order_repo.save(order)

        if order.status != old_status:
            self._order_repo.add_history(
                order_id=order.id,
                status=order.status,
                notes=dto.notes,
                old_status=old_status,
                user=user,
            )
            log.info("order.status_updated", new_status=order.status)

        log.info("order.updated", changes=sorted(dto.changes()))
        return self._order_repo.get_by_id(order.id) or order

    @staticmethod
    def _apply_payment_status(order: Order, new_status: str) -> None:
        if new_status == order.payment_status:
            return
        if not order.can_transition_payment_to(new_status):
            raise InvalidPaymentStatus(
                f"Cannot change payment from {order.payment_status} to {new_status}."
            )
        order.payment_status = new_status

    @transaction.atomic
    def cancel_order(
        self,
        order_id: str,
        tenant_id: Any,
        notes: str = "",
        user: Any = None,
    ) -> Order:
        """Cancel an order and release its reserved stock.

        Locks the order row first so concurrent cancellations can't
        release stock twice.

        Raises:
            OrderNotFound: order does not exist in the tenant.
            InvalidOrderStatus: cancellation not allowed from current status.
        """
        order = self._order_repo.get_for_update(order_id, tenant_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=order.id, current_status=order.status)

        if not order.can_transition_to(OrderStatus.CANCELLED):
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        items = sorted(
            (item for item in order.items.all() if item.product_id),
            key=lambda i: str(i.product_id),
        )
        for item in items:
            product = self._product_repo.get_for_update(str(item.product_id))
            if product and product.track_inventory:
                self._product_repo.adjust_stock(product, item.quantity)

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.add_domain_event(OrderCancelled(aggregate_id=order.id))
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            user=user,
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(order.id) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, tenant_id: Any = None) -> Order:
        """Retrieve a single order.

        Raises:
            OrderNotFound: if the order does not exist in the tenant.
        """
        order = self._order_repo.get_by_id(order_id, tenant_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_customer_order(self, order_id: str, customer_id: Any) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if not order or str(order.customer_id) != str(customer_id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_customer_orders(self, customer_id: Any) -> List[Order]:
        return self._order_repo.list_for_customer(str(customer_id))
