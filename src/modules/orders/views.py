"""Order API views.

Exposes the ``OrderService`` via HTTP.  Domain exceptions are caught and
translated into HTTP status codes; anything else propagates.

- ``CheckoutView``: customers turn their cart into an order.
- ``CustomerOrderViewSet``: customers read their own orders.
- ``OrderViewSet``: staff manage the orders of the request tenant,
  gated by the capability table.
"""

from __future__ import annotations

import structlog
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.customers.api import require_customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import AddressDTO, CheckoutDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    CustomerNotFound,
    EmptyCart,
    GenerationExhausted,
    InactiveCustomer,
    InvalidOrderStatus,
    InvalidPaymentStatus,
    OrderNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CheckoutSerializer,
    OrderListSerializer,
    OrderSerializer,
    StaffOrderSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.tenants.api import require_tenant
from modules.tenants.permissions import Capability, HasCapability

logger = structlog.get_logger(__name__)

_NOT_FOUND = {"detail": "Order not found."}


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        cart_repository=CartDjangoRepository(),
    )


# ---------------------------------------------------------------------------
# Customer endpoints
# ---------------------------------------------------------------------------


class CheckoutView(APIView):
    throttle_scope = "checkout"

    def post(self, request: Request) -> Response:
        """POST /api/v1/checkout/

        Supports idempotency via the ``Idempotency-Key`` header: a
        replayed key returns the order it created.
        """
        customer = require_customer(request)
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        billing = data.get("billing_address")
        dto = CheckoutDTO(
            tenant_id=customer.tenant_id,
            customer_id=customer.id,
            payment_method=data["payment_method"],
            shipping_address=AddressDTO(**data["shipping_address"]),
            billing_address=AddressDTO(**billing) if billing else None,
            customer_notes=data.get("customer_notes", ""),
            idempotency_key=request.headers.get("Idempotency-Key"),
        )

        try:
            order = build_order_service().checkout(dto)
        except EmptyCart:
            return Response(
                {"detail": "Cart is empty."}, status=status.HTTP_400_BAD_REQUEST
            )
        except CustomerNotFound:
            return Response(
                {"detail": "Customer not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except InactiveCustomer:
            return Response(
                {"detail": "Customer is inactive."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InactiveProduct as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except GenerationExhausted:
            logger.error("order.checkout_failed", customer_id=str(customer.id))
            return Response(
                {"detail": "Could not create order."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class CustomerOrderViewSet(GenericViewSet):
    """Read-only access to the caller's own orders."""

    queryset = Order.objects.none()
    throttle_scope = "order_listing"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/my-orders/"""
        customer = require_customer(request)
        orders = self._service.list_customer_orders(customer.id)
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(orders, request)
        return paginator.get_paginated_response(
            OrderListSerializer(page, many=True).data
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/my-orders/{pk}/"""
        customer = require_customer(request)
        try:
            order = self._service.get_customer_order(pk, customer.id)
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)


# ---------------------------------------------------------------------------
# Staff endpoints
# ---------------------------------------------------------------------------


class OrderViewSet(GenericViewSet):
    """Tenant order management for staff.

    Does not extend ``ModelViewSet``: writes go through the service and
    repository layer.  Each action requires the capability listed in
    ``required_capabilities``.
    """

    queryset = Order.objects.all()
    permission_classes = [HasCapability]
    required_capabilities = {
        "list": Capability.ORDERS_VIEW,
        "retrieve": Capability.ORDERS_VIEW,
        "partial_update": Capability.ORDERS_UPDATE,
        "cancel": Capability.ORDERS_CANCEL,
    }

    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__email", "customer__name"]
    ordering_fields = ["created_at", "total", "status", "order_number"]
    ordering = ["-created_at", "-order_number"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self):
        self.throttle_scope = (
            "order_listing" if self.action in {"list", "retrieve"} else None
        )
        return super().get_throttles()

    def get_queryset(self):
        tenant = require_tenant(self.request)
        return Order.objects.filter(tenant=tenant).select_related("customer")

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, search and ordering by
        DRF's filter backends.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(
            OrderListSerializer(page, many=True).data
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        tenant = require_tenant(request)
        try:
            order = self._service.get_order(pk, tenant.id)
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(StaffOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Cancellations are **not** allowed here; use
        ``POST /orders/{id}/cancel/`` instead.
        """
        tenant = require_tenant(request)
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateOrderDTO(**serializer.validated_data)

        try:
            order = self._service.update_order(pk, tenant.id, dto, user=request.user)
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except (InvalidOrderStatus, InvalidPaymentStatus) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(StaffOrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases its reserved stock.
        """
        tenant = require_tenant(request)
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                pk,
                tenant.id,
                notes=serializer.validated_data["notes"],
                user=request.user,
            )
        except OrderNotFound:
            return Response(_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(StaffOrderSerializer(order).data)
