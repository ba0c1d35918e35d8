"""Cart API views.

Every endpoint acts on the cart of the authenticated user's customer
profile inside the request tenant.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.cart.dtos import AddCartItemDTO
from modules.cart.exceptions import CartItemNotFound, InvalidQuantity
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import (
    AddCartItemSerializer,
    CartSummarySerializer,
    UpdateCartItemSerializer,
)
from modules.cart.services import CartService
from modules.customers.api import require_customer
from modules.products.exceptions import (
    InactiveProduct,
    InsufficientStock,
    ProductNotFound,
)
from modules.products.repositories.django_repository import ProductDjangoRepository


class CartServiceMixin:
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def _summary_response(self, customer, status_code=status.HTTP_200_OK) -> Response:
        summary = self._service.get_summary(customer)
        return Response(
            CartSummarySerializer(summary.model_dump()).data, status=status_code
        )


class CartView(CartServiceMixin, APIView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        return self._summary_response(require_customer(request))

    def delete(self, request: Request) -> Response:
        """DELETE /api/v1/cart/"""
        self._service.clear(require_customer(request))
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartItemListView(CartServiceMixin, APIView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/cart/items/

        Adding a product already in the cart increases its quantity.
        """
        customer = require_customer(request)
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = AddCartItemDTO(**serializer.validated_data)

        try:
            self._service.add_item(customer, dto)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InactiveProduct as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return self._summary_response(customer, status.HTTP_201_CREATED)


class CartItemDetailView(CartServiceMixin, APIView):
    def patch(self, request: Request, item_id: str) -> Response:
        """PATCH /api/v1/cart/items/{item_id}/"""
        customer = require_customer(request)
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self._service.update_quantity(
                customer, item_id, serializer.validated_data["quantity"]
            )
        except CartItemNotFound:
            return Response(
                {"detail": "Cart item not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except InvalidQuantity as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientStock as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return self._summary_response(customer)

    def delete(self, request: Request, item_id: str) -> Response:
        """DELETE /api/v1/cart/items/{item_id}/"""
        customer = require_customer(request)
        try:
            self._service.remove_item(customer, item_id)
        except CartItemNotFound:
            return Response(
                {"detail": "Cart item not found."}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
