"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import CheckoutView, CustomerOrderViewSet, OrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")
router.register("my-orders", CustomerOrderViewSet, basename="my-order")

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="checkout"),
] + router.urls
