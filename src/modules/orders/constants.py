"""Order domain constants.

Status choices, the order / payment state machines and the limits of
the identifier generation protocol.
"""

import re

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"


class FulfillmentStatus(models.TextChoices):
    UNFULFILLED = "UNFULFILLED", "Unfulfilled"
    PARTIALLY_FULFILLED = "PARTIALLY_FULFILLED", "Partially fulfilled"
    FULFILLED = "FULFILLED", "Fulfilled"


class PaymentMethod(models.TextChoices):
    CARD = "CARD", "Card"
    UPI = "UPI", "UPI"
    NET_BANKING = "NET_BANKING", "Net banking"
    COD = "COD", "Cash on delivery"
    WALLET = "WALLET", "Wallet"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

VALID_PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.COMPLETED},
    PaymentStatus.COMPLETED: set(),
}

# Identifier generation protocol
IDENTIFIER_MAX_ATTEMPTS = 100
CHECKOUT_MAX_INSERT_ATTEMPTS = 3
SEQUENCE_WIDTH = 4
ORDER_ID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}$")
# The sequence is zero-padded to SEQUENCE_WIDTH but never truncated, so the
# number after 9999 is 10000 and the pattern accepts wider sequences.
ORDER_NUMBER_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4,}$")
