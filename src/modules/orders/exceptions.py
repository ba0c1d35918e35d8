"""Order domain exceptions.

Raised by the service layer and the identifier generator.  Views catch
these and translate them into HTTP responses.
"""

from __future__ import annotations


class GenerationExhausted(Exception):
    """No free order id / order number was found within the attempt budget.

    Fatal for the enclosing checkout: nothing has been persisted.
    """


class MalformedSequenceSegment(ValueError):
    """The last order number does not end in a numeric sequence segment.

    Recovered inside the generator (sequence restarts at 1).
    """


class OrderNotFound(Exception):
    """The requested order does not exist (or belongs to another tenant)."""


class InvalidOrderStatus(Exception):
    """A transition not allowed by the order state machine was attempted."""


class InvalidPaymentStatus(Exception):
    """A transition not allowed by the payment state machine was attempted."""


class EmptyCart(Exception):
    """Checkout was attempted with no items in the cart."""


class CustomerNotFound(Exception):
    """The checking-out customer does not exist in this tenant."""


class InactiveCustomer(Exception):
    """The customer is inactive and cannot place orders."""