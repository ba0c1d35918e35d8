"""Checkout pricing.

Totals are computed once, at checkout, from the locked product prices.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from django.conf import settings

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def _quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(
    lines: Iterable[Tuple[Decimal, int]],
    shipping_fee: Optional[Decimal] = None,
    tax_rate: Optional[Decimal] = None,
) -> OrderTotals:
    """Price ``(unit_price, quantity)`` lines.

    ``tax = subtotal * tax_rate``; ``total = subtotal + tax + shipping``.
    Fee and rate default to ``ORDER_SHIPPING_FEE`` / ``ORDER_TAX_RATE``.
    """
    if shipping_fee is None:
        shipping_fee = settings.ORDER_SHIPPING_FEE
    if tax_rate is None:
        tax_rate = settings.ORDER_TAX_RATE

    subtotal = _quantize(
        sum((Decimal(price) * quantity for price, quantity in lines), Decimal("0"))
    )
    tax = _quantize(subtotal * Decimal(tax_rate))
    shipping = _quantize(Decimal(shipping_fee))
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )
