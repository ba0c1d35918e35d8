"""Cart DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class AddCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    sku: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class CartSummaryDTO(BaseModel):
    """Cart contents with a pre-tax subtotal."""

    model_config = ConfigDict(frozen=True)

    items: List[CartLineDTO]
    item_count: int
    subtotal: Decimal
