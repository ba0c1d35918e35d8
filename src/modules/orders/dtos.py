"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``AddressDTO``: a shipping / billing address.
- ``CheckoutDTO``: input for checkout (the cart supplies the lines).
- ``UpdateOrderDTO``: staff changes to an existing order.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import (
    FulfillmentStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class AddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    line1: str
    line2: str = ""
    city: str
    state: str = ""
    postal_code: str
    country: str
    phone: str = ""

    @field_validator("name", "line1", "city", "postal_code", "country")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank.")
        return v


class CheckoutDTO(BaseModel):
    """Immutable DTO for a checkout request.

    ``billing_address`` defaults to the shipping address.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID
    customer_id: UUID
    payment_method: PaymentMethod
    shipping_address: AddressDTO
    billing_address: Optional[AddressDTO] = None
    customer_notes: str = ""
    idempotency_key: Optional[str] = None

    @property
    def effective_billing_address(self) -> AddressDTO:
        return self.billing_address or self.shipping_address


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for staff updates; ``None`` means "leave unchanged"."""

    model_config = ConfigDict(frozen=True)

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    fulfillment_status: Optional[FulfillmentStatus] = None
    tracking_number: Optional[str] = None
    internal_note: Optional[str] = None
    notes: str = ""

    @model_validator(mode="after")
    def at_least_one_change(self):
        changes = self.changes()
        if not changes:
            raise ValueError("Nothing to update.")
        return self

    def changes(self) -> Dict[str, Any]:
        return {
            field: value
            for field, value in self.model_dump(exclude={"notes"}).items()
            if value is not None
        }
