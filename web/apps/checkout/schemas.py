"""Pydantic schemas for checkout orders.

Amount and gateway checks live in ``CheckoutService`` so that they answer
with their machine codes (``INVALID_AMOUNT``...). The schemas only enforce
shape and types.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CustomerIn(BaseModel):
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = "FR"
    phone: str = ""

    @field_validator("country")
    @classmethod
    def validate_country(cls, v: str) -> str:
        """Normalize to an upper-case two letter code, ``FR`` when blank."""
        v2 = (v or "FR").strip().upper()
        if len(v2) != 2 or not v2.isalpha():
            raise ValueError("Invalid country code")
        return v2


class PickupPointIn(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    carrier: str = ""


class CreateOrderDTO(BaseModel):
    """Schema for creating an order.

    Attributes:
        reference: Customer reference, must be non-empty.
        amount_cents: Amount in integer cents.
        customer: Billing data, also used as the shipping address.
        payment_method: Gateway id.
        payment_intent_id: Intent confirmed client side, if any.
        pickup_point: Chosen pickup point, if any.
        shipping_method_id: Selected rate id, if any.
        shipping_cost_cents: Client side cost of the selected rate.
        locale: Checkout locale (``fr`` or ``fr_FR``).
    """

    reference: str = Field(default="", max_length=191)
    amount_cents: int
    customer: CustomerIn = Field(default_factory=CustomerIn)
    payment_method: str = Field(min_length=1)
    payment_intent_id: Optional[str] = None
    pickup_point: Optional[PickupPointIn] = None
    shipping_method_id: Optional[str] = None
    shipping_cost_cents: int = Field(default=0, ge=0)
    locale: Optional[str] = None

    @field_validator("reference")
    @classmethod
    def strip_reference(cls, v: str) -> str:
        # emptiness is answered by the service as MISSING_REFERENCE
        return v.strip()


class AddressIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        v2 = (v or "").strip().upper()
        if v2 and (len(v2) != 2 or not v2.isalpha()):
            raise ValueError("Invalid country code")
        return v2


class ExpressPaymentDTO(BaseModel):
    """Order sent by an express checkout wallet (Apple Pay, Google Pay...).

    The wallet provides the billing and delivery addresses separately. The
    order is always paid with the card gateway.
    """

    reference: str = Field(default="", max_length=191)
    amount_cents: int
    email: str = ""
    phone: str = ""
    billing: AddressIn = Field(default_factory=AddressIn)
    shipping_address: Optional[AddressIn] = None
    shipping_method_id: Optional[str] = None
    shipping_cost_cents: int = Field(default=0, ge=0)
    payment_intent_id: Optional[str] = None
    locale: Optional[str] = None

    @field_validator("reference")
    @classmethod
    def strip_reference(cls, v: str) -> str:
        return v.strip()


class OrderReadDTO(BaseModel):
    id: UUID
    number: int
    status: str
    reference: str
    amount_cents: int
    shipping_cents: int
    total_cents: int
    currency: str
    payment_method: str
    locale: str
    paid: bool = False
    shipping_label: Optional[str] = None
    pickup_point: Optional[PickupPointIn] = None
    session_id: Optional[str] = None
    created_at: datetime
