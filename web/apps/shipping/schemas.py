"""Pydantic schemas for the shipping API."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LocationIn(BaseModel):
    """Admin payload for a new pickup location.

    Presence of each field is checked by ``PickupCatalog`` so a missing one
    answers ``MISSING_FIELD`` instead of a pydantic message.
    """

    type: str = ""
    name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""


class PricingRuleIn(BaseModel):
    type: str = ""
    country: str = ""
    express_cents: int = Field(default=0, ge=0)
    normal_cents: int = Field(default=0, ge=0)


class SessionSettingsIn(BaseModel):
    """Admin payload for the free shipping session options.

    Attributes:
        enabled: Turn the session feature on or off.
        duration_hours: Window length, 1 to 48 hours.
    """

    enabled: bool
    duration_hours: int = Field(ge=1, le=48)


class CalculateShippingIn(BaseModel):
    amount_cents: int = Field(default=0, ge=0)
    country: str = Field(min_length=2, max_length=2)
    state: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    locale: Optional[str] = None

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.upper()
