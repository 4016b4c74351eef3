"""Pydantic schemas for the payments API."""

from pydantic import BaseModel


class PaymentIntentIn(BaseModel):
    """Request body for a payment intent.

    ``amount_cents`` is range-checked by the service so a zero amount
    answers ``INVALID_AMOUNT``.
    """

    amount_cents: int
