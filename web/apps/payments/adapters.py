"""In-process stub for the payment intent port."""

import secrets

from .domain import PaymentIntent, PaymentIntentPort


class PaymentIntentStub(PaymentIntentPort):
    """Return a fake intent without calling the provider.

    Ids follow the provider's shape (``pi_...`` and ``pi_..._secret_...``)
    so clients can exercise the same parsing code.
    """

    def create_intent(self, amount_cents: int, currency: str, secret_key: str) -> PaymentIntent:
        intent_id = "pi_" + secrets.token_hex(12)
        return PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{secrets.token_hex(12)}",
            amount_cents=amount_cents,
            currency=currency,
        )
