"""HTTP client for the card provider's payment intent API.

Only one call is made: ``POST /v1/payment_intents``, form-encoded and
authenticated with the secret key as a bearer token. The request uses a fixed
timeout and is never retried, so a transport error reaches the view, which
answers ``UPSTREAM_UNAVAILABLE``.
"""

import logging
from typing import Optional

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from .domain import PaymentIntent, PaymentIntentPort, PaymentProviderError

logger = logging.getLogger(__name__)

REQUEST_ID_CTX = import_string("gateway.middleware.REQUEST_ID_CTX")


def _request_headers(extra: Optional[dict] = None) -> dict:
    """Base headers with ``X-Request-ID`` from the middleware ContextVar."""
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


class StripeIntentClient(PaymentIntentPort):
    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.STRIPE_API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def create_intent(self, amount_cents: int, currency: str, secret_key: str) -> PaymentIntent:
        """Create an intent with automatic payment methods and capture.

        Args:
            amount_cents: Amount in the smallest currency unit.
            currency: Lowercase ISO currency code.
            secret_key: Provider secret key for the current mode.

        Returns:
            PaymentIntent: The created intent.

        Raises:
            PaymentProviderError: Non-2xx answer or a body without
                ``client_secret``.
            httpx.RequestError: Network/transport failure.
        """
        form = {
            "amount": str(amount_cents),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
            "capture_method": "automatic",
        }
        headers = _request_headers({"Authorization": f"Bearer {secret_key}"})

        with httpx.Client(timeout=self.timeout) as client:
            resp = client.post(f"{self.base_url}/v1/payment_intents", data=form, headers=headers)

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400 or not body.get("client_secret"):
            error = body.get("error") or {}
            logger.warning(
                "payment intent rejected",
                extra={
                    "status_code": resp.status_code,
                    "provider_code": error.get("code", "unknown"),
                    "provider_type": error.get("type", "unknown"),
                },
            )
            raise PaymentProviderError(
                message=error.get("message") or "Failed to create payment intent",
                code=error.get("code") or "unknown",
                type=error.get("type") or "unknown",
                status_code=resp.status_code,
            )

        return PaymentIntent(
            id=body["id"],
            client_secret=body["client_secret"],
            amount_cents=int(body.get("amount", amount_cents)),
            currency=body.get("currency", currency),
            status=body.get("status", "requires_payment_method"),
        )
