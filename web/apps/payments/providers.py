"""Factories wiring payment gateways and the payment intent port."""

from django.conf import settings

from .adapters import PaymentIntentStub
from .domain import GatewayRegistry, PaymentIntentPort, PaymentIntentService, StripeKeys
from .http_adapters import StripeIntentClient


def get_gateway_registry() -> GatewayRegistry:
    return GatewayRegistry.from_settings(getattr(settings, "PAYMENT_GATEWAYS", []))


def get_stripe_keys() -> StripeKeys:
    """Pick the live or test key pair from ``STRIPE_TEST_MODE``."""
    if settings.STRIPE_TEST_MODE:
        return StripeKeys(
            publishable_key=settings.STRIPE_TEST_PUBLISHABLE_KEY,
            secret_key=settings.STRIPE_TEST_SECRET_KEY,
            test_mode=True,
        )
    return StripeKeys(
        publishable_key=settings.STRIPE_PUBLISHABLE_KEY,
        secret_key=settings.STRIPE_SECRET_KEY,
        test_mode=False,
    )


def get_intent_port() -> PaymentIntentPort:
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return StripeIntentClient()
    return PaymentIntentStub()


def get_payment_intent_service() -> PaymentIntentService:
    """Return a ``PaymentIntentService`` wired from settings."""
    return PaymentIntentService(
        intents=get_intent_port(),
        registry=get_gateway_registry(),
        keys=get_stripe_keys(),
        currency=settings.STORE_CURRENCY,
    )
