"""Service provider helpers for wiring ``CheckoutService``."""

from django.conf import settings

from apps.payments.providers import get_gateway_registry
from apps.shipping.config import ShippingConfig
from apps.shipping.providers import get_session_manager

from .domain import CheckoutService
from .repository import OrderRepository


def get_order_repository() -> OrderRepository:
    return OrderRepository()


def get_checkout_service(config: ShippingConfig) -> CheckoutService:
    """Return a ``CheckoutService`` for the current request.

    Args:
        config: Runtime shipping configuration. The session manager is only
            wired when the session feature is enabled.
    """
    return CheckoutService(
        orders=get_order_repository(),
        gateways=get_gateway_registry(),
        sessions=get_session_manager(config) if config.session_enabled else None,
        currency=settings.STORE_CURRENCY,
    )
