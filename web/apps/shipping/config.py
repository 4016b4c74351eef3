"""Runtime shipping configuration as an immutable value object.

Admins change session settings, pickup locations and pricing through the API.
Those values are stored as options and loaded into a ``ShippingConfig`` once
per request. The config is then passed explicitly to rate computation, the
session manager and the checkout service.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Tuple

from django.conf import settings

from .domain import PickupLocation, PricingRule, Provider

OPT_SESSION_ENABLED = "shipping_session_enabled"
OPT_SESSION_HOURS = "shipping_session_hours"
MIN_SESSION_HOURS = 1
MAX_SESSION_HOURS = 48


def locations_key(provider: Provider) -> str:
    return f"pickup_locations:{provider.value}"


def pricing_key(provider: Provider) -> str:
    return f"pickup_pricing:{provider.value}"


class OptionsReader(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError()


@dataclass(frozen=True)
class ShippingConfig:
    """Snapshot of the admin-set shipping options.

    Attributes:
        session_enabled: Whether free shipping sessions are offered at all.
        session_hours: Session window length in hours (1..48).
        method_title: Label prefix of the pickup rates.
        locations: Pickup locations per provider.
        pricing: Pricing rules per provider, keyed by country code.
    """

    session_enabled: bool = True
    session_hours: int = 5
    method_title: str = "Pickup Point Delivery"
    locations: Mapping[Provider, Tuple[PickupLocation, ...]] = field(default_factory=dict)
    pricing: Mapping[Provider, Mapping[str, PricingRule]] = field(default_factory=dict)

    @property
    def session_duration(self) -> int:
        """Session window in seconds."""
        return self.session_hours * 3600

    def locations_for(self, provider: Provider) -> Tuple[PickupLocation, ...]:
        return tuple(self.locations.get(provider, ()))

    def pricing_for(self, provider: Provider) -> Mapping[str, PricingRule]:
        return self.pricing.get(provider, {})


def _clamp_hours(raw) -> int:
    try:
        hours = abs(int(raw))
    except (TypeError, ValueError):
        hours = settings.SHIPPING_SESSION_HOURS
    return min(max(hours, MIN_SESSION_HOURS), MAX_SESSION_HOURS)


def load_shipping_config(options: OptionsReader) -> ShippingConfig:
    """Build a ``ShippingConfig`` from stored options and settings defaults.

    Args:
        options: Anything with ``get(key, default)``; normally the
            ``OptionsRepository``.

    Returns:
        ShippingConfig: Frozen configuration for the current request.
    """
    locations = {}
    pricing = {}
    for provider in Provider:
        raw_locations = options.get(locations_key(provider), []) or []
        locations[provider] = tuple(PickupLocation.from_dict(loc) for loc in raw_locations)
        raw_pricing = options.get(pricing_key(provider), {}) or {}
        pricing[provider] = {country: PricingRule.from_dict(rule) for country, rule in raw_pricing.items()}

    return ShippingConfig(
        session_enabled=bool(options.get(OPT_SESSION_ENABLED, settings.SHIPPING_SESSION_ENABLED)),
        session_hours=_clamp_hours(options.get(OPT_SESSION_HOURS, settings.SHIPPING_SESSION_HOURS)),
        method_title=getattr(settings, "SHIPPING_METHOD_TITLE", "Pickup Point Delivery"),
        locations=locations,
        pricing=pricing,
    )
