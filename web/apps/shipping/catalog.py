"""Admin-managed pickup locations and pricing tables.

Locations and pricing are stored per provider in the option store:
``pickup_locations:<provider>`` holds a list of location dicts and
``pickup_pricing:<provider>`` maps a country code to a pricing rule dict.
"""

import logging
import secrets
from typing import Any, Dict, List, Optional, Protocol

from django.utils import timezone

from .config import ShippingConfig, locations_key, pricing_key
from .domain import PickupLocation, PricingRule, Provider

logger = logging.getLogger(__name__)

LOCATION_FIELDS = ("name", "address", "city", "postal_code", "country")


class OptionsStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError()

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError()


def new_location_id() -> str:
    return "loc_" + secrets.token_hex(7)[:13]


class PickupCatalog:
    """CRUD over pickup locations and per-country pricing.

    Every method raises ``ValueError`` with an upper-case code on invalid
    input: ``MISSING_FIELD``, ``MISSING_PRICE`` or ``INVALID_TYPE``.
    """

    def __init__(self, options: OptionsStore):
        self.options = options

    def _locations(self, provider: Provider) -> List[dict]:
        return list(self.options.get(locations_key(provider), []) or [])

    def _pricing(self, provider: Provider) -> Dict[str, dict]:
        return dict(self.options.get(pricing_key(provider), {}) or {})

    def overview(self) -> dict:
        """All locations and pricing tables, keyed by provider value."""
        out = {}
        for provider in Provider:
            out[provider.value] = {
                "locations": self._locations(provider),
                "pricing": self._pricing(provider),
            }
        return out

    def add_location(self, provider: Provider, data: dict) -> PickupLocation:
        for name in LOCATION_FIELDS:
            if not str(data.get(name) or "").strip():
                raise ValueError("MISSING_FIELD")

        location = PickupLocation(
            id=new_location_id(),
            name=str(data["name"]).strip(),
            address=str(data["address"]).strip(),
            city=str(data["city"]).strip(),
            postal_code=str(data["postal_code"]).strip(),
            country=str(data["country"]).strip().upper(),
            created_at=timezone.now().isoformat(),
        )
        locations = self._locations(provider)
        locations.append(location.to_dict())
        self.options.set(locations_key(provider), locations)
        logger.info("pickup location added", extra={"provider": provider.value, "location_id": location.id})
        return location

    def delete_location(self, provider: Provider, location_id: str) -> bool:
        locations = self._locations(provider)
        kept = [loc for loc in locations if loc.get("id") != location_id]
        if len(kept) == len(locations):
            return False
        self.options.set(locations_key(provider), kept)
        logger.info("pickup location deleted", extra={"provider": provider.value, "location_id": location_id})
        return True

    def upsert_pricing(self, provider: Provider, country: str, express_cents: int, normal_cents: int) -> PricingRule:
        """Create or replace the pricing rule of ``country``.

        Raises:
            ValueError: ``MISSING_FIELD`` without a country, ``MISSING_PRICE``
                when neither price is positive.
        """
        country = (country or "").strip().upper()
        if not country:
            raise ValueError("MISSING_FIELD")
        express_cents = max(0, int(express_cents or 0))
        normal_cents = max(0, int(normal_cents or 0))
        if express_cents <= 0 and normal_cents <= 0:
            raise ValueError("MISSING_PRICE")

        rule = PricingRule(
            express_cents=express_cents,
            normal_cents=normal_cents,
            updated_at=timezone.now().isoformat(),
        )
        pricing = self._pricing(provider)
        pricing[country] = rule.to_dict()
        self.options.set(pricing_key(provider), pricing)
        logger.info("pricing rule saved", extra={"provider": provider.value, "country": country})
        return rule

    def delete_pricing(self, provider: Provider, country: str) -> bool:
        country = (country or "").strip().upper()
        pricing = self._pricing(provider)
        if country not in pricing:
            return False
        del pricing[country]
        self.options.set(pricing_key(provider), pricing)
        return True


def checkout_locations(config: ShippingConfig, provider: Provider, country: Optional[str] = None) -> List[dict]:
    """Locations offered at checkout, each joined with its country's prices."""
    country = (country or "").strip().upper()
    pricing = config.pricing_for(provider)
    out = []
    for location in config.locations_for(provider):
        if country and location.country != country:
            continue
        rule = pricing.get(location.country) or PricingRule()
        out.append(
            {
                "id": location.id,
                "name": location.name,
                "address": location.address,
                "city": location.city,
                "postal_code": location.postal_code,
                "country": location.country,
                "express_cents": rule.express_cents,
                "normal_cents": rule.normal_cents,
                "display_name": location.display_name,
            }
        )
    return out
