"""Domain types and rate computation for pickup point shipping.

Rates are a plain country-keyed price lookup: for each provider the admin
configures an express and a normal price per destination country, and a rate
is offered only when its price is set. There is no weight, distance or
carrier API involved.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Mapping

from django.utils.translation import gettext as _

# Rates carrying this id prefix are the ones a shipping session makes free
METHOD_ID = "pickup_shipping"


# ---- Enums ----
class Provider(str, Enum):
    """Pickup point carriers with their own locations and pricing tables."""

    CHRONOPOST = "chronopost"
    MONDIAL_RELAY = "mondial_relay"

    @property
    def label(self) -> str:
        return _PROVIDER_LABELS[self]

    @classmethod
    def parse(cls, raw) -> "Provider":
        """Parse an API ``type`` value (``mondial-relay`` is accepted too).

        Raises:
            ValueError: ``INVALID_TYPE`` for anything else.
        """
        value = str(raw or "").strip().lower().replace("-", "_")
        try:
            return cls(value)
        except ValueError:
            raise ValueError("INVALID_TYPE") from None


_PROVIDER_LABELS = {
    Provider.CHRONOPOST: "Chronopost",
    Provider.MONDIAL_RELAY: "Mondial Relay",
}


class DeliverySpeed(str, Enum):
    EXPRESS = "express"
    NORMAL = "normal"

    @property
    def label(self) -> str:
        return _("Express") if self is DeliverySpeed.EXPRESS else _("Normal")


# ---- Entities / value objects ----
@dataclass(frozen=True)
class PickupLocation:
    """A carrier drop-off point configured by an admin.

    Attributes:
        id: Generated identifier (``loc_<hex>``).
        name: Shop or relay name shown to the customer.
        address: Street line.
        city: City name.
        postal_code: Postal code as typed by the admin.
        country: ISO 3166-1 alpha-2 code.
        created_at: ISO timestamp of creation.
    """

    id: str
    name: str
    address: str
    city: str
    postal_code: str
    country: str
    created_at: str = ""

    @property
    def display_name(self) -> str:
        return "%s - %s, %s %s (%s)" % (self.name, self.address, self.postal_code, self.city, self.country)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "PickupLocation":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            address=str(data.get("address", "")),
            city=str(data.get("city", "")),
            postal_code=str(data.get("postal_code", "")),
            country=str(data.get("country", "")),
            created_at=str(data.get("created_at", "")),
        )


@dataclass(frozen=True)
class PricingRule:
    """Express/normal prices for one destination country, in cents.

    A price of zero means the speed is not offered for that country.
    """

    express_cents: int = 0
    normal_cents: int = 0
    updated_at: str = ""

    def price_for(self, speed: DeliverySpeed) -> int:
        return self.express_cents if speed is DeliverySpeed.EXPRESS else self.normal_cents

    def to_dict(self) -> dict:
        return {
            "express_cents": self.express_cents,
            "normal_cents": self.normal_cents,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "PricingRule":
        return cls(
            express_cents=int(data.get("express_cents") or 0),
            normal_cents=int(data.get("normal_cents") or 0),
            updated_at=str(data.get("updated_at", "")),
        )


@dataclass(frozen=True)
class ShippingRate:
    """A priced shipping option offered at checkout.

    Attributes:
        id: Rate identifier, e.g. ``pickup_shipping_chronopost_express``.
        label: Human readable label.
        cost_cents: Price charged for this rate.
        method_id: Shipping method that produced the rate.
        meta: Extra data (``delivery_type``, ``provider``; ``original_cost``
            and ``session_discount`` once a session made it free).
    """

    id: str
    label: str
    cost_cents: int
    method_id: str = METHOD_ID
    meta: Mapping = field(default_factory=dict)

    @property
    def original_cost_cents(self) -> int:
        """Price before a session discount, or 0 when the rate was not zeroed."""
        return int(self.meta.get("original_cost", 0) or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method_id": self.method_id,
            "label": self.label,
            "cost_cents": self.cost_cents,
            "meta": dict(self.meta),
        }


# ---- Rate source ----
def compute_rates(
    country: str,
    pricing: Mapping[Provider, Mapping[str, PricingRule]],
    title: str,
) -> List[ShippingRate]:
    """Return the pickup rates configured for ``country``.

    Providers are visited in declaration order and express before normal.
    A rate whose configured price is empty or zero is omitted.

    Args:
        country: Destination country code.
        pricing: Per-provider pricing tables keyed by country code.
        title: Shipping method title used as the label prefix.

    Returns:
        list[ShippingRate]: Between zero and four rates.
    """
    country = (country or "").upper()
    rates: List[ShippingRate] = []
    for provider in Provider:
        rule = (pricing.get(provider) or {}).get(country)
        if rule is None:
            continue
        for speed in DeliverySpeed:
            cost = rule.price_for(speed)
            if not cost or cost <= 0:
                continue
            rates.append(
                ShippingRate(
                    id=f"{METHOD_ID}_{provider.value}_{speed.value}",
                    label=f"{title} - {provider.label} {speed.label}",
                    cost_cents=int(cost),
                    meta={
                        "delivery_type": speed.value,
                        "shipping_method": provider.value,
                        "provider": provider.label,
                    },
                )
            )
    return rates


def apply_session_discount(rates: Iterable[ShippingRate], session_active: bool) -> List[ShippingRate]:
    """Zero the pickup rates while a shipping session is active.

    Only rates whose id contains ``METHOD_ID`` are touched. Each zeroed rate
    keeps its former price in ``meta["original_cost"]`` (and
    ``meta["session_discount"]``) so savings can be reported later.
    """
    rates = list(rates)
    if not session_active:
        return rates

    out = []
    for rate in rates:
        if METHOD_ID not in rate.id:
            out.append(rate)
            continue
        original = rate.cost_cents
        out.append(
            replace(
                rate,
                cost_cents=0,
                label="%s (%s)" % (rate.label, _("Free - Active Session")),
                meta={**rate.meta, "original_cost": original, "session_discount": original},
            )
        )
    return out
