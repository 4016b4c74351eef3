"""Payment gateways, payment intents and the service creating intents.

Gateways are declared in Django settings (``PAYMENT_GATEWAYS``). The card
gateway (``stripe``) is backed by the provider's REST API through a
``PaymentIntentPort``. Other gateways only influence the order status.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Protocol

CARD_GATEWAY_ID = "stripe"


# ---- Enums ----
class GatewayKind(str, Enum):
    CARD = "card"
    CASH = "cash"
    MANUAL = "manual"
    OTHER = "other"

    @property
    def confirms_offline(self) -> bool:
        """Orders paid with this kind are processed without online payment."""
        return self in (GatewayKind.CASH, GatewayKind.MANUAL)


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class PaymentGateway:
    """A payment method the customer can choose at checkout.

    Attributes:
        id: Stable identifier sent by the client (``stripe``, ``cod``...).
        title: Label shown to the customer.
        description: Short help text.
        icon: Optional icon URL.
        kind: Drives the order status policy.
        enabled: Disabled gateways are hidden and rejected.
        supports_tokenization: Whether saved cards are possible.
    """

    id: str
    title: str
    description: str = ""
    icon: str = ""
    kind: GatewayKind = GatewayKind.OTHER
    enabled: bool = True
    supports_tokenization: bool = False

    @classmethod
    def from_dict(cls, data: Mapping) -> "PaymentGateway":
        try:
            kind = GatewayKind(str(data.get("kind", "other")).lower())
        except ValueError:
            kind = GatewayKind.OTHER
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or data["id"]),
            description=str(data.get("description", "")),
            icon=str(data.get("icon", "")),
            kind=kind,
            enabled=bool(data.get("enabled", True)),
            supports_tokenization=bool(data.get("supports_tokenization", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "kind": self.kind.value,
            "supports_tokenization": self.supports_tokenization,
        }


class GatewayRegistry:
    """Lookup over the configured gateways."""

    def __init__(self, gateways: Iterable[PaymentGateway]):
        self._gateways = {g.id: g for g in gateways}

    @classmethod
    def from_settings(cls, raw: Iterable[Mapping]) -> "GatewayRegistry":
        return cls(PaymentGateway.from_dict(item) for item in raw or [])

    def get(self, gateway_id: str) -> Optional[PaymentGateway]:
        """Return an enabled gateway by id, or None."""
        gateway = self._gateways.get(gateway_id or "")
        if gateway is None or not gateway.enabled:
            return None
        return gateway

    def enabled(self) -> List[PaymentGateway]:
        return [g for g in self._gateways.values() if g.enabled]


@dataclass(frozen=True)
class StripeKeys:
    publishable_key: str
    secret_key: str
    test_mode: bool = False


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount_cents: int
    currency: str
    status: str = "requires_payment_method"


class PaymentProviderError(Exception):
    """Error answered by the payment provider for a well-formed request."""

    def __init__(self, message: str, code: str = "unknown", type: str = "unknown", status_code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = code
        self.type = type
        self.status_code = status_code


# ---- Ports (DIP) ----
class PaymentIntentPort(Protocol):
    """Port creating payment intents at the card provider."""

    def create_intent(self, amount_cents: int, currency: str, secret_key: str) -> PaymentIntent:
        """Create an automatically captured intent.

        Raises:
            PaymentProviderError: When the provider rejects the request.
            httpx.RequestError: On transport failures (HTTP adapter only).
        """
        raise NotImplementedError()


# ---- Domain service ----
class PaymentIntentService:
    """Validate a payment intent request and delegate to the provider port."""

    def __init__(self, intents: PaymentIntentPort, registry: GatewayRegistry, keys: StripeKeys, currency: str):
        self.intents = intents
        self.registry = registry
        self.keys = keys
        self.currency = currency

    def create(self, amount_cents: int) -> PaymentIntent:
        """Create a payment intent for ``amount_cents``.

        Raises:
            ValueError: ``INVALID_AMOUNT``, ``NO_STRIPE`` or ``NO_KEY``.
            PaymentProviderError: Propagated from the port.
        """
        if amount_cents is None or int(amount_cents) <= 0:
            raise ValueError("INVALID_AMOUNT")
        if self.registry.get(CARD_GATEWAY_ID) is None:
            raise ValueError("NO_STRIPE")
        if not self.keys.publishable_key:
            raise ValueError("NO_KEY")
        return self.intents.create_intent(int(amount_cents), self.currency.lower(), self.keys.secret_key)
