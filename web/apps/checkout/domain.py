"""Domain models, ports and service for checkout orders.

An order is a simple record: a free amount entered by the customer, an
optional shipping line and a set of annotations (``meta``). The service
validates the request, resolves shipping against the pickup rate tables
(with the free shipping session applied), persists the order and then
annotates it. It never rolls back: once the order row exists, a failure in
a later step leaves it in place.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Protocol

from django.utils.translation import gettext as _

from apps.localization.locales import resolve_locale
from apps.payments.domain import GatewayRegistry
from apps.shipping.config import ShippingConfig
from apps.shipping.domain import apply_session_discount, compute_rates
from apps.shipping.sessions import ActiveSession, ShippingSessionManager


# ---- Enums ----
class OrderStatus(str, Enum):
    """Order statuses set by checkout.

    PENDING waits for an online payment confirmation. PROCESSING is paid, or
    paid on collection (cash/manual gateways).
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Customer:
    """Billing data, also used as the shipping address.

    Attributes:
        email: Billing email; the preferred session identifier.
        first_name: Given name.
        last_name: Family name.
        address_1: Street line.
        address_2: Second street line.
        city: City name.
        state: Region or state, when the country uses one.
        postcode: Postal code.
        country: ISO country code, ``FR`` when not given.
        phone: Phone number.
        user_id: Authenticated user placing the order, if any.
    """

    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = "FR"
    phone: str = ""
    user_id: Optional[int] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def identifier(self) -> Optional[str]:
        """Who a shipping session belongs to: the email, else ``user_<id>``."""
        if self.email:
            return self.email
        if self.user_id:
            return f"user_{self.user_id}"
        return None

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "address_1": self.address_1,
            "address_2": self.address_2,
            "city": self.city,
            "state": self.state,
            "postcode": self.postcode,
            "country": self.country,
            "phone": self.phone,
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Customer":
        data = data or {}
        return cls(
            email=data.get("email") or "",
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            address_1=data.get("address_1") or "",
            address_2=data.get("address_2") or "",
            city=data.get("city") or "",
            state=data.get("state") or "",
            postcode=data.get("postcode") or "",
            country=(data.get("country") or "FR").upper(),
            phone=data.get("phone") or "",
            user_id=data.get("user_id"),
        )


@dataclass(frozen=True)
class Address:
    """Delivery address sent by express checkout wallets.

    Regular checkout orders ship to the billing data and leave it unset.
    """

    first_name: str = ""
    last_name: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PickupPoint:
    id: str
    name: str = ""
    address: str = ""
    city: str = ""
    postal_code: str = ""
    carrier: str = ""


@dataclass(frozen=True)
class ShippingSelection:
    """The rate chosen by the client.

    ``client_cost_cents`` is only trusted for method ids the pickup rate
    source does not produce (e.g. ``flat_rate:1``).
    """

    method_id: str
    client_cost_cents: int = 0


@dataclass(frozen=True)
class OrderRequest:
    reference: str
    amount_cents: int
    customer: Customer
    payment_method: str
    payment_intent_id: Optional[str] = None
    pickup_point: Optional[PickupPoint] = None
    shipping: Optional[ShippingSelection] = None
    locale: Optional[str] = None
    shipping_address: Optional[Address] = None
    express: bool = False

    @property
    def destination_country(self) -> str:
        if self.shipping_address is not None and self.shipping_address.country:
            return self.shipping_address.country
        return self.customer.country


@dataclass(frozen=True)
class ShippingLine:
    method_id: str
    label: str
    cost_cents: int
    original_cents: int = 0
    delivery_type: str = ""

    @property
    def waived(self) -> bool:
        return self.cost_cents == 0 and self.original_cents > 0


@dataclass
class Order:
    """Container for order data.

    Attributes:
        id: Persistent identifier (UUID string), or None if not yet saved.
        number: Human facing sequential number, set on save.
        status: Current OrderStatus.
        amount_cents: Customer amount, in integer cents.
        shipping_cents: Shipping line cost, in integer cents.
        currency: ISO currency code (e.g. 'EUR').
        payment_method: Gateway id.
        customer: Billing data (also the delivery address when
            ``shipping_address`` is unset).
        shipping_address: Separate delivery address, if any.
        locale: Locale the order was placed in.
        shipping_label: Label of the shipping line, empty without shipping.
        meta: Key/value annotations (reference, pickup point, session...).
        created_at: Set by the repository.
    """

    id: Optional[str]
    amount_cents: int
    customer: Customer
    payment_method: str
    status: OrderStatus = OrderStatus.PENDING
    number: Optional[int] = None
    shipping_cents: int = 0
    currency: str = "EUR"
    locale: str = "en_US"
    shipping_label: str = ""
    meta: Dict[str, object] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    shipping_address: Optional[dict] = None

    @property
    def total_cents(self) -> int:
        return self.amount_cents + self.shipping_cents


@dataclass
class CheckoutResult:
    """Outcome of ``place_order`` with what the response must do to the cookie.

    Attributes:
        order: The persisted, annotated order.
        session_token: Token to set in the session cookie (new session only).
        session_max_age: Cookie max-age for ``session_token``.
        clear_cookie: The request cookie named an unknown or expired session.
        session: Session state after this order, if any.
    """

    order: Order
    session_token: Optional[str] = None
    session_max_age: int = 0
    clear_cookie: bool = False
    session: Optional[dict] = None


# ---- Ports (DIP) ----
class OrderStore(Protocol):
    """Port describing order persistence used by the checkout service."""

    def create(self, order: Order) -> Order:
        """Persist a new order and return it with ``id``/``number`` set."""
        raise NotImplementedError()

    def update(self, order: Order) -> None:
        """Save ``status`` and ``meta`` of an existing order."""
        raise NotImplementedError()

    def add_note(self, order_id: str, text: str) -> None:
        raise NotImplementedError()

    def reference_exists(self, reference: str) -> bool:
        raise NotImplementedError()


# ---- Domain service ----
class CheckoutService:
    """Create and annotate orders submitted by the checkout page."""

    def __init__(
        self,
        orders: OrderStore,
        gateways: GatewayRegistry,
        sessions: Optional[ShippingSessionManager],
        currency: str = "EUR",
    ):
        """Initialize the service with required dependencies.

        Args:
            orders: OrderStore used to persist orders and notes.
            gateways: Registry of the configured payment gateways.
            sessions: Session manager, or None when sessions are disabled.
            currency: Store currency code.
        """
        self.orders = orders
        self.gateways = gateways
        self.sessions = sessions
        self.currency = currency

    def validate_reference(self, reference: str) -> bool:
        """True when no order carries ``reference`` yet.

        Raises:
            ValueError: ``MISSING_REFERENCE`` for an empty reference.
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValueError("MISSING_REFERENCE")
        return not self.orders.reference_exists(reference)

    def resolve_shipping(
        self, selection: Optional[ShippingSelection], country: str, config: ShippingConfig, active: Optional[ActiveSession]
    ) -> Optional[ShippingLine]:
        """Turn the client's selection into a priced shipping line.

        A selected id matching a computed pickup rate takes that rate's cost
        and label (with the session applied). Any other id keeps the client
        cost.
        """
        if selection is None or not selection.method_id:
            return None

        rates = apply_session_discount(compute_rates(country, config.pricing, config.method_title), active is not None)
        for rate in rates:
            if rate.id == selection.method_id:
                return ShippingLine(
                    method_id=rate.id,
                    label=rate.label,
                    cost_cents=rate.cost_cents,
                    original_cents=rate.original_cost_cents,
                    delivery_type=str(rate.meta.get("delivery_type", "")),
                )
        return ShippingLine(
            method_id=selection.method_id,
            label=selection.method_id,
            cost_cents=max(0, int(selection.client_cost_cents or 0)),
        )

    def place_order(self, req: OrderRequest, config: ShippingConfig, session_token: Optional[str] = None) -> CheckoutResult:
        """Validate, persist and annotate an order.

        Args:
            req: The submitted order.
            config: Runtime shipping configuration.
            session_token: Token read from the session cookie, if any.

        Returns:
            CheckoutResult: The order and the cookie instructions.

        Raises:
            ValueError: With one of the following codes, before anything is
                written: 'INVALID_AMOUNT' if the amount is not positive,
                'MISSING_REFERENCE' for an empty reference,
                'INVALID_PAYMENT_METHOD' for an unknown or disabled gateway,
                'INVALID_LOCALE' for an unsupported locale.
        """
        # 1) Validate
        if req.amount_cents is None or int(req.amount_cents) <= 0:
            raise ValueError("INVALID_AMOUNT")
        reference = (req.reference or "").strip()
        if not reference:
            raise ValueError("MISSING_REFERENCE")
        gateway = self.gateways.get(req.payment_method)
        if gateway is None:
            raise ValueError("INVALID_PAYMENT_METHOD")
        locale = resolve_locale(req.locale)

        # 2) Session
        sessions = self.sessions if config.session_enabled else None
        active = sessions.lookup(session_token) if sessions else None
        stale = bool(sessions and session_token and active is None)

        # 3) Shipping
        line = self.resolve_shipping(req.shipping, req.destination_country, config, active)

        # 4) Create
        meta: Dict[str, object] = {
            "reference": reference,
            "custom_amount_cents": int(req.amount_cents),
        }
        if req.express:
            meta["express_checkout"] = True
        if req.pickup_point is not None:
            pp = req.pickup_point
            meta.update(
                {
                    "pickup_point_id": pp.id,
                    "pickup_point_name": pp.name,
                    "pickup_point_address": pp.address,
                    "pickup_point_city": pp.city,
                    "pickup_point_zipcode": pp.postal_code,
                    "pickup_point_carrier": pp.carrier,
                }
            )
        if line is not None:
            meta["shipping_method_id"] = line.method_id
            if line.delivery_type:
                meta["delivery_type"] = line.delivery_type
            if line.original_cents:
                meta["shipping_original_cents"] = line.original_cents

        order = self.orders.create(
            Order(
                id=None,
                amount_cents=int(req.amount_cents),
                customer=req.customer,
                payment_method=gateway.id,
                status=OrderStatus.PENDING,
                shipping_cents=line.cost_cents if line else 0,
                currency=self.currency,
                locale=locale,
                shipping_label=line.label if line else "",
                meta=meta,
                shipping_address=req.shipping_address.to_dict() if req.shipping_address else None,
            )
        )

        # 5) Status policy
        if req.payment_intent_id:
            order.meta["payment_intent_id"] = req.payment_intent_id
            order.meta["transaction_id"] = req.payment_intent_id
            order.meta["paid"] = True
            order.status = OrderStatus.PROCESSING
            note = _("Payment confirmed via %(gateway)s") % {"gateway": gateway.title}
        elif gateway.kind.confirms_offline:
            order.status = OrderStatus.PROCESSING
            note = _("Payment via %(gateway)s") % {"gateway": gateway.title}
        else:
            order.status = OrderStatus.PENDING
            note = _("Awaiting payment confirmation")
        self.orders.update(order)
        self.orders.add_note(order.id, note)

        # 6) Reference note
        self.orders.add_note(order.id, _("Order created. Reference: %(reference)s") % {"reference": reference})

        # 7) Session
        result = CheckoutResult(order=order, clear_cookie=stale)
        if line is not None:
            self._apply_session(result, sessions, active, line, config)
        return result

    def _apply_session(
        self,
        result: CheckoutResult,
        sessions: Optional[ShippingSessionManager],
        active: Optional[ActiveSession],
        line: ShippingLine,
        config: ShippingConfig,
    ) -> None:
        order = result.order

        if active is not None:
            index = active.session.order_count + 1
            order.meta.update(
                {
                    "session_id": active.session_id,
                    "session_order_index": index,
                    "first_order_id": active.session.first_order_id,
                    "shipping_paid": False,
                }
            )
            self.orders.update(order)
            self.orders.add_note(
                order.id, _("Free shipping applied (order %(index)d of session)") % {"index": index}
            )
            saved = line.original_cents if line.waived else 0
            session = sessions.add_order(active.session_id, order.id, saved)
            if session is not None:
                result.session = {
                    "session_id": session.session_id,
                    "order_count": session.order_count,
                    "total_saved_cents": session.total_saved_cents,
                }
            return

        order.meta["shipping_paid"] = True
        identifier = order.customer.identifier
        if sessions is None or identifier is None:
            self.orders.update(order)
            return

        session = sessions.start(order.id, identifier)
        order.meta["session_id"] = session.session_id
        order.meta["session_order_index"] = 1
        self.orders.update(order)
        self.orders.add_note(
            order.id,
            _("New shipping session created. Free shipping on next orders for %(hours)d hours.")
            % {"hours": config.session_hours},
        )
        result.session_token = session.session_id
        result.session_max_age = sessions.duration
        result.clear_cookie = False
        result.session = {
            "session_id": session.session_id,
            "order_count": session.order_count,
            "total_saved_cents": session.total_saved_cents,
        }
